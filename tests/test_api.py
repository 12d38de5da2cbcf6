# tests/test_api.py
import pytest
from fastapi.testclient import TestClient

from alerts.broker import AlertBroker, get_broker, reset_broker
from api.app import app
from config.env_loader import BrokerCfg


@pytest.fixture
def client():
    broker = AlertBroker(BrokerCfg(sensitivity_s=0.0))
    reset_broker(broker)
    try:
        yield TestClient(app), broker
    finally:
        reset_broker(None)


def test_healthz(client):
    c, _ = client
    r = c.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_status_reflects_broker(client):
    c, broker = client
    a = broker.open_session()
    a.register("ORD_READY")
    a.begin()
    r = c.get("/status")
    assert r.status_code == 200
    body = r.json()
    assert body["sessions"] == 1
    assert body["subscriptions"] == 1
    assert body["open_transactions"] == 1
    assert body["deliver_to_sender"] is True
    assert get_broker() is broker


def test_metrics_endpoint_has_alert_metrics(client):
    c, broker = client
    a = broker.open_session()
    a.register("evt")
    a.signal("evt", "m")
    a.waitone("evt", 0)
    body = c.get("/metrics").text
    assert "alert_signals_total" in body
    assert "alert_deliveries_total" in body
    assert "alert_waits_total" in body
    assert "alert_pending_signals" in body
    assert "alert_wait_seconds_bucket" in body
