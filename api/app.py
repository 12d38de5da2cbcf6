# api/app.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest
from pydantic import BaseModel

from alerts import metrics
from alerts.broker import get_broker

logger = logging.getLogger(__name__)

app = FastAPI(title="Alert Broker API", version="0.1.0")


# ---------------------------
# Pydantic models
# ---------------------------
class BrokerStatus(BaseModel):
    sessions: int
    subscriptions: int
    pending: int
    open_transactions: int
    waiting: int
    sensitivity_s: float
    deliver_to_sender: bool


@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.get("/status", response_model=BrokerStatus)
def status():
    """Øjebliksbillede af default-brokerens delte tilstand."""
    return BrokerStatus(**get_broker().stats())


@app.get("/metrics")
def metrics_endpoint():
    """
    Prometheus-eksponering. Sikrer at alert-metrikkerne er registreret, så
    serierne findes også før første signal.
    """
    metrics.ensure_registered()
    data = generate_latest(REGISTRY)
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)


def main() -> None:
    """Start API'et med uvicorn på ALERT_API_PORT (default 8000)."""
    import uvicorn

    from config.env_loader import load_config
    from utils.log_utils import configure_logging

    cfg = load_config()
    configure_logging(cfg.log_level, cfg.log_dir)
    logger.info("Starter alert-broker API på port %s", cfg.api_port)
    uvicorn.run(app, host="0.0.0.0", port=cfg.api_port, log_level="warning")


if __name__ == "__main__":
    main()
