# -*- coding: utf-8 -*-
import os
import sys
import threading
from pathlib import Path

import pytest

# --- Sørg for at projektroden er på import-stien (stabil på tværs af OS/CI) ---
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from alerts.broker import AlertBroker  # noqa: E402
from config.env_loader import BrokerCfg  # noqa: E402


# =========================
# Pytest hooks & options
# =========================


def pytest_addoption(parser: pytest.Parser) -> None:
    """
    Timing-tests (rigtige sleeps) kører som standard, men kan slås fra:
      pytest --skip-slow   eller   SKIP_SLOW=1 pytest
    """
    parser.addoption(
        "--skip-slow",
        action="store_true",
        default=False,
        help="Skip tests marked as 'slow'.",
    )


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if not (config.getoption("--skip-slow") or _env_flag("SKIP_SLOW")):
        return
    skip_slow = pytest.mark.skip(reason="Skipping @slow tests (--skip-slow / SKIP_SLOW=1).")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


# =========================
# Test helpers
# =========================


class DummyClock:
    """Styrbart ur til sensitivity-tests (kun signal-tidsstempler, ikke waits)."""

    def __init__(self, t0: float = 1_000.0):
        self.t = float(t0)

    def now(self) -> float:
        return self.t

    def sleep(self, sec: float) -> None:
        self.t += float(sec)


def start_thread(target, *args) -> tuple[threading.Thread, dict]:
    """Kør target i en tråd og gem resultat/exception i en dict."""
    out: dict = {}

    def _run():
        try:
            out["result"] = target(*args)
        except Exception as e:  # noqa: BLE001 - gemmes til assert i testen
            out["error"] = e

    t = threading.Thread(target=_run, daemon=True)
    t.start()
    return t, out


# =========================
# Fixtures
# =========================


@pytest.fixture
def clock() -> DummyClock:
    return DummyClock()


@pytest.fixture
def broker(clock) -> AlertBroker:
    """Broker uden debounce og med styrbart ur."""
    return AlertBroker(BrokerCfg(sensitivity_s=0.0), clock=clock.now)


@pytest.fixture
def make_broker(clock):
    def _make(**kw) -> AlertBroker:
        kw.setdefault("sensitivity_s", 0.0)
        return AlertBroker(BrokerCfg(**kw), clock=clock.now)

    return _make


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolér ENV og CWD til config-tests."""
    for k in list(os.environ.keys()):
        if k.startswith(("ALERT_", "LOG_DIR", "LOG_LEVEL")):
            monkeypatch.delenv(k, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
