# alerts/metrics.py
"""
Prometheus metrics for alert-brokeren.

- Idempotent og reload-sikker registrering via ensure_registered().
- Helper-funktionerne kalder selv ensure_registered(), så brokeren aldrig
  skal tænke på rækkefølge.
"""

from __future__ import annotations

from typing import Any, Dict

from prometheus_client import REGISTRY, Counter, Gauge, Histogram

# sekund-buckets til wait-varighed (fra non-blocking til lange waits)
_WAIT_BUCKETS = (0.001, 0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60, 300)

alert_signals_total: Counter | None = None
alert_deliveries_total: Counter | None = None
alert_waits_total: Counter | None = None
alert_pending_signals: Gauge | None = None
alert_wait_seconds: Histogram | None = None

_METRICS_READY = False

_NAMES = (
    "alert_signals",
    "alert_deliveries",
    "alert_waits",
    "alert_pending_signals",
    "alert_wait_seconds",
)


def _registry_lookup(name: str) -> Any | None:
    try:
        mapping: Dict[str, Any] = getattr(REGISTRY, "_names_to_collectors", {})  # type: ignore[attr-defined]
        return mapping.get(name)
    except Exception:
        return None


def ensure_registered() -> None:
    """Opret (én gang) alle metrikker. Reload-sikker."""
    global _METRICS_READY
    if _METRICS_READY:
        return

    global alert_signals_total, alert_deliveries_total, alert_waits_total
    global alert_pending_signals, alert_wait_seconds

    # Rebind hvis de allerede findes (fx efter importlib.reload)
    existing = {n: _registry_lookup(n) for n in _NAMES}
    if all(v is not None for v in existing.values()):
        alert_signals_total = existing["alert_signals"]
        alert_deliveries_total = existing["alert_deliveries"]
        alert_waits_total = existing["alert_waits"]
        alert_pending_signals = existing["alert_pending_signals"]
        alert_wait_seconds = existing["alert_wait_seconds"]
        _METRICS_READY = True
        return

    alert_signals_total = Counter(
        "alert_signals_total",
        "Signaler pr. udfald (committed/suppressed/rolled_back/dropped)",
        labelnames=("outcome",),
    )
    alert_deliveries_total = Counter(
        "alert_deliveries_total",
        "Pending-signaler skrevet til abonnenters postkasser",
    )
    alert_waits_total = Counter(
        "alert_waits_total",
        "Afsluttede waitone/waitany kald pr. status",
        labelnames=("op", "status"),
    )
    alert_pending_signals = Gauge(
        "alert_pending_signals",
        "Antal ikke-leverede signaler på tværs af backends",
    )
    alert_wait_seconds = Histogram(
        "alert_wait_seconds",
        "Varighed af waitone/waitany (sekunder)",
        labelnames=("op",),
        buckets=_WAIT_BUCKETS,
    )
    _METRICS_READY = True


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def inc_signal(outcome: str, n: int = 1) -> None:
    ensure_registered()
    if n > 0:
        alert_signals_total.labels(outcome=outcome).inc(n)  # type: ignore[union-attr]


def inc_deliveries(n: int) -> None:
    ensure_registered()
    if n > 0:
        alert_deliveries_total.inc(n)  # type: ignore[union-attr]


def set_pending(n: int) -> None:
    ensure_registered()
    alert_pending_signals.set(n)  # type: ignore[union-attr]


def observe_wait(op: str, status: str, seconds: float) -> None:
    ensure_registered()
    alert_waits_total.labels(op=op, status=status).inc()  # type: ignore[union-attr]
    alert_wait_seconds.labels(op=op).observe(max(0.0, seconds))  # type: ignore[union-attr]
