# alerts/sensitivity.py
from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from core.state import DEFAULT_SENSITIVITY

from .validation import check_sensitivity

logger = logging.getLogger(__name__)


def now_from(clock: Any) -> float:
    """Monotont 'nu' i sekunder. Understøtter callable clock og clock.now()."""
    if clock is None:
        return time.monotonic()
    if callable(clock):
        return float(clock())
    if hasattr(clock, "now"):
        return float(clock.now())
    return time.monotonic()


class SensitivityFilter:
    """
    Grov debounce pr. alert-navn (ikke pr. abonnent):
      - et signal inden for `threshold` sekunder af sidst leverede signal på
        samme navn droppes
      - ellers noteres tidspunktet og signalet slippes igennem

    Beskytter brokeren mod signal-storme på et varmt navn; en burst kollapser
    til ét leveret signal.
    """

    CLEANUP_ABOVE = 1_000

    def __init__(self, threshold: float = DEFAULT_SENSITIVITY, clock: Any = None):
        self.threshold = check_sensitivity(threshold)
        self.clock = clock
        self.last_delivered: Dict[str, float] = {}

    def set_defaults(self, threshold: float) -> None:
        """Opdater tærsklen proces-bredt; gælder kun fremtidige evalueringer."""
        self.threshold = check_sensitivity(threshold)
        logger.info("Sensitivity sat til %.3fs", self.threshold)

    def should_suppress(self, name: str, now: Optional[float] = None) -> bool:
        if now is None:
            now = now_from(self.clock)
        last = self.last_delivered.get(name)
        if last is not None and now - last < self.threshold:
            return True
        self.last_delivered[name] = now
        # Opportunistisk oprydning
        if len(self.last_delivered) > self.CLEANUP_ABOVE:
            self._cleanup(now)
        return False

    def _cleanup(self, now: float) -> None:
        """Fjern navne hvis vindue for længst er udløbet (billig best effort)."""
        to_del = [k for k, ts in self.last_delivered.items() if now - ts >= self.threshold]
        for k in to_del:
            del self.last_delivered[k]

    @property
    def poll_interval(self) -> float:
        # ingen grund til at polle hurtigere end signaler kan produceres
        return max(0.01, self.threshold)
