# alerts/wait_engine.py
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from core.state import PendingSignal, WaitResult, WaitState, WaitStatus
from utils.errors import SessionGoneError

from . import metrics
from .pending_store import PendingSignalStore
from .registry import SubscriptionRegistry
from .validation import check_name, normalize_timeout

logger = logging.getLogger(__name__)


class WaitEngine:
    """
    Implementerer waitone/waitany som en lille tilstandsmaskine pr. kald:

        IDLE -> POLLING -> {DELIVERED, TIMED_OUT, CANCELLED}

    Venter på en Condition bundet til broker-låsen. Commits og session-ende
    kalder notify_all, men hver søvn er også kappet til poll-intervallet, så
    resultatet er det samme som ren polling hvis en wake-up går tabt. Låsen
    er sluppet mens vi sover.
    """

    def __init__(
        self,
        cond: threading.Condition,
        registry: SubscriptionRegistry,
        store: PendingSignalStore,
        poll_interval: Callable[[], float],
        is_alive: Callable[[int], bool],
        clock: Callable[[], float] = time.monotonic,
    ):
        self._cond = cond
        self._registry = registry
        self._store = store
        self._poll_interval = poll_interval
        self._is_alive = is_alive
        self._clock = clock
        self.waiting = 0

    # ------------------------- public API -------------------------

    def waitone(self, backend_id: int, name: str, timeout: Optional[float]) -> WaitResult:
        name = check_name(name)
        result = self._wait(
            "waitone",
            backend_id,
            timeout,
            lambda: self._store.take(backend_id, name),
        )
        return result if result.ok else WaitResult.timeout(name)

    def waitany(self, backend_id: int, timeout: Optional[float]) -> WaitResult:
        # navnene slås op ved hver poll, så register/remove under ventetid tæller med
        return self._wait(
            "waitany",
            backend_id,
            timeout,
            lambda: self._store.take_earliest(backend_id, self._registry.names_for(backend_id)),
        )

    # ------------------------- internals -------------------------

    def _wait(
        self,
        op: str,
        backend_id: int,
        timeout: Optional[float],
        take: Callable[[], Optional[PendingSignal]],
    ) -> WaitResult:
        timeout_s = normalize_timeout(timeout)
        t0 = self._clock()
        deadline = t0 + timeout_s
        state = WaitState.IDLE

        with self._cond:
            self.waiting += 1
            state = WaitState.POLLING
            try:
                while True:
                    if not self._is_alive(backend_id):
                        state = WaitState.CANCELLED
                        raise SessionGoneError(f"backend {backend_id} afsluttet under {op}")
                    sig = take()
                    if sig is not None:
                        state = WaitState.DELIVERED
                        metrics.set_pending(len(self._store))
                        return WaitResult.delivered(sig)
                    remaining = deadline - self._clock()
                    if remaining <= 0:
                        state = WaitState.TIMED_OUT
                        return WaitResult.timeout()
                    self._cond.wait(min(remaining, self._poll_interval()))
            finally:
                self.waiting -= 1
                elapsed = self._clock() - t0
                status = {
                    WaitState.DELIVERED: WaitStatus.SUCCESS.name.lower(),
                    WaitState.TIMED_OUT: WaitStatus.TIMEOUT.name.lower(),
                }.get(state, state.value)
                metrics.observe_wait(op, status, elapsed)
                logger.debug(
                    "%s backend=%s state=%s elapsed=%.3fs", op, backend_id, state.value, elapsed
                )
