# alerts/broker.py
from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Dict, List, Optional

from config.env_loader import BrokerCfg, load_config
from core.state import DeferredEntry, WaitResult
from utils.errors import (
    CapacityError,
    InvalidArgumentError,
    NotInTransactionError,
    SessionGoneError,
)

from . import metrics
from .deferred_queue import DeferredSignalQueue
from .pending_store import PendingSignalStore
from .registry import SubscriptionRegistry
from .sensitivity import SensitivityFilter, now_from
from .session import AlertSession
from .validation import check_message, check_name, check_sensitivity
from .wait_engine import WaitEngine

logger = logging.getLogger(__name__)


class AlertBroker:
    """
    Transaktionel alert-broker (dbms_alert-stil).

    Delt tilstand (registry + postkasser) muteres under én broker-lås, som
    aldrig holdes hen over en blokerende wait. Signaler bufferes pr.
    transaktion og skrives først ud ved on_commit(); on_rollback() smider dem
    væk. Værtsmotoren (eller AlertSession) kalder hooks direkte:

        on_commit(txid) / on_rollback(txid) / on_session_end(backend_id)
    """

    def __init__(self, cfg: Optional[BrokerCfg] = None, clock: Any = None):
        self.cfg = (cfg or BrokerCfg()).validate()
        self.deliver_to_sender = self.cfg.deliver_to_sender
        self.clock = clock

        self._lock = threading.RLock()
        self._cond = threading.Condition(self._lock)
        self._backend_ids = itertools.count(1)
        self._alive: Dict[int, AlertSession] = {}

        self.registry = SubscriptionRegistry(self.cfg.max_subscriptions_per_backend)
        self.store = PendingSignalStore(self.cfg.max_pending)
        self.deferred = DeferredSignalQueue()
        self.sensitivity = SensitivityFilter(self.cfg.sensitivity_s, clock=clock)
        self.waits = WaitEngine(
            self._cond,
            self.registry,
            self.store,
            poll_interval=lambda: self.sensitivity.poll_interval,
            is_alive=self.is_alive,
        )
        metrics.ensure_registered()

    # ------------------------- sessions -------------------------

    def open_session(self, backend_id: Optional[int] = None) -> AlertSession:
        """Opret en session. Værten kan angive sit eget backend-id (fx pid)."""
        with self._lock:
            if backend_id is None:
                backend_id = next(self._backend_ids)
                while backend_id in self._alive:
                    backend_id = next(self._backend_ids)
            elif backend_id in self._alive:
                raise InvalidArgumentError(f"backend {backend_id} har allerede en åben session")
            session = AlertSession(self, backend_id)
            self._alive[backend_id] = session
        logger.debug("Session åbnet: backend=%s", backend_id)
        return session

    def is_alive(self, backend_id: int) -> bool:
        return backend_id in self._alive

    def _check_alive(self, backend_id: int) -> None:
        if backend_id not in self._alive:
            raise SessionGoneError(f"backend {backend_id} er ikke forbundet")

    # ------------------------- registry -------------------------

    def register(self, backend_id: int, name: str) -> None:
        name = check_name(name)
        with self._lock:
            self._check_alive(backend_id)
            if self.registry.register(backend_id, name):
                logger.debug("register backend=%s name=%s", backend_id, name)

    def remove(self, backend_id: int, name: str) -> None:
        name = check_name(name)
        with self._lock:
            self._check_alive(backend_id)
            if self.registry.remove(backend_id, name):
                self.store.drop(backend_id, name)
                metrics.set_pending(len(self.store))
                logger.debug("remove backend=%s name=%s", backend_id, name)

    def removeall(self, backend_id: int) -> None:
        with self._lock:
            self._check_alive(backend_id)
            self._removeall_locked(backend_id)

    def _removeall_locked(self, backend_id: int) -> None:
        names = self.registry.removeall(backend_id)
        dropped = self.store.drop_backend(backend_id)
        metrics.set_pending(len(self.store))
        if names or dropped:
            logger.debug(
                "removeall backend=%s names=%s pending_dropped=%d", backend_id, names, dropped
            )

    def set_defaults(self, sensitivity: float) -> None:
        value = check_sensitivity(sensitivity)
        with self._lock:
            self.sensitivity.set_defaults(value)
            # vågn ventere så de tager det nye poll-interval i brug
            self._cond.notify_all()

    # ------------------------- transactions -------------------------

    def begin(self, backend_id: int) -> int:
        with self._lock:
            self._check_alive(backend_id)
            txid = self.deferred.begin(backend_id)
        logger.debug("begin backend=%s tx=%s", backend_id, txid)
        return txid

    def signal(
        self,
        sender_id: int,
        name: str,
        message: Any = "",
        txid: Optional[int] = None,
    ) -> Optional[DeferredEntry]:
        """
        Læg et signal i transaktionens kø. Uden txid pakkes kaldet ind i sin
        egen transaktion der committer med det samme.
        """
        name = check_name(name)
        message = check_message(message)
        if txid is None:
            tx = self.begin(sender_id)
            try:
                entry = self._append(tx, sender_id, name, message)
            except Exception:
                self.on_rollback(tx)
                raise
            self.on_commit(tx)
            return entry
        return self._append(txid, sender_id, name, message)

    def _append(self, txid: int, sender_id: int, name: str, message: str) -> DeferredEntry:
        with self._lock:
            self._check_alive(sender_id)
            if not self.deferred.is_open(txid):
                raise NotInTransactionError(f"transaktion {txid} er ikke åben")
            entry = self.deferred.append(txid, name, message, sender_id)
        logger.debug("signal sender=%s name=%s tx=%s (deferred)", sender_id, name, txid)
        return entry

    def on_commit(self, txid: int) -> int:
        """
        Commit-hook. Returnerer antal skrevne pending-signaler. Fejl under
        fan-out logges og droppes; commit'en selv må aldrig fejle pga. alerts.
        """
        with self._lock:
            entries = self.deferred.take(txid)
            if entries is None:
                logger.debug("on_commit: tx=%s ukendt eller allerede afsluttet", txid)
                return 0
            if not entries:
                return 0
            try:
                delivered = self._fan_out_locked(txid, entries)
            except Exception:
                logger.exception("Fan-out fejlede for tx=%s; %d signal(er) droppet", txid, len(entries))
                metrics.inc_signal("dropped", len(entries))
                delivered = 0
            self._cond.notify_all()
        return delivered

    def _fan_out_locked(self, txid: int, entries: List[DeferredEntry]) -> int:
        now = now_from(self.clock)
        delivered = committed = suppressed = dropped = 0
        for e in entries:
            if self.sensitivity.should_suppress(e.name, now):
                suppressed += 1
                logger.debug("Signal '%s' undertrykt (inden for sensitivity-vindue)", e.name)
                continue
            committed += 1
            for backend_id in self.registry.subscribers(e.name):
                if backend_id == e.sender_id and not self.deliver_to_sender:
                    continue
                try:
                    self.store.put(backend_id, e.name, e.message, now)
                except CapacityError as exc:
                    dropped += 1
                    logger.warning(
                        "Signal '%s' til backend=%s droppet: %s", e.name, backend_id, exc
                    )
                    continue
                delivered += 1

        metrics.inc_signal("committed", committed)
        metrics.inc_signal("suppressed", suppressed)
        metrics.inc_signal("dropped", dropped)
        metrics.inc_deliveries(delivered)
        metrics.set_pending(len(self.store))
        logger.info(
            "Commit tx=%s: signaler=%d leveret=%d undertrykt=%d droppet=%d",
            txid,
            committed,
            delivered,
            suppressed,
            dropped,
        )
        return delivered

    def on_rollback(self, txid: int) -> int:
        with self._lock:
            n = self.deferred.discard(txid)
        if n is None:
            logger.debug("on_rollback: tx=%s ukendt eller allerede afsluttet", txid)
            return 0
        metrics.inc_signal("rolled_back", n)
        if n:
            logger.info("Rollback tx=%s: %d signal(er) kasseret", txid, n)
        return n

    def on_session_end(self, backend_id: int) -> None:
        """Session-hook: ruller åbne transaktioner tilbage og kalder removeall."""
        with self._lock:
            if self._alive.pop(backend_id, None) is None:
                return
            for txid in self.deferred.open_for(backend_id):
                n = self.deferred.discard(txid) or 0
                metrics.inc_signal("rolled_back", n)
            self._removeall_locked(backend_id)
            # ventere på denne backend skal opdage at sessionen er væk
            self._cond.notify_all()
        logger.debug("Session afsluttet: backend=%s", backend_id)

    # ------------------------- waits -------------------------

    def waitone(self, backend_id: int, name: str, timeout: Optional[float]) -> WaitResult:
        self._check_alive(backend_id)
        return self.waits.waitone(backend_id, name, timeout)

    def waitany(self, backend_id: int, timeout: Optional[float]) -> WaitResult:
        self._check_alive(backend_id)
        return self.waits.waitany(backend_id, timeout)

    # ------------------------- introspection -------------------------

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "sessions": len(self._alive),
                "subscriptions": len(self.registry),
                "pending": len(self.store),
                "open_transactions": len(self.deferred),
                "waiting": self.waits.waiting,
                "sensitivity_s": self.sensitivity.threshold,
                "deliver_to_sender": self.deliver_to_sender,
            }


# ---------------------------------------------------------------------------
# Proces-bred default-broker (bruges af api/app.py og demo-scriptet)
# ---------------------------------------------------------------------------

_DEFAULT: Optional[AlertBroker] = None
_DEFAULT_LOCK = threading.Lock()


def get_broker() -> AlertBroker:
    global _DEFAULT
    with _DEFAULT_LOCK:
        if _DEFAULT is None:
            _DEFAULT = AlertBroker(load_config())
            logger.info("Default AlertBroker oprettet: %s", _DEFAULT.stats())
        return _DEFAULT


def reset_broker(broker: Optional[AlertBroker] = None) -> None:
    """Udskift (eller nulstil) default-brokeren; primært til tests."""
    global _DEFAULT
    with _DEFAULT_LOCK:
        _DEFAULT = broker
