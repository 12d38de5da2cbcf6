# alerts/session.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, Optional

from core.state import MAXWAIT, WaitResult
from utils.errors import NotInTransactionError

if TYPE_CHECKING:
    from .broker import AlertBroker

logger = logging.getLogger(__name__)


class AlertSession:
    """
    Håndtag for én backend (database-session) mod en AlertBroker.

    Eksponerer dbms_alert-operationerne uden backend-id:
        register / remove / removeall / set_defaults / signal / waitone / waitany

    samt begin/commit/rollback og transaction() som kontekst-manager.
    signal() uden åben transaktion committer med det samme.
    """

    def __init__(self, broker: "AlertBroker", backend_id: int):
        self.broker = broker
        self.backend_id = backend_id
        self._txid: Optional[int] = None

    def __repr__(self) -> str:
        return f"AlertSession(backend_id={self.backend_id}, txid={self._txid}, closed={self.closed})"

    @property
    def closed(self) -> bool:
        return not self.broker.is_alive(self.backend_id)

    @property
    def in_transaction(self) -> bool:
        return self._txid is not None

    @property
    def txid(self) -> Optional[int]:
        return self._txid

    # ---------- dbms_alert ----------

    def register(self, name: str) -> None:
        self.broker.register(self.backend_id, name)

    def remove(self, name: str) -> None:
        self.broker.remove(self.backend_id, name)

    def removeall(self) -> None:
        self.broker.removeall(self.backend_id)

    def set_defaults(self, sensitivity: float) -> None:
        self.broker.set_defaults(sensitivity)

    def signal(self, name: str, message: Any = "") -> None:
        self.broker.signal(self.backend_id, name, message, txid=self._txid)

    def waitone(self, name: str, timeout: Optional[float] = MAXWAIT) -> WaitResult:
        return self.broker.waitone(self.backend_id, name, timeout)

    def waitany(self, timeout: Optional[float] = MAXWAIT) -> WaitResult:
        return self.broker.waitany(self.backend_id, timeout)

    # ---------- transaktioner ----------

    def begin(self) -> int:
        if self._txid is not None:
            # som PostgreSQL: BEGIN i en åben transaktion er kun en advarsel
            logger.warning("backend=%s: der er allerede en transaktion i gang", self.backend_id)
            return self._txid
        self._txid = self.broker.begin(self.backend_id)
        return self._txid

    def commit(self) -> int:
        txid = self._take_txid("commit")
        return self.broker.on_commit(txid)

    def rollback(self) -> int:
        txid = self._take_txid("rollback")
        return self.broker.on_rollback(txid)

    def _take_txid(self, op: str) -> int:
        if self._txid is None:
            raise NotInTransactionError(f"{op} uden åben transaktion (backend {self.backend_id})")
        txid, self._txid = self._txid, None
        return txid

    @contextmanager
    def transaction(self) -> Iterator["AlertSession"]:
        """
        Commit ved normal exit, rollback ved exception. En indlejret
        transaction() i en allerede åben transaktion afslutter ikke den ydre.
        """
        if self._txid is not None:
            yield self
            return
        self.begin()
        try:
            yield self
        except BaseException:
            if self._txid is not None:
                self.rollback()
            raise
        else:
            if self._txid is not None:
                self.commit()

    # ---------- livscyklus ----------

    def close(self) -> None:
        self._txid = None
        self.broker.on_session_end(self.backend_id)

    def __enter__(self) -> "AlertSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
