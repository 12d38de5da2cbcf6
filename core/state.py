# core/state.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional

# Oracle-kompatible grænser for dbms_alert
MAX_NAME_LENGTH = 30
MAX_MESSAGE_LENGTH = 1800

# "Vent uendeligt" – samme sentinel som Oracle (1000 dage i sekunder)
MAXWAIT = 86_400_000

DEFAULT_SENSITIVITY = 0.25


class WaitStatus(IntEnum):
    """Statuskoder som returneres af waitone/waitany (0 = signal, 1 = timeout)."""

    SUCCESS = 0
    TIMEOUT = 1


class WaitState(Enum):
    IDLE = "idle"
    POLLING = "polling"
    DELIVERED = "delivered"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


@dataclass
class PendingSignal:
    """
    Et ikke-leveret signal i en backends postkasse.
    - enqueued_at: monotont tidspunkt for det commit der skrev signalet
    """

    backend_id: int
    name: str
    message: str
    enqueued_at: float

    def sort_key(self) -> tuple[float, str]:
        # tidligste først, derefter navn leksikografisk
        return (self.enqueued_at, self.name)


@dataclass(frozen=True)
class DeferredEntry:
    txid: int
    name: str
    message: str
    sender_id: int


@dataclass(frozen=True)
class WaitResult:
    """Resultat af waitone/waitany. message er tom ved timeout."""

    name: Optional[str]
    message: str
    status: WaitStatus

    @property
    def ok(self) -> bool:
        return self.status is WaitStatus.SUCCESS

    @classmethod
    def timeout(cls, name: Optional[str] = None) -> "WaitResult":
        return cls(name=name, message="", status=WaitStatus.TIMEOUT)

    @classmethod
    def delivered(cls, sig: PendingSignal) -> "WaitResult":
        return cls(name=sig.name, message=sig.message, status=WaitStatus.SUCCESS)
