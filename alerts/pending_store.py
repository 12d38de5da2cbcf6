# alerts/pending_store.py
from __future__ import annotations

from typing import Dict, Iterable, Optional, Tuple

from core.state import PendingSignal
from utils.errors import CapacityError


class PendingSignalStore:
    """
    Postkasse pr. backend med højst ét ikke-leveret signal pr. (backend, navn).

    Et nyere signal overskriver et ældre (last-write-wins), så det er en
    broadcast-semantik og ikke en kø. Ligesom SubscriptionRegistry forventes
    alle kald at ske under broker-låsen.
    """

    def __init__(self, max_pending: int = 65_536):
        self.max_pending = int(max_pending)
        self._slots: Dict[Tuple[int, str], PendingSignal] = {}

    def put(self, backend_id: int, name: str, message: str, enqueued_at: float) -> bool:
        """
        Skriv et signal. Returnerer True hvis et ældre signal blev overskrevet.
        Kaster CapacityError hvis der skal bruges en ny plads og store er fuld.
        """
        key = (backend_id, name)
        replaced = key in self._slots
        if not replaced and len(self._slots) >= self.max_pending:
            raise CapacityError(f"ingen ledige pending-pladser (max {self.max_pending})")
        self._slots[key] = PendingSignal(
            backend_id=backend_id, name=name, message=message, enqueued_at=enqueued_at
        )
        return replaced

    def take(self, backend_id: int, name: str) -> Optional[PendingSignal]:
        return self._slots.pop((backend_id, name), None)

    def take_earliest(self, backend_id: int, names: Iterable[str]) -> Optional[PendingSignal]:
        """Tag det tidligst enqueued signal blandt names (uafgjort: navn leksikografisk)."""
        candidates = [
            sig
            for sig in (self._slots.get((backend_id, n)) for n in names)
            if sig is not None
        ]
        if not candidates:
            return None
        best = min(candidates, key=PendingSignal.sort_key)
        return self._slots.pop((backend_id, best.name))

    def drop(self, backend_id: int, name: str) -> bool:
        return self._slots.pop((backend_id, name), None) is not None

    def drop_backend(self, backend_id: int) -> int:
        keys = [k for k in self._slots if k[0] == backend_id]
        for k in keys:
            del self._slots[k]
        return len(keys)

    def __len__(self) -> int:
        return len(self._slots)
