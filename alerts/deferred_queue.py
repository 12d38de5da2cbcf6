# alerts/deferred_queue.py
from __future__ import annotations

import itertools
from typing import Dict, List, Optional

from core.state import DeferredEntry


class DeferredSignalQueue:
    """
    Transaktions-lokal buffer af signaler.

    Hver åben transaktion har sin egen liste; indholdet er usynligt for andre
    indtil commit (take) og forsvinder ved rollback (discard).
    """

    def __init__(self) -> None:
        self._txids = itertools.count(1)
        self._entries: Dict[int, List[DeferredEntry]] = {}
        self._owner: Dict[int, int] = {}

    def begin(self, backend_id: int) -> int:
        txid = next(self._txids)
        self._entries[txid] = []
        self._owner[txid] = backend_id
        return txid

    def is_open(self, txid: int) -> bool:
        return txid in self._entries

    def append(self, txid: int, name: str, message: str, sender_id: int) -> DeferredEntry:
        entry = DeferredEntry(txid=txid, name=name, message=message, sender_id=sender_id)
        self._entries[txid].append(entry)
        return entry

    def take(self, txid: int) -> Optional[List[DeferredEntry]]:
        """Fjern og returnér transaktionens signaler; None hvis txid er ukendt/afsluttet."""
        self._owner.pop(txid, None)
        return self._entries.pop(txid, None)

    def discard(self, txid: int) -> Optional[int]:
        entries = self.take(txid)
        return None if entries is None else len(entries)

    def open_for(self, backend_id: int) -> List[int]:
        return sorted(t for t, b in self._owner.items() if b == backend_id)

    def __len__(self) -> int:
        return len(self._entries)
