# alerts/registry.py
from __future__ import annotations

import logging
from typing import Dict, List, Set

from utils.errors import CapacityError

logger = logging.getLogger(__name__)


class SubscriptionRegistry:
    """
    Holder styr på hvilke backends der lytter på hvilke alert-navne.

    Ikke selv trådsikker: AlertBroker kalder alle metoder under sin broker-lås,
    så registry og postkasser muteres atomisk sammen.
    """

    def __init__(self, max_per_backend: int = 256):
        self.max_per_backend = int(max_per_backend)
        self._by_backend: Dict[int, Set[str]] = {}
        self._by_name: Dict[str, Set[int]] = {}

    def register(self, backend_id: int, name: str) -> bool:
        """Returnerer True hvis abonnementet er nyt (idempotent ved dublet)."""
        names = self._by_backend.get(backend_id)
        if names is not None and name in names:
            return False
        if names is not None and len(names) >= self.max_per_backend:
            raise CapacityError(
                f"backend {backend_id} har allerede {len(names)} abonnementer (max {self.max_per_backend})"
            )
        self._by_backend.setdefault(backend_id, set()).add(name)
        self._by_name.setdefault(name, set()).add(backend_id)
        return True

    def remove(self, backend_id: int, name: str) -> bool:
        names = self._by_backend.get(backend_id)
        if not names or name not in names:
            return False
        names.discard(name)
        if not names:
            del self._by_backend[backend_id]
        subs = self._by_name.get(name)
        if subs is not None:
            subs.discard(backend_id)
            if not subs:
                # navnet er kun en label; intet andet at rydde op
                del self._by_name[name]
        return True

    def removeall(self, backend_id: int) -> List[str]:
        """Fjern alle abonnementer for en backend og returnér de fjernede navne."""
        names = sorted(self._by_backend.get(backend_id, ()))
        for name in names:
            self.remove(backend_id, name)
        return names

    def subscribers(self, name: str) -> List[int]:
        return sorted(self._by_name.get(name, ()))

    def names_for(self, backend_id: int) -> List[str]:
        return sorted(self._by_backend.get(backend_id, ()))

    def __len__(self) -> int:
        return sum(len(v) for v in self._by_backend.values())
