"""Per-user chronological visit record, used for retention metrics only."""

import threading
from datetime import datetime
from typing import Dict, List, Optional, Tuple


class VisitLedger:
    """Append-only map of user_id -> visit timestamps (insertion order)."""

    def __init__(self) -> None:
        self._visits: Dict[str, List[datetime]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _user_lock(self, user_id: str) -> threading.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            with self._registry_lock:
                self._visits.setdefault(user_id, [])
                lock = self._locks.setdefault(user_id, threading.Lock())
        return lock

    def record_visit(self, user_id: str, timestamp: datetime) -> None:
        with self._user_lock(user_id):
            self._visits[user_id].append(timestamp)

    def visits(self, user_id: str) -> Tuple[datetime, ...]:
        """Snapshot of a user's visits; empty for unknown users."""
        return tuple(self._visits.get(user_id, ()))

    def first_visit(self, user_id: str) -> Optional[datetime]:
        visits = self.visits(user_id)
        return min(visits) if visits else None

    def user_ids(self) -> List[str]:
        return list(self._visits.keys())

    def __len__(self) -> int:
        return len(self._visits)
