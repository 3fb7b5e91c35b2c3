"""
Connection registry module.

This module keeps the in-memory map of live connections to presence data.
"""

import threading
import time
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional


@dataclass
class PresenceEntry:
    """Presence information for a joined connection."""
    connection_id: str
    display_name: str
    joined_at: float
    avatar_ref: Optional[str] = None


class ConnectionRegistry:
    """
    Single source of truth for who is present.

    Every operation holds the lock for its whole duration, so concurrent
    callers never observe a partial update. Lookups return copies; the
    registry keeps the only live PresenceEntry objects.
    """

    def __init__(self):
        self._entries: Dict[str, PresenceEntry] = {}  # connection_id -> entry
        self._lock = threading.Lock()

    def insert(self, connection_id: str, display_name: str) -> None:
        """Register a connection. An existing entry for the id is replaced."""
        with self._lock:
            self._entries[connection_id] = PresenceEntry(
                connection_id=connection_id,
                display_name=display_name,
                joined_at=time.time(),
            )

    def update_avatar(self, connection_id: str, avatar_ref: str) -> None:
        """Set the avatar reference of a present connection; no-op if absent."""
        with self._lock:
            entry = self._entries.get(connection_id)
            if entry is not None:
                entry.avatar_ref = avatar_ref

    def remove(self, connection_id: str) -> Optional[PresenceEntry]:
        with self._lock:
            return self._entries.pop(connection_id, None)

    def remove_many(self, connection_ids: Iterable[str]) -> List[PresenceEntry]:
        """Remove the given ids in one step and return the entries that existed."""
        with self._lock:
            removed = []
            for connection_id in connection_ids:
                entry = self._entries.pop(connection_id, None)
                if entry is not None:
                    removed.append(entry)
            return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def lookup(self, connection_id: str) -> Optional[PresenceEntry]:
        with self._lock:
            entry = self._entries.get(connection_id)
            return replace(entry) if entry is not None else None

    def snapshot(self) -> List[str]:
        """Ids present at the moment of the call."""
        with self._lock:
            return list(self._entries)

    def entries(self) -> List[PresenceEntry]:
        with self._lock:
            return [replace(entry) for entry in self._entries.values()]

    def __contains__(self, connection_id: str) -> bool:
        with self._lock:
            return connection_id in self._entries

    def __len__(self) -> int:
        return self.size()
