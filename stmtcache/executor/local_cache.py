"""
Local Cache - session scoped (first level) result cache
本地缓存（一级缓存）- 会话私有，不与其他会话共享

Every key moves through explicit states:

    ABSENT -> IN_FLIGHT -> RESOLVED(value) -> (evicted)

IN_FLIGHT marks a query that is still executing for this key. It is a state
of the entry, not a value, so no legitimate result can be mistaken for it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Hashable, Optional


class EntryState(Enum):
    ABSENT = "absent"
    IN_FLIGHT = "in_flight"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class LocalCacheEntry:
    state: EntryState
    value: Any = None


_IN_FLIGHT = LocalCacheEntry(EntryState.IN_FLIGHT)


class LocalCache:
    """Plain dictionary cache, owned by exactly one executor"""

    def __init__(self, cache_id: str):
        self.id = cache_id
        self._entries: Dict[Hashable, LocalCacheEntry] = {}

    def state(self, key: Hashable) -> EntryState:
        entry = self._entries.get(key)
        return entry.state if entry is not None else EntryState.ABSENT

    def is_resolved(self, key: Hashable) -> bool:
        return self.state(key) is EntryState.RESOLVED

    def is_in_flight(self, key: Hashable) -> bool:
        return self.state(key) is EntryState.IN_FLIGHT

    def get(self, key: Hashable) -> Optional[Any]:
        """Resolved value, or None for absent and in-flight keys"""
        entry = self._entries.get(key)
        if entry is None or entry.state is not EntryState.RESOLVED:
            return None
        return entry.value

    def mark_in_flight(self, key: Hashable) -> None:
        self._entries[key] = _IN_FLIGHT

    def resolve(self, key: Hashable, value: Any) -> None:
        self._entries[key] = LocalCacheEntry(EntryState.RESOLVED, value)

    def remove(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __repr__(self) -> str:
        return f"LocalCache(id={self.id!r}, size={len(self._entries)})"
