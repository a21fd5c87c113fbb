"""Second-level cache backends consulted by identity maps."""

from __future__ import annotations

from threading import RLock
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol, Tuple, Type

if TYPE_CHECKING:
    from ..core.model import Model


Key = Tuple[Any, ...]
Payload = Dict[str, Any]


class CacheBackend(Protocol):
    def get(self, model: Type["Model"], key: Key) -> Optional[Payload]: ...

    def set(self, model: Type["Model"], key: Key, payload: Payload) -> None: ...

    def delete(self, model: Type["Model"], key: Key) -> None: ...

    def clear(self) -> None: ...


class NoOpCache:
    def get(self, model: Type["Model"], key: Key) -> Optional[Payload]:
        return None

    def set(self, model: Type["Model"], key: Key, payload: Payload) -> None:
        return None

    def delete(self, model: Type["Model"], key: Key) -> None:
        return None

    def clear(self) -> None:
        return None


class InMemoryCache:
    """
    Process-local cache that outlives a single repository scope.

    Entries are the stored field values of a resource, never the resource
    itself, so every repository builds its own instance from them.
    """

    def __init__(self) -> None:
        self._store: Dict[Tuple[Type["Model"], Key], Payload] = {}
        self._lock = RLock()

    def get(self, model: Type["Model"], key: Key) -> Optional[Payload]:
        with self._lock:
            payload = self._store.get((model, key))
            return dict(payload) if payload is not None else None

    def set(self, model: Type["Model"], key: Key, payload: Payload) -> None:
        with self._lock:
            self._store[(model, key)] = dict(payload)

    def delete(self, model: Type["Model"], key: Key) -> None:
        with self._lock:
            self._store.pop((model, key), None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
