"""
Identity map ensuring a single in-memory instance per stored row.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Tuple, Type

if TYPE_CHECKING:
    from ..cache import CacheBackend
    from ..core.model import Model
    from .repository import Repository


Key = Tuple[Any, ...]


class IdentityMap:
    """
    Maps key tuples to the live resource of one model within one repository.

    Entries stay until deleted or the map is cleared. The map does no
    locking; a repository scope is expected to have a single writer.
    When a second-level cache is given, writes and deletes are mirrored into
    it as stored field values, and a miss is served by building a clean
    resource bound to ``repository`` from the cached values.
    """

    def __init__(
        self,
        model: Optional[Type["Model"]] = None,
        *,
        repository: Optional["Repository"] = None,
        second_level_cache: Optional["CacheBackend"] = None,
    ) -> None:
        self.model = model
        self.repository = repository
        self.second_level_cache = second_level_cache
        self._store: Dict[Key, "Model"] = {}

    @staticmethod
    def _check_key(key: Any) -> Key:
        if not isinstance(key, tuple):
            raise TypeError(f"Identity map keys must be tuples, received {type(key).__name__}")
        return key

    def get(self, key: Key) -> Optional["Model"]:
        key = self._check_key(key)
        resource = self._store.get(key)
        if resource is None:
            resource = self._from_cache(key)
        return resource

    def _from_cache(self, key: Key) -> Optional["Model"]:
        cache = self.second_level_cache
        if cache is None or self.model is None or self.repository is None:
            return None
        payload = cache.get(self.model, key)
        if payload is None:
            return None
        resource = self.model.materialize(self.repository, payload)
        self._store[key] = resource
        return resource

    def __getitem__(self, key: Key) -> "Model":
        resource = self.get(key)
        if resource is None:
            raise KeyError(key)
        return resource

    def __setitem__(self, key: Key, resource: "Model") -> None:
        key = self._check_key(key)
        self._store[key] = resource
        cache = self.second_level_cache
        if cache is not None and self.model is not None:
            cache.set(self.model, key, resource.to_dict())

    def delete(self, key: Key) -> Optional["Model"]:
        key = self._check_key(key)
        resource = self._store.pop(key, None)
        cache = self.second_level_cache
        if cache is not None and self.model is not None:
            cache.delete(self.model, key)
        return resource

    def __delitem__(self, key: Key) -> None:
        if self.delete(key) is None:
            raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, tuple) and self.get(key) is not None

    def __len__(self) -> int:
        return len(self._store)

    def __iter__(self) -> Iterator[Key]:
        return iter(list(self._store))

    def values(self) -> List["Model"]:
        return list(self._store.values())

    def clear(self) -> None:
        self._store.clear()

    def __repr__(self) -> str:
        name = self.model.__name__ if self.model else "?"
        return f"<IdentityMap {name} ({len(self)})>"
