"""
State of a persisted resource whose deletion is pending.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from . import persisted
from .base import PersistenceState, logger
from .errors import ImmutableDeletedModificationError
from .immutable import Immutable

if TYPE_CHECKING:
    from ..core.subject import Subject


class Deleted(PersistenceState):
    def get(self, subject: "Subject") -> Any:
        return persisted.get(self, subject)

    def set(self, subject: "Subject", value: Any) -> PersistenceState:
        raise ImmutableDeletedModificationError("Deleted resource cannot be modified")

    def delete(self) -> PersistenceState:
        return self

    def commit(self) -> PersistenceState:
        self.require_repository().delete(persisted.collection_for_self(self))
        self.remove_from_identity_map()
        logger.debug("Deleted %s with key %s", self.model.__name__, self.resource.key)
        return Immutable(self.resource)

    def rollback(self) -> PersistenceState:
        return self
