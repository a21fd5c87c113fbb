"""
State of a persisted resource that matches storage.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from . import persisted
from .base import PersistenceState
from .deleted import Deleted

if TYPE_CHECKING:
    from ..core.subject import Subject


class Clean(PersistenceState):
    def get(self, subject: "Subject") -> Any:
        return persisted.get(self, subject)

    def set(self, subject: "Subject", value: Any) -> PersistenceState:
        if self._not_modified(subject, value):
            return self
        from .dirty import Dirty

        # Installed before delegating so that a relationship assigning its
        # child key lands on this same Dirty state.
        state = Dirty(self.resource)
        self.resource.persistence_state = state
        return state.set(subject, value)

    def delete(self) -> PersistenceState:
        persisted.reset_relationships(self.resource)
        return Deleted(self.resource)

    def commit(self) -> PersistenceState:
        return self

    def rollback(self) -> PersistenceState:
        return self

    def _not_modified(self, subject: "Subject", value: Any) -> bool:
        if not subject.loaded(self.resource):
            return False
        return subject.get(self.resource) == subject.typecast(value)
