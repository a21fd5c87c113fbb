"""
Terminal state: the resource can no longer change or touch storage.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .base import PersistenceState
from .errors import ImmutableLazyLoadError, ImmutableModificationError

if TYPE_CHECKING:
    from ..core.subject import Subject


class Immutable(PersistenceState):
    def get(self, subject: "Subject") -> Any:
        if not subject.loaded(self.resource):
            raise ImmutableLazyLoadError(
                f"Immutable resource cannot lazy load '{subject.name}'"
            )
        return super().get(subject)

    def set(self, subject: "Subject", value: Any) -> PersistenceState:
        raise ImmutableModificationError("Immutable resource cannot be modified")

    def delete(self) -> PersistenceState:
        raise ImmutableModificationError("Immutable resource cannot be deleted")

    def commit(self) -> PersistenceState:
        return self

    def rollback(self) -> PersistenceState:
        return self
