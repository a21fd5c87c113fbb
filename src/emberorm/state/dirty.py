"""
State of a persisted resource carrying unsaved changes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict

from ..validation.pipeline import validate_subjects
from . import persisted
from .base import PersistenceState, logger
from .deleted import Deleted

if TYPE_CHECKING:
    from ..core.model import Model
    from ..core.subject import Subject


class Dirty(PersistenceState):
    """
    Tracks the stored value of every subject changed since the resource was
    last clean. Restoring a subject to its stored value stops tracking it,
    and a resource with nothing tracked is clean again.
    """

    def __init__(self, resource: "Model") -> None:
        super().__init__(resource)
        self._original_attributes: Dict["Subject", Any] = {}

    @property
    def original_attributes(self) -> Dict["Subject", Any]:
        return self._original_attributes

    def get(self, subject: "Subject") -> Any:
        return persisted.get(self, subject)

    def set(self, subject: "Subject", value: Any) -> PersistenceState:
        self._track(subject, subject.typecast(value))
        super().set(subject, value)
        if self._original_attributes:
            return self
        from .clean import Clean

        return Clean(self.resource)

    def delete(self) -> PersistenceState:
        self._reset_resource()
        return Deleted(self.resource)

    def commit(self) -> PersistenceState:
        from .clean import Clean

        self.remove_from_identity_map()
        try:
            state = self.set_child_keys()
            if state is not self:
                # Re-applied parent keys restored every tracked value.
                return state
            if not self._valid_attributes():
                logger.debug("Not updating invalid %s: %s", self.model.__name__, self.resource.errors)
                return self
            self.require_repository().update(
                self.resource.dirty_attributes(), persisted.collection_for_self(self)
            )
            self._original_attributes.clear()
            self.resource._reset_key()
            logger.debug("Updated %s with key %s", self.model.__name__, self.resource.key)
            return Clean(self.resource)
        finally:
            self.add_to_identity_map()

    def rollback(self) -> PersistenceState:
        from .clean import Clean

        self._reset_resource()
        return Clean(self.resource)

    def _track(self, subject: "Subject", value: Any) -> None:
        if subject in self._original_attributes:
            if self._original_attributes[subject] == value:
                del self._original_attributes[subject]
            return
        original = self.get(subject)
        if original != value:
            self._original_attributes[subject] = original

    def _valid_attributes(self) -> bool:
        values = [
            (subject, subject.get_raw(self.resource))
            for subject in self._original_attributes
            if not subject.is_relationship
        ]
        return validate_subjects(self.resource, values)

    def _reset_resource(self) -> None:
        resource = self.resource
        key_fields = set(resource._meta.key)
        key_touched = False
        for subject, original in self._original_attributes.items():
            if subject.is_relationship:
                continue
            subject.set_raw(resource, original)
            key_touched = key_touched or subject in key_fields
        self._original_attributes.clear()
        persisted.reset_relationships(resource)
        if key_touched:
            resource._reset_key()
