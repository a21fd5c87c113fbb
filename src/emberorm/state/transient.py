"""
State of a resource that has never been persisted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict

from ..validation.pipeline import validate_subjects
from .base import PersistenceState, logger
from .clean import Clean

if TYPE_CHECKING:
    from ..core.model import Model
    from ..core.subject import Subject


class Transient(PersistenceState):
    def __init__(self, resource: "Model") -> None:
        super().__init__(resource)
        self._original_attributes: Dict["Subject", Any] = {}

    @property
    def original_attributes(self) -> Dict["Subject", Any]:
        return self._original_attributes

    def get(self, subject: "Subject") -> Any:
        self._set_default_value(subject)
        return super().get(subject)

    def set(self, subject: "Subject", value: Any) -> PersistenceState:
        # New resources have no stored value to revert to.
        self._original_attributes[subject] = None
        return super().set(subject, value)

    def delete(self) -> PersistenceState:
        return self

    def commit(self) -> PersistenceState:
        self.set_child_keys()
        self._set_default_values()
        if not self._valid_attributes():
            logger.debug("Not creating invalid %s: %s", self.model.__name__, self.resource.errors)
            return self

        repository = self.require_repository()
        repository.create([self.resource])
        self.resource._repository = repository
        self.add_to_identity_map()
        logger.debug("Created %s with key %s", self.model.__name__, self.resource.key)
        return Clean(self.resource)

    def rollback(self) -> PersistenceState:
        return self

    def _set_default_values(self) -> None:
        for subject in (*self.properties, *self.relationships):
            self._set_default_value(subject)

    def _set_default_value(self, subject: "Subject") -> None:
        if subject.loaded(self.resource) or not subject.has_default:
            return
        self.set(subject, subject.default_for(self.resource))

    def _valid_attributes(self) -> bool:
        values = [(field, self.get(field)) for field in self.properties]
        return validate_subjects(self.resource, values, exempt_unassigned_serial=True)
