"""
Abstract persistence state shared by every variant.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from ..utils import get_logger
from .errors import RepositoryNotBoundError, UnimplementedOperationError

if TYPE_CHECKING:
    from ..core.model import Model
    from ..core.subject import Subject
    from ..persistence.identity_map import IdentityMap
    from ..persistence.repository import Repository


logger = get_logger("state")

_NO_CHANGES: Mapping[Any, Any] = MappingProxyType({})


class PersistenceState:
    """
    The state a resource is in with respect to storage.

    A resource owns exactly one state at a time. Every operation returns the
    state the resource should hold next; callers assign it back to
    ``resource.persistence_state``.
    """

    def __init__(self, resource: "Model") -> None:
        self.resource = resource

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PersistenceState):
            return NotImplemented
        return type(self) is type(other) and self.resource is other.resource

    def __hash__(self) -> int:
        return hash((type(self), id(self.resource)))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.resource!r}>"

    @property
    def model(self) -> type["Model"]:
        return type(self.resource)

    @property
    def original_attributes(self) -> Mapping["Subject", Any]:
        return _NO_CHANGES

    # Operations -----------------------------------------------------------
    def get(self, subject: "Subject") -> Any:
        return subject.get(self.resource)

    def set(self, subject: "Subject", value: Any) -> "PersistenceState":
        subject.set(self.resource, value)
        return self

    def delete(self) -> "PersistenceState":
        raise UnimplementedOperationError(f"{self.__class__.__name__}.delete is not implemented")

    def commit(self) -> "PersistenceState":
        raise UnimplementedOperationError(f"{self.__class__.__name__}.commit is not implemented")

    def rollback(self) -> "PersistenceState":
        raise UnimplementedOperationError(f"{self.__class__.__name__}.rollback is not implemented")

    # Helpers ----------------------------------------------------------------
    @property
    def properties(self) -> Iterable["Subject"]:
        return self.resource._meta.get_fields()

    @property
    def relationships(self) -> Iterable["Subject"]:
        return self.resource._meta.relationships.values()

    def require_repository(self) -> "Repository":
        repository = self.resource.repository
        if repository is None:
            raise RepositoryNotBoundError(
                f"{self.model.__name__} instance is not attached to a repository."
            )
        return repository

    def identity_map(self) -> "IdentityMap":
        return self.require_repository().identity_map(self.model)

    def add_to_identity_map(self) -> None:
        key = self.resource.key
        if key is None:
            return
        self.identity_map()[key] = self.resource

    def remove_from_identity_map(self) -> None:
        key = self.resource.key
        if key is None:
            return
        self.identity_map().delete(key)

    def set_child_keys(self) -> "PersistenceState":
        """
        Re-assign every loaded many-to-one target so the child key columns
        pick up the parents' current keys, and return the state the
        resource ends up in.
        """
        state: PersistenceState = self
        for relationship in self.relationships:
            if not hasattr(relationship, "resource_for") or not relationship.loaded(self.resource):
                continue
            state = state.set(relationship, state.get(relationship))
        return state
