"""
Behaviour shared by the states of resources that exist in storage.

Clean, Dirty and Deleted call these helpers instead of inheriting from a
common persisted base.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..core.model import Model
    from ..core.subject import Subject
    from ..query import Collection
    from .base import PersistenceState


def lazy_load(resource: "Model", subject: "Subject") -> None:
    subject.lazy_load(resource)


def get(state: "PersistenceState", subject: "Subject") -> Any:
    lazy_load(state.resource, subject)
    return subject.get(state.resource)


def collection_for_self(state: "PersistenceState") -> "Collection":
    return state.resource.collection_for_self()


def reset_relationships(resource: "Model") -> None:
    """
    Drop every loaded association so it is fetched again on next access.
    """
    for relationship in resource._meta.relationships.values():
        if relationship.loaded(resource):
            relationship.reset(resource)
