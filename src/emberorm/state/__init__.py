"""
Persistence states a resource moves through between creation and deletion.
"""

from .base import PersistenceState
from .clean import Clean
from .deleted import Deleted
from .dirty import Dirty
from .errors import (
    ImmutableDeletedModificationError,
    ImmutableError,
    ImmutableLazyLoadError,
    ImmutableModificationError,
    PersistenceError,
    RepositoryNotBoundError,
    UnimplementedOperationError,
)
from .immutable import Immutable
from .transient import Transient

__all__ = [
    "PersistenceState",
    "Transient",
    "Clean",
    "Dirty",
    "Deleted",
    "Immutable",
    "PersistenceError",
    "RepositoryNotBoundError",
    "ImmutableError",
    "ImmutableModificationError",
    "ImmutableLazyLoadError",
    "ImmutableDeletedModificationError",
    "UnimplementedOperationError",
]
