"""
EmberORM public package initialization.

Models declare fields and relationships; a :class:`Repository` reads and
writes them, while each instance's persistence state decides what a save
or destroy actually does.
"""

from .adapters import ConnectionConfig, SQLiteAdapter  # noqa: F401
from .core.fields import (
    AutoField,
    BooleanField,
    DateTimeField,
    FloatField,
    IntegerField,
    StringField,
    TextField,
)  # noqa: F401
from .core.model import (
    Model,
    ModelConfigurationError,
    SaveFailureError,
    UpdateConflictError,
)  # noqa: F401
from .core.relations import ForeignKey, OneToMany, OneToOneField  # noqa: F401
from .hooks import hooks  # noqa: F401
from .persistence import IdentityMap, Repository  # noqa: F401
from .query import Collection, Query  # noqa: F401
from .state import (
    ImmutableDeletedModificationError,
    ImmutableError,
    ImmutableLazyLoadError,
    ImmutableModificationError,
    PersistenceError,
    RepositoryNotBoundError,
)  # noqa: F401
from .validation import ValidationError  # noqa: F401

__all__ = [
    "Model",
    "AutoField",
    "BooleanField",
    "DateTimeField",
    "FloatField",
    "IntegerField",
    "StringField",
    "TextField",
    "ForeignKey",
    "OneToMany",
    "OneToOneField",
    "ConnectionConfig",
    "SQLiteAdapter",
    "Repository",
    "IdentityMap",
    "Query",
    "Collection",
    "ModelConfigurationError",
    "PersistenceError",
    "RepositoryNotBoundError",
    "SaveFailureError",
    "UpdateConflictError",
    "ImmutableError",
    "ImmutableModificationError",
    "ImmutableLazyLoadError",
    "ImmutableDeletedModificationError",
    "ValidationError",
    "hooks",
]
