"""
Core building blocks for EmberORM models: fields, relationships, metadata.
"""

from .fields import (
    AutoField,
    BooleanField,
    DateTimeField,
    Field,
    FieldError,
    FloatField,
    IntegerField,
    StringField,
    TextField,
)
from .model import (
    Model,
    ModelConfigurationError,
    ModelMeta,
    ModelOptions,
    PersistenceError,
    RepositoryNotBoundError,
    SaveFailureError,
    UpdateConflictError,
)
from .relations import (
    ForeignKey,
    OneToMany,
    OneToOneField,
    Relationship,
    RelationshipError,
    ReverseOneToOne,
    ReverseRelationship,
)
from .subject import Subject

__all__ = [
    "AutoField",
    "BooleanField",
    "DateTimeField",
    "Field",
    "FieldError",
    "FloatField",
    "IntegerField",
    "Model",
    "ModelConfigurationError",
    "ModelMeta",
    "ModelOptions",
    "PersistenceError",
    "RepositoryNotBoundError",
    "SaveFailureError",
    "StringField",
    "TextField",
    "UpdateConflictError",
    "ForeignKey",
    "OneToMany",
    "OneToOneField",
    "Relationship",
    "RelationshipError",
    "ReverseOneToOne",
    "ReverseRelationship",
    "Subject",
]
