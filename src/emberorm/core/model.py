"""
Model base classes and metadata orchestration for EmberORM.

A model instance is a *resource*: it owns exactly one persistence state and
routes every attribute read and write through it.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

from ..hooks import hooks
from ..state import (
    Clean,
    Immutable,
    PersistenceError,
    PersistenceState,
    RepositoryNotBoundError,
    Transient,
)
from ..utils import camel_to_snake, get_logger
from .fields import AutoField, Field
from .relations import ForeignKey, Relationship, ReverseRelationship, relation_registry

if TYPE_CHECKING:
    from ..persistence.repository import Repository
    from ..query import Collection, Query


logger = get_logger("core.model")

__all__ = [
    "Model",
    "ModelMeta",
    "ModelOptions",
    "ModelConfigurationError",
    "PersistenceError",
    "RepositoryNotBoundError",
    "SaveFailureError",
    "UpdateConflictError",
]


class ModelConfigurationError(Exception):
    """Raised when a model class is misconfigured."""


class SaveFailureError(PersistenceError):
    def __init__(self, resource: "Model") -> None:
        self.resource = resource
        super().__init__(f"{type(resource).__name__} could not be saved: {resource.errors}")


class UpdateConflictError(PersistenceError):
    """
    Raised by ``Model.update`` when the resource already has unsaved changes.
    """


@dataclass
class ModelOptions:
    """
    Container for model metadata calculated by :class:`ModelMeta`.
    """

    model: Type["Model"]
    table_name: str = ""
    abstract: bool = False
    raise_on_save_failure: bool = False
    fields: "OrderedDict[str, Field]" = field(default_factory=OrderedDict)
    relationships: "OrderedDict[str, Relationship]" = field(default_factory=OrderedDict)
    key: List[Field] = field(default_factory=list)

    def add_field(self, field_obj: Field) -> None:
        name = field_obj.require_name()
        if name in self.fields or name in self.relationships:
            raise ModelConfigurationError(
                f"Duplicate field name '{name}' on model '{self.model.__name__}'"
            )
        self.fields[name] = field_obj
        if field_obj.primary_key:
            self.key.append(field_obj)

    def add_relationship(self, relationship: Relationship) -> None:
        name = relationship.require_name()
        if name in self.fields or name in self.relationships:
            raise ModelConfigurationError(
                f"Duplicate relationship name '{name}' on model '{self.model.__name__}'"
            )
        self.relationships[name] = relationship

    @property
    def table(self) -> str:
        return self.table_name

    @property
    def primary_key(self) -> Optional[Field]:
        return self.key[0] if len(self.key) == 1 else None

    @property
    def serial(self) -> Optional[Field]:
        for field_obj in self.fields.values():
            if field_obj.serial:
                return field_obj
        return None

    def get_field(self, name: str) -> Field:
        try:
            return self.fields[name]
        except KeyError as exc:
            raise KeyError(f"Unknown field '{name}' on model '{self.model.__name__}'") from exc

    def get_fields(self) -> List[Field]:
        return list(self.fields.values())

    def get_subject(self, name: str) -> Field | Relationship:
        if name in self.fields:
            return self.fields[name]
        if name in self.relationships:
            return self.relationships[name]
        raise KeyError(f"Unknown attribute '{name}' on model '{self.model.__name__}'")

    def key_conditions(self, key: Tuple[Any, ...]) -> Dict[str, Any]:
        if len(key) != len(self.key):
            raise ValueError(
                f"{self.model.__name__} key has {len(self.key)} part(s), received {len(key)}"
            )
        return {field_obj.require_name(): value for field_obj, value in zip(self.key, key)}


TModel = TypeVar("TModel", bound="Model")


class ModelMeta(type):
    """
    Metaclass responsible for collecting fields and relationships.
    """

    def __new__(mcls, name: str, bases: tuple[type, ...], attrs: Dict[str, Any]) -> "ModelMeta":
        # The Model base itself carries no metadata.
        if not any(isinstance(base, ModelMeta) for base in bases):
            return super().__new__(mcls, name, bases, attrs)

        declared: Dict[str, Field | Relationship] = {}
        for attr_name, value in list(attrs.items()):
            if isinstance(value, (Field, Relationship)):
                declared[attr_name] = attrs.pop(attr_name)

        cls = super().__new__(mcls, name, bases, attrs)

        meta = getattr(cls, "Meta", None)
        cls._meta = ModelOptions(
            model=cls,
            table_name=getattr(meta, "table", camel_to_snake(name)),
            abstract=getattr(meta, "abstract", False),
            raise_on_save_failure=getattr(meta, "raise_on_save_failure", False),
        )

        ordered = sorted(declared.items(), key=lambda item: item[1].creation_counter)
        for attr_name, field_obj in ordered:
            if isinstance(field_obj, Field):
                field_obj.contribute_to_class(cls, attr_name)
                cls._meta.add_field(field_obj)

        for attr_name, relationship in ordered:
            if isinstance(relationship, Relationship):
                relationship.contribute_to_class(cls, attr_name)
                cls._meta.add_relationship(relationship)

        if not cls._meta.key and not cls._meta.abstract:
            if "id" in cls._meta.fields:
                raise ModelConfigurationError(
                    f"Model '{cls.__name__}' defines a field named 'id' but no primary key. "
                    "Either set primary_key=True on that field or define a different name."
                )
            auto_field = AutoField()
            auto_field.contribute_to_class(cls, "id")
            cls._meta.add_field(auto_field)
            cls._meta.fields = OrderedDict(
                sorted(
                    cls._meta.fields.items(),
                    key=lambda item: (0 if item[0] == "id" else 1, item[1].creation_counter),
                )
            )

        if not cls._meta.abstract:
            relation_registry.register_model(cls)
            for relationship in list(cls._meta.relationships.values()):
                relation_registry.register_relationship(cls, relationship)

        return cls


class Model(metaclass=ModelMeta):
    """
    Base class for mapped resources.

    Instances built by user code start out transient; instances read from a
    repository start out clean. State transitions happen only through the
    resource's current persistence state.
    """

    _meta: ModelOptions

    def __init__(self, **attributes: Any) -> None:
        self._init_internals()
        self.attributes = attributes

    def _init_internals(self) -> None:
        self._field_values: Dict[str, Any] = {}
        self._related_cache: Dict[str, Any] = {}
        self._persistence_state: Optional[PersistenceState] = None
        self._repository: Optional["Repository"] = None
        self._key: Optional[Tuple[Any, ...]] = None
        self._errors: Dict[str, List[str]] = {}
        self._sentinels: Dict[str, bool] = {}

    @classmethod
    def materialize(cls: Type[TModel], repository: "Repository", values: Mapping[str, Any]) -> TModel:
        """
        Build a clean resource from values read out of storage.
        """
        instance = cls.__new__(cls)
        instance._init_internals()
        for name, value in values.items():
            field_obj = cls._meta.get_field(name)
            field_obj.set_raw(instance, field_obj.typecast(value))
        instance._repository = repository
        instance._persistence_state = Clean(instance)
        return instance

    def to_dict(self) -> Dict[str, Any]:
        """
        Stored values of the loaded fields. A field with an unsaved change
        reports the value the change overwrote.
        """
        values = {
            name: field_obj.get_raw(self)
            for name, field_obj in self._meta.fields.items()
            if field_obj.loaded(self)
        }
        if not self.is_new():
            for subject, original in self.persistence_state.original_attributes.items():
                if isinstance(subject, Field):
                    values[subject.require_name()] = original
        return values

    def __repr__(self) -> str:
        field_parts = ", ".join(
            f"{name}={value!r}" for name, value in self._field_values.items()
        )
        return f"<{self.__class__.__name__} {field_parts}>"

    # ------------------------------------------------------------------ #
    # State
    # ------------------------------------------------------------------ #
    @property
    def persistence_state(self) -> PersistenceState:
        if self._persistence_state is None:
            self._persistence_state = Transient(self)
        return self._persistence_state

    @persistence_state.setter
    def persistence_state(self, state: PersistenceState) -> None:
        previous = self._persistence_state
        if previous is not None and type(previous) is not type(state):
            logger.debug(
                "%s %s -> %s",
                self.__class__.__name__,
                type(previous).__name__,
                type(state).__name__,
            )
        self._persistence_state = state

    @property
    def repository(self) -> Optional["Repository"]:
        return self._repository

    def attach(self: TModel, repository: "Repository") -> TModel:
        """
        Bind this resource to ``repository``. Persisted resources stay bound
        to the repository they were read from or saved to.
        """
        current = self._repository
        if current is not None and current is not repository and self.is_saved():
            raise PersistenceError(
                f"{self.__class__.__name__} is already persisted in repository '{current.name}'"
            )
        self._repository = repository
        return self

    # ------------------------------------------------------------------ #
    # Attribute access
    # ------------------------------------------------------------------ #
    def attribute_get(self, name: str) -> Any:
        return self.persistence_state.get(self._meta.get_subject(name))

    def attribute_set(self, name: str, value: Any) -> None:
        subject = self._meta.get_subject(name)
        self.persistence_state = self.persistence_state.set(subject, value)

    @property
    def attributes(self) -> Dict[str, Any]:
        return {name: self.attribute_get(name) for name in self._meta.fields}

    @attributes.setter
    def attributes(self, values: Mapping[str, Any]) -> None:
        for name, value in values.items():
            self.attribute_set(name, value)

    def attribute_loaded(self, name: str) -> bool:
        return self._meta.get_subject(name).loaded(self)

    def attribute_dirty(self, name: str) -> bool:
        return self._meta.get_field(name) in self.dirty_attributes()

    @property
    def original_attributes(self) -> Mapping[Any, Any]:
        return MappingProxyType(dict(self.persistence_state.original_attributes))

    def dirty_attributes(self) -> Dict[Field, Any]:
        return {
            subject: subject.dump(subject.get_raw(self))
            for subject in self.persistence_state.original_attributes
            if isinstance(subject, Field)
        }

    @property
    def errors(self) -> Dict[str, List[str]]:
        return self._errors

    # ------------------------------------------------------------------ #
    # Key
    # ------------------------------------------------------------------ #
    @property
    def key(self) -> Optional[Tuple[Any, ...]]:
        """
        Key tuple identifying this resource in storage, or ``None`` while any
        part is missing. A changed key field still reports its stored value
        until the change is saved.
        """
        if self._key is not None:
            return self._key
        originals = self.persistence_state.original_attributes
        values = []
        for field_obj in self._meta.key:
            value = originals.get(field_obj)
            if value is None and field_obj.loaded(self):
                value = field_obj.get_raw(self)
            values.append(value)
        if any(value is None for value in values):
            return None
        key = tuple(values)
        if not self.is_new():
            self._key = key
        return key

    def _reset_key(self) -> None:
        self._key = None

    @property
    def pk(self) -> Any:
        if not self._meta.key:
            raise ModelConfigurationError(
                f"Model '{self.__class__.__name__}' does not define a primary key."
            )
        if len(self._meta.key) > 1:
            raise ModelConfigurationError(
                f"Model '{self.__class__.__name__}' has a composite key; use 'key' instead."
            )
        key = self.key
        return key[0] if key is not None else None

    # ------------------------------------------------------------------ #
    # Predicates
    # ------------------------------------------------------------------ #
    def is_new(self) -> bool:
        return isinstance(self.persistence_state, Transient)

    def is_saved(self) -> bool:
        return not isinstance(self.persistence_state, (Transient, Immutable))

    def is_clean(self) -> bool:
        return isinstance(self.persistence_state, (Clean, Immutable))

    def is_readonly(self) -> bool:
        return isinstance(self.persistence_state, Immutable)

    def is_destroyed(self) -> bool:
        return self.is_readonly() and self.key is not None

    def is_dirty(self) -> bool:
        return self._run_once(
            "dirty", True, lambda: self._dirty_self() or self._dirty_parents() or self._dirty_children()
        )

    def _dirty_self(self) -> bool:
        if self.persistence_state.original_attributes:
            return True
        if self.is_new():
            return self._meta.serial is not None or any(
                field_obj.has_default for field_obj in self._meta.get_fields()
            )
        return False

    def _dirty_parents(self) -> bool:
        return self._run_once(
            "dirty_parents",
            False,
            lambda: any(
                parent._dirty_self() or parent._dirty_parents()
                for _, parent in self._loaded_parents()
            ),
        )

    def _dirty_children(self) -> bool:
        return any(child.is_dirty() for child in self._loaded_children())

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #
    def save(self, repository: Optional["Repository"] = None) -> bool:
        """
        Save loaded parents, this resource and its loaded children.

        Returns ``True`` when everything ended up clean. Validation problems
        are reported through ``errors``; with ``Meta.raise_on_save_failure``
        a failed save raises :class:`SaveFailureError` instead.
        """
        self._assert_not_destroyed("save")
        if repository is not None:
            self.attach(repository)
        result = self._run_once("save", True, self._save)
        if not result and self._meta.raise_on_save_failure:
            raise SaveFailureError(self)
        return result

    def destroy(self) -> bool:
        if self.is_destroyed():
            return True
        if self.is_new():
            return False
        context = {"repository": self.repository}
        hooks.fire("before_destroy", self, **context)
        self.persistence_state = self.persistence_state.delete()
        self._persist()
        if self.is_destroyed():
            hooks.fire("after_destroy", self, **context)
        return self.is_destroyed()

    def update(self, **attributes: Any) -> bool:
        if self.is_dirty():
            raise UpdateConflictError(
                f"{self.__class__.__name__} has unsaved changes; save or reload before update()"
            )
        self.attributes = attributes
        return self.save()

    def reload(self: TModel) -> TModel:
        """
        Forget loaded values so they are read again from storage, and
        discard unsaved changes.
        """
        key = self.key
        if key is not None:
            self._reset_key()
            key_fields = self._meta.key
            for field_obj, value in zip(key_fields, key):
                field_obj.set_raw(self, value)
            for field_obj in self._meta.get_fields():
                if field_obj not in key_fields:
                    field_obj.reset(self)
            for relationship in self._meta.relationships.values():
                relationship.reset(self)
        self.persistence_state = self.persistence_state.rollback()
        return self

    def _save(self) -> bool:
        return self._save_parents() and self._save_self() and self._save_children()

    def _save_self(self) -> bool:
        if not self._dirty_self():
            return self.is_saved()
        created = self.is_new()
        context = {"repository": self.repository, "created": created}
        hooks.fire("before_save", self, **context)
        hooks.fire("before_create" if created else "before_update", self, **context)
        self._persist()
        if self.is_clean():
            hooks.fire("after_create" if created else "after_update", self, **context)
            hooks.fire("after_save", self, **context)
        return self.is_clean()

    def _save_parents(self) -> bool:
        def save_each() -> bool:
            results = []
            for relationship, parent in self._loaded_parents():
                if parent.repository is None and self.repository is not None:
                    parent.attach(self.repository)
                saved = parent._save_parents() and parent._save_self()
                if saved:
                    # Picks up keys assigned to parents by storage.
                    relationship.set(self, parent)
                results.append(saved)
            return all(results)

        return self._run_once("save_parents", True, save_each)

    def _save_children(self) -> bool:
        results = []
        for child in self._loaded_children():
            if child.repository is None and self.repository is not None:
                child.attach(self.repository)
            results.append(child._run_once("save", True, child._save))
        return all(results)

    def _persist(self) -> None:
        self.persistence_state = self.persistence_state.commit()

    def _assert_not_destroyed(self, operation: str) -> None:
        if self.is_destroyed():
            raise PersistenceError(
                f"{self.__class__.__name__}.{operation} called on a destroyed resource"
            )

    def _loaded_parents(self) -> List[Tuple[ForeignKey, "Model"]]:
        parents = []
        for relationship in self._meta.relationships.values():
            if not isinstance(relationship, ForeignKey) or not relationship.loaded(self):
                continue
            parent = relationship.get_raw(self)
            if parent is not None:
                parents.append((relationship, parent))
        return parents

    def _loaded_children(self) -> List["Model"]:
        children: List["Model"] = []
        for relationship in self._meta.relationships.values():
            if isinstance(relationship, ReverseRelationship) and relationship.loaded(self):
                children.extend(relationship.loaded_children(self))
        return children

    def _run_once(self, sentinel: str, default: bool, func: Callable[[], bool]) -> bool:
        """
        Guard against re-entering ``func`` through cyclic associations; a
        nested call returns ``default``.
        """
        if sentinel in self._sentinels:
            return self._sentinels[sentinel]
        self._sentinels[sentinel] = default
        try:
            return func()
        finally:
            del self._sentinels[sentinel]

    # ------------------------------------------------------------------ #
    # Selection
    # ------------------------------------------------------------------ #
    def query(self) -> "Query":
        from ..query import Query

        key = self.key
        if key is not None:
            conditions = self._meta.key_conditions(key)
        else:
            conditions = {
                name: field_obj.get_raw(self)
                for name, field_obj in self._meta.fields.items()
                if field_obj.loaded(self)
            }
        return Query(self.__class__, conditions=conditions)

    def collection_for_self(self) -> "Collection":
        from ..query import Collection

        return Collection(self.query(), [self])

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #
    def full_clean(self) -> None:
        from ..validation import validate_instance

        validate_instance(self)

    def clean(self) -> None:
        """
        Hook for subclasses to implement model-level validation.
        """
        return None

    @classmethod
    def register_hook(cls, event: str, handler: Callable[..., None]) -> None:
        hooks.register(event, handler, model=cls)
