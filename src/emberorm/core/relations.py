"""
Relationship subjects and the registry that resolves their targets.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Type, cast

from ..utils import child_key_name, reverse_accessor_name
from .fields import Field, IntegerField, next_creation_counter

if TYPE_CHECKING:
    from ..persistence.repository import Repository
    from .model import Model


class RelationshipError(RuntimeError):
    pass


class Relationship:
    """
    Base class for associations between models.

    Loaded targets are cached on the instance in ``_related_cache``; a
    relationship is loaded exactly when its name is present there.
    """

    relation_type = ""
    serial = False
    is_relationship = True

    def __init__(self, to: Type | str, *, related_name: Optional[str] = None) -> None:
        self.to = to
        self.related_name = related_name
        self.remote_model: Optional[Type["Model"]] = to if isinstance(to, type) else None
        self.model: Optional[Type["Model"]] = None
        self.name: str | None = None
        self.creation_counter = next_creation_counter()

    def __repr__(self) -> str:
        owner = self.model.__name__ if self.model else "?"
        return f"<{self.__class__.__name__} {owner}.{self.name}>"

    # Descriptor protocol -------------------------------------------------
    def __get__(self, instance: object | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return cast("Model", instance).attribute_get(self.require_name())

    def __set__(self, instance: object, value: Any) -> None:
        cast("Model", instance).attribute_set(self.require_name(), value)

    # Metadata ------------------------------------------------------------
    def contribute_to_class(self, model: Type["Model"], name: str) -> None:
        self.model = model
        self.name = name
        setattr(model, name, self)

    def resolve_model(self, model: Type["Model"]) -> None:
        self.remote_model = model

    def require_name(self) -> str:
        if self.name is None:
            raise RelationshipError("Relationship name is not set.")
        return self.name

    def require_remote_model(self) -> Type["Model"]:
        if self.remote_model is None:
            raise RelationshipError(f"Relationship target {self.to!r} is not resolved.")
        return self.remote_model

    # Subject capabilities ------------------------------------------------
    def get(self, resource: "Model") -> Any:
        return self.get_raw(resource)

    def get_raw(self, resource: "Model") -> Any:
        return resource._related_cache.get(self.require_name())

    def set_raw(self, resource: "Model", value: Any) -> None:
        resource._related_cache[self.require_name()] = value

    def loaded(self, resource: "Model") -> bool:
        return self.require_name() in resource._related_cache

    def reset(self, resource: "Model") -> None:
        resource._related_cache.pop(self.require_name(), None)

    @property
    def has_default(self) -> bool:
        return False

    def default_for(self, resource: "Model") -> Any:
        return None

    def typecast(self, value: Any) -> Any:
        return value

    def valid(self, value: Any) -> bool:
        return not self.errors_for(value)

    def set(self, resource: "Model", value: Any) -> Any:
        raise NotImplementedError

    def lazy_load(self, resource: "Model") -> None:
        raise NotImplementedError

    def errors_for(self, value: Any) -> List[str]:
        raise NotImplementedError


class ForeignKey(Relationship):
    """
    Many-to-one association stored in a child key column on this model.

    Unless ``child_key`` names an already declared field, an integer field
    called ``<name>_id`` is added to the model.
    """

    relation_type = "many-to-one"
    unique_child_key = False

    def __init__(
        self,
        to: Type | str,
        *,
        related_name: Optional[str] = None,
        child_key: Optional[str] = None,
        required: bool = True,
    ) -> None:
        super().__init__(to, related_name=related_name)
        self.child_key_name = child_key
        self.required = required
        self.child_key: Optional[Field] = None
        self.reverse: Optional["ReverseRelationship"] = None

    def contribute_to_class(self, model: Type["Model"], name: str) -> None:
        super().contribute_to_class(model, name)
        meta = model._meta
        if self.child_key_name and self.child_key_name in meta.fields:
            self.child_key = meta.fields[self.child_key_name]
            return
        field_name = self.child_key_name or child_key_name(name)
        child_key = IntegerField(nullable=not self.required, unique=self.unique_child_key)
        child_key.contribute_to_class(model, field_name)
        meta.add_field(child_key)
        self.child_key = child_key

    def require_child_key(self) -> Field:
        if self.child_key is None:
            raise RelationshipError(f"Relationship '{self.name}' has no child key.")
        return self.child_key

    def parent_key_field(self) -> Field:
        remote = self.require_remote_model()
        key = remote._meta.key
        if len(key) != 1:
            raise RelationshipError(
                f"Relationship '{self.name}' requires '{remote.__name__}' to have a single-field key."
            )
        return key[0]

    def set(self, resource: "Model", target: Any) -> Any:
        remote = self.require_remote_model()
        if target is not None and not isinstance(target, remote):
            raise TypeError(
                f"'{self.name}' expects a {remote.__name__} instance, received {type(target).__name__}"
            )
        parent_key = None
        if target is not None:
            parent_key = target.attribute_get(self.parent_key_field().require_name())
        previous = self.get_raw(resource) if self.loaded(resource) else None
        resource.attribute_set(self.require_child_key().require_name(), parent_key)
        self.set_raw(resource, target)
        self._sync_reverse(resource, previous, target)
        return target

    def _sync_reverse(self, resource: "Model", previous: Optional["Model"], target: Optional["Model"]) -> None:
        # Only loaded reverse sides are kept in step; unloaded ones are read fresh.
        reverse = self.reverse
        if reverse is None:
            return
        if previous is not None and previous is not target and reverse.loaded(previous):
            reverse.unlink(previous, resource)
        if target is not None and reverse.loaded(target):
            reverse.link(target, resource)

    def resource_for(self, resource: "Model") -> Optional["Model"]:
        """
        Look up the parent referenced by the child key on ``resource``.
        """
        parent_key = self.require_child_key().get_raw(resource)
        repository = resource.repository
        if parent_key is None or repository is None:
            return None
        return repository.get(self.require_remote_model(), parent_key)

    def lazy_load(self, resource: "Model") -> None:
        if self.loaded(resource) or not self.require_child_key().loaded(resource):
            return
        self.set_raw(resource, self.resource_for(resource))

    def errors_for(self, value: Any) -> List[str]:
        if value is None:
            return ["This relationship is required."] if self.required else []
        remote = self.require_remote_model()
        if not isinstance(value, remote):
            return [f"Expected {remote.__name__}, received {type(value).__name__}."]
        return []

    def make_reverse(self, child_model: Type["Model"]) -> "ReverseRelationship":
        return OneToMany(child_model, self)

    def default_related_name(self, child_model: Type["Model"]) -> str:
        return reverse_accessor_name(child_model.__name__)


class OneToOneField(ForeignKey):
    """
    Foreign key with a unique child key. The target model gets a
    single-valued reverse accessor named after this model.
    """

    relation_type = "one-to-one"
    unique_child_key = True

    def make_reverse(self, child_model: Type["Model"]) -> "ReverseRelationship":
        return ReverseOneToOne(child_model, self)

    def default_related_name(self, child_model: Type["Model"]) -> str:
        return reverse_accessor_name(child_model.__name__, single=True)


class ReverseRelationship(Relationship):
    """
    Parent side of a :class:`ForeignKey`, installed on the target model.
    """

    def __init__(self, child_model: Type["Model"], foreign_key: ForeignKey) -> None:
        super().__init__(child_model)
        self.foreign_key = foreign_key

    def loaded_children(self, resource: "Model") -> List["Model"]:
        raise NotImplementedError

    def link(self, resource: "Model", child: "Model") -> None:
        raise NotImplementedError

    def unlink(self, resource: "Model", child: "Model") -> None:
        raise NotImplementedError

    def _check_child(self, child: Any) -> None:
        child_model = self.require_remote_model()
        if not isinstance(child, child_model):
            raise TypeError(
                f"'{self.name}' expects {child_model.__name__} instances, received {type(child).__name__}"
            )

    def _child_conditions(self, resource: "Model") -> Optional[Dict[str, Any]]:
        key = resource.key
        if resource.repository is None or key is None:
            return None
        return {self.foreign_key.require_child_key().require_name(): key[0]}


class OneToMany(ReverseRelationship):
    relation_type = "one-to-many"

    @property
    def has_default(self) -> bool:
        return True

    def default_for(self, resource: "Model") -> Any:
        return []

    def set(self, resource: "Model", children: Any) -> Any:
        children = list(children or [])
        for child in children:
            self._check_child(child)
        foreign_key_name = self.foreign_key.require_name()
        for child in children:
            child.attribute_set(foreign_key_name, resource)
        self.set_raw(resource, children)
        return children

    def lazy_load(self, resource: "Model") -> None:
        if self.loaded(resource):
            return
        conditions = self._child_conditions(resource)
        if conditions is None:
            self.set_raw(resource, [])
            return
        repository = cast("Repository", resource.repository)
        self.set_raw(resource, repository.all(self.require_remote_model(), **conditions))

    def loaded_children(self, resource: "Model") -> List["Model"]:
        return list(self.get_raw(resource) or [])

    def link(self, resource: "Model", child: "Model") -> None:
        children = self.get_raw(resource)
        if child not in children:
            children.append(child)

    def unlink(self, resource: "Model", child: "Model") -> None:
        children = self.get_raw(resource)
        if child in children:
            children.remove(child)

    def errors_for(self, value: Any) -> List[str]:
        if value is None:
            return []
        child_model = self.require_remote_model()
        if not isinstance(value, list) or not all(isinstance(child, child_model) for child in value):
            return [f"Expected a list of {child_model.__name__}."]
        return []


class ReverseOneToOne(ReverseRelationship):
    """
    Single-valued parent side of a :class:`OneToOneField`.
    """

    relation_type = "one-to-one"

    def set(self, resource: "Model", child: Any) -> Any:
        if child is not None:
            self._check_child(child)
            child.attribute_set(self.foreign_key.require_name(), resource)
        self.set_raw(resource, child)
        return child

    def lazy_load(self, resource: "Model") -> None:
        if self.loaded(resource):
            return
        conditions = self._child_conditions(resource)
        if conditions is None:
            self.set_raw(resource, None)
            return
        repository = cast("Repository", resource.repository)
        self.set_raw(resource, repository.first(self.require_remote_model(), **conditions))

    def loaded_children(self, resource: "Model") -> List["Model"]:
        child = self.get_raw(resource)
        return [] if child is None else [child]

    def link(self, resource: "Model", child: "Model") -> None:
        self.set_raw(resource, child)

    def unlink(self, resource: "Model", child: "Model") -> None:
        if self.get_raw(resource) is child:
            self.set_raw(resource, None)

    def errors_for(self, value: Any) -> List[str]:
        if value is None:
            return []
        child_model = self.require_remote_model()
        if not isinstance(value, child_model):
            return [f"Expected {child_model.__name__}, received {type(value).__name__}."]
        return []


class RelationRegistry:
    """
    Resolves relationship targets by model name, deferring forward references
    until the target model is declared.
    """

    def __init__(self) -> None:
        self.models: Dict[str, Type["Model"]] = {}
        self.pending: List[Tuple[Type["Model"], Relationship]] = []

    def register_model(self, model: Type["Model"]) -> None:
        self.models[model.__name__] = model
        self._resolve_pending()

    def register_relationship(self, model: Type["Model"], relationship: Relationship) -> None:
        target = self._resolve_target(relationship.to)
        if target is None:
            self.pending.append((model, relationship))
            return
        self._bind(model, relationship, target)

    def _resolve_pending(self) -> None:
        unresolved = []
        for model, relationship in self.pending:
            target = self._resolve_target(relationship.to)
            if target is None:
                unresolved.append((model, relationship))
                continue
            self._bind(model, relationship, target)
        self.pending = unresolved

    def _resolve_target(self, target: Type | str) -> Optional[Type["Model"]]:
        if isinstance(target, type):
            return target
        return self.models.get(target.split(".")[-1])

    def _bind(self, model: Type["Model"], relationship: Relationship, target: Type["Model"]) -> None:
        relationship.resolve_model(target)
        if isinstance(relationship, ForeignKey):
            self._attach_reverse_accessor(model, relationship, target)

    def _attach_reverse_accessor(
        self, model: Type["Model"], foreign_key: ForeignKey, target: Type["Model"]
    ) -> None:
        related_name = foreign_key.related_name or foreign_key.default_related_name(model)
        if hasattr(target, related_name):
            return
        reverse = foreign_key.make_reverse(model)
        foreign_key.reverse = reverse
        reverse.contribute_to_class(target, related_name)
        target._meta.add_relationship(reverse)


relation_registry = RelationRegistry()
