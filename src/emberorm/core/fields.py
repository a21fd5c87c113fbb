"""
Field definitions: scalar properties mapped to table columns.

Fields are shared by every instance of a model. Values live on the
instance in ``_field_values``; a field is *loaded* on an instance exactly
when its name is present there.
"""

from __future__ import annotations

import itertools
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Iterable, List, Optional, Sequence, cast

if TYPE_CHECKING:
    from .model import Model


_creation_order = itertools.count()


def next_creation_counter() -> int:
    return next(_creation_order)


class FieldError(Exception):
    """Internal exception for field configuration issues."""


class Field:
    """
    Base class for model field descriptors.

    Attribute access on a model instance goes through the instance's
    persistence state, which decides about defaults, lazy loading and
    dirty tracking. The methods below are the raw capabilities the state
    builds on.
    """

    primitive: type | tuple[type, ...] = object
    serial = False
    is_relationship = False

    def __init__(
        self,
        *,
        primary_key: bool = False,
        unique: bool = False,
        nullable: bool = True,
        default: Any = None,
        db_type: Optional[str] = None,
        db_column: Optional[str] = None,
        choices: Optional[Sequence[Any]] = None,
        validators: Optional[Iterable[Callable[[Any], None]]] = None,
        lazy: bool = False,
        help_text: Optional[str] = None,
    ) -> None:
        self.primary_key = primary_key
        self.unique = unique
        self.nullable = nullable and not primary_key
        self.default = default
        self.db_type = db_type
        self.db_column = db_column
        self.choices = tuple(choices) if choices is not None else None
        self.validators = list(validators or [])
        self.lazy = lazy and not primary_key
        self.help_text = help_text

        self.model: type["Model"] | None = None
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

    # Metadata helpers ----------------------------------------------------
    def bind(self, model: type["Model"], name: str) -> None:
        self.model = model
        self.name = name
        if self.db_column is None:
            self.db_column = name

    def contribute_to_class(self, model: type["Model"], name: str) -> None:
        """
        Attach the field to the model class as a descriptor.
        """
        self.bind(model, name)
        setattr(model, name, self)

    def require_name(self) -> str:
        if self.name is None:
            raise FieldError("Field name is not set.")
        return self.name

    def column_name(self) -> str:
        return self.db_column or self.require_name()

    # Subject capabilities ------------------------------------------------
    def get(self, resource: "Model") -> Any:
        return self.get_raw(resource)

    def get_raw(self, resource: "Model") -> Any:
        return resource._field_values.get(self.require_name())

    def set(self, resource: "Model", value: Any) -> Any:
        value = self.typecast(value)
        self.set_raw(resource, value)
        return value

    def set_raw(self, resource: "Model", value: Any) -> None:
        resource._field_values[self.require_name()] = value

    def loaded(self, resource: "Model") -> bool:
        return self.require_name() in resource._field_values

    def reset(self, resource: "Model") -> None:
        resource._field_values.pop(self.require_name(), None)

    def lazy_load(self, resource: "Model") -> None:
        """
        Fetch this field from storage, together with every other unloaded
        eager field unless the field itself is lazy.
        """
        if self.loaded(resource):
            return
        repository = resource.repository
        if repository is None or resource.key is None:
            return
        if self.lazy:
            fields = [self]
        else:
            fields = [
                field
                for field in resource._meta.get_fields()
                if not field.lazy and not field.loaded(resource)
            ]
        repository.load(resource, fields)

    @property
    def has_default(self) -> bool:
        return self.default is not None

    def default_for(self, resource: "Model") -> Any:
        if callable(self.default):
            return self.default()
        return self.default

    # Conversion / validation ---------------------------------------------
    def typecast(self, value: Any) -> Any:
        """
        Convert ``value`` to the field's primitive where possible. Values
        that cannot be converted are returned unchanged so validation can
        report them.
        """
        return value

    def dump(self, value: Any) -> Any:
        return value

    def errors_for(self, value: Any) -> List[str]:
        if value is None:
            if self.nullable:
                return []
            return ["This field cannot be null."]

        if not isinstance(value, self.primitive):
            return [f"Expected {self._primitive_label()}, received {value!r}."]

        errors: List[str] = []
        if self.choices and value not in self.choices:
            errors.append(f"Value {value!r} is not one of {self.choices}.")
        for validator in self.validators:
            try:
                validator(value)
            except ValueError as exc:
                errors.append(str(exc))
        return errors

    def valid(self, value: Any) -> bool:
        return not self.errors_for(value)

    def _primitive_label(self) -> str:
        if isinstance(self.primitive, tuple):
            return " or ".join(kind.__name__ for kind in self.primitive)
        return self.primitive.__name__


class IntegerField(Field):
    primitive = int

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("db_type", "INTEGER")
        super().__init__(**kwargs)

    def typecast(self, value: Any) -> Any:
        if value is None or isinstance(value, bool):
            return value
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if value.is_integer() else value
        if isinstance(value, str):
            text = value.strip()
            try:
                return int(text)
            except ValueError:
                try:
                    number = float(text)
                except ValueError:
                    return value
                return int(number) if number.is_integer() else value
        return value

    def errors_for(self, value: Any) -> List[str]:
        if isinstance(value, bool):
            return [f"Expected int, received {value!r}."]
        return super().errors_for(value)


class AutoField(IntegerField):
    """
    Storage-assigned auto-incrementing key.
    """

    serial = True

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("primary_key", True)
        kwargs.setdefault("nullable", False)
        super().__init__(**kwargs)


class FloatField(Field):
    primitive = float

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("db_type", "REAL")
        super().__init__(**kwargs)

    def typecast(self, value: Any) -> Any:
        if value is None or isinstance(value, (bool, float)):
            return value
        try:
            return float(value)
        except (TypeError, ValueError):
            return value


_TRUE_STRINGS = {"true", "t", "1"}
_FALSE_STRINGS = {"false", "f", "0"}


class BooleanField(Field):
    primitive = bool

    def __init__(self, *, default: Any = False, **kwargs: Any) -> None:
        kwargs.setdefault("db_type", "BOOLEAN")
        kwargs.setdefault("nullable", False)
        super().__init__(default=default, **kwargs)

    def typecast(self, value: Any) -> Any:
        if value is None or isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        return value

    def dump(self, value: Any) -> Any:
        if value is None:
            return None
        return 1 if value else 0


class StringField(Field):
    primitive = str

    def __init__(self, *, max_length: Optional[int] = 255, **kwargs: Any) -> None:
        kwargs.setdefault("db_type", "TEXT")
        super().__init__(**kwargs)
        self.max_length = max_length

    def typecast(self, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    def errors_for(self, value: Any) -> List[str]:
        errors = super().errors_for(value)
        if isinstance(value, str) and self.max_length and len(value) > self.max_length:
            errors.append(f"Value exceeds max_length {self.max_length}.")
        return errors


class TextField(StringField):
    """
    Unbounded text, fetched only when first accessed.
    """

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("max_length", None)
        kwargs.setdefault("lazy", True)
        super().__init__(**kwargs)


class DateTimeField(Field):
    primitive = datetime

    def __init__(self, *, auto_now_add: bool = False, **kwargs: Any) -> None:
        kwargs.setdefault("db_type", "TEXT")
        super().__init__(**kwargs)
        self.auto_now_add = auto_now_add

    @property
    def has_default(self) -> bool:
        return self.auto_now_add or super().has_default

    def default_for(self, resource: "Model") -> Any:
        if self.auto_now_add:
            return datetime.now(timezone.utc)
        return super().default_for(resource)

    def typecast(self, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value)
            except ValueError:
                return value
        return value

    def dump(self, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat()
        return value
