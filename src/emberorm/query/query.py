"""
Resource selectors handed to the repository.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Type, overload

if TYPE_CHECKING:
    from ..core.fields import Field
    from ..core.model import Model


@dataclass
class Query:
    """
    Equality selection over one model.

    ``conditions`` maps field names to values; ``None`` selects NULL and a
    list or tuple selects any of its members. ``order`` entries prefixed
    with ``-`` sort descending.
    """

    model: Type["Model"]
    conditions: Dict[str, Any] = field(default_factory=dict)
    fields: Tuple[str, ...] = ()
    order: Tuple[str, ...] = ()
    limit: Optional[int] = None

    def __post_init__(self) -> None:
        for name in (*self.conditions, *self.fields, *(o.lstrip("-") for o in self.order)):
            self.model._meta.get_field(name)
        if self.limit is not None and self.limit < 0:
            raise ValueError("limit must be non-negative")

    def selected_fields(self) -> List["Field"]:
        """
        Fields to read: the requested ones plus the key, or every eager field.
        """
        meta = self.model._meta
        if not self.fields:
            return [field_obj for field_obj in meta.get_fields() if not field_obj.lazy]
        selected = list(meta.key)
        for name in self.fields:
            field_obj = meta.get_field(name)
            if field_obj not in selected:
                selected.append(field_obj)
        return selected

    def ordering(self) -> Tuple[str, ...]:
        if self.order:
            return self.order
        return tuple(field_obj.require_name() for field_obj in self.model._meta.key)


class Collection:
    """
    A query together with the resources it is known to match.
    """

    def __init__(self, query: Query, resources: Iterable["Model"] = ()) -> None:
        self.query = query
        self.resources: List["Model"] = list(resources)

    @property
    def model(self) -> Type["Model"]:
        return self.query.model

    def __iter__(self) -> Iterator["Model"]:
        return iter(self.resources)

    def __len__(self) -> int:
        return len(self.resources)

    @overload
    def __getitem__(self, index: int) -> "Model": ...

    @overload
    def __getitem__(self, index: slice) -> Sequence["Model"]: ...

    def __getitem__(self, index):
        return self.resources[index]

    def __repr__(self) -> str:
        return f"<Collection {self.model.__name__} {self.query.conditions!r} ({len(self)})>"
