"""
Capability surface shared by properties and relationships.

Persistence states only talk to subjects through this protocol, so they
never need to know whether they are handling a scalar column or an
association.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Protocol

if TYPE_CHECKING:
    from .model import Model


class Subject(Protocol):
    name: str | None
    serial: bool
    is_relationship: bool

    @property
    def has_default(self) -> bool: ...

    def get(self, resource: "Model") -> Any:
        """
        Return the in-memory value. Never performs I/O.
        """

    def get_raw(self, resource: "Model") -> Any: ...

    def set(self, resource: "Model", value: Any) -> Any:
        """
        Typecast and assign ``value`` without any state bookkeeping.
        """

    def set_raw(self, resource: "Model", value: Any) -> None: ...

    def loaded(self, resource: "Model") -> bool: ...

    def lazy_load(self, resource: "Model") -> None: ...

    def reset(self, resource: "Model") -> None:
        """
        Mark the subject as not loaded on ``resource``.
        """

    def default_for(self, resource: "Model") -> Any: ...

    def typecast(self, value: Any) -> Any: ...

    def errors_for(self, value: Any) -> List[str]: ...

    def valid(self, value: Any) -> bool: ...
