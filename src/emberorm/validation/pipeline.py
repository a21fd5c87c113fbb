"""
Validation pipeline used by persistence states and ``Model.full_clean``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Tuple

from ..utils import get_logger
from .errors import ValidationError

if TYPE_CHECKING:
    from ..core.model import Model
    from ..core.subject import Subject


logger = get_logger("validation")


def validate_subjects(
    resource: "Model",
    values: Iterable[Tuple["Subject", Any]],
    *,
    exempt_unassigned_serial: bool = False,
) -> bool:
    """
    Check each ``(subject, value)`` pair and record the outcome on
    ``resource.errors``. Returns ``True`` when every value is valid.

    With ``exempt_unassigned_serial`` a serial subject holding ``None`` is
    accepted, since storage assigns it on insert.
    """
    errors: Dict[str, List[str]] = {}
    for subject, value in values:
        if exempt_unassigned_serial and subject.serial and value is None:
            continue
        messages = subject.errors_for(value)
        if messages:
            _merge_errors(errors, {str(subject.name): messages})
    resource._errors = errors
    if errors:
        logger.debug("%s failed validation: %s", type(resource).__name__, errors)
    return not errors


def validate_instance(instance: "Model") -> None:
    errors: Dict[str, List[str]] = {}

    for field in instance._meta.get_fields():
        if not field.loaded(instance) and not instance.is_new():
            # Unloaded persisted values were valid when stored.
            continue
        value = instance.attribute_get(field.require_name())
        if field.serial and value is None:
            continue
        messages = field.errors_for(value)
        if messages:
            _merge_errors(errors, {field.require_name(): messages})

    # Model-level clean hook
    clean_method = getattr(instance, "clean", None)
    if callable(clean_method):
        try:
            clean_method()
        except ValidationError as exc:
            _merge_errors(errors, exc.errors)
        except ValueError as exc:
            _add_error(errors, "__all__", str(exc))

    instance._errors = errors
    if errors:
        raise ValidationError(errors)


def _add_error(errors: Dict[str, List[str]], field: str, message: str) -> None:
    errors.setdefault(field, []).append(message)


def _merge_errors(target: Dict[str, List[str]], source: Dict[str, List[str]]) -> None:
    for field, messages in source.items():
        target.setdefault(field, []).extend(messages)
