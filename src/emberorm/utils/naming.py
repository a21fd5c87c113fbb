"""
Naming conventions used for tables, child keys, and reverse accessors.
"""

import re


_FIRST_CAP_RE = re.compile("(.)([A-Z][a-z]+)")
_ALL_CAP_RE = re.compile("([a-z0-9])([A-Z])")


def camel_to_snake(name: str) -> str:
    """
    Convert ``CamelCase`` names to ``snake_case`` for table naming.
    """
    step1 = _FIRST_CAP_RE.sub(r"\1_\2", name)
    return _ALL_CAP_RE.sub(r"\1_\2", step1).lower()


def child_key_name(relationship_name: str, parent_key_name: str = "id") -> str:
    return f"{relationship_name}_{parent_key_name}"


def reverse_accessor_name(model_name: str, *, single: bool = False) -> str:
    name = camel_to_snake(model_name)
    return name if single else f"{name}_set"
