"""
Built-in validators attachable to fields through ``validators=[...]``.

A validator is any callable that raises ``ValueError`` with a message when
the value is unacceptable. Field-level checks handle ``None`` before
validators run.
"""

from __future__ import annotations

import re
from typing import Any, Optional, Protocol


class Validator(Protocol):
    def __call__(self, value: Any) -> None: ...


class MinValueValidator:
    def __init__(self, minimum: float, message: str | None = None) -> None:
        self.minimum = minimum
        self.message = message or f"Must be at least {minimum}."

    def __call__(self, value: Any) -> None:
        if value < self.minimum:
            raise ValueError(self.message)


class MaxValueValidator:
    def __init__(self, maximum: float, message: str | None = None) -> None:
        self.maximum = maximum
        self.message = message or f"Must be at most {maximum}."

    def __call__(self, value: Any) -> None:
        if value > self.maximum:
            raise ValueError(self.message)


class LengthValidator:
    def __init__(
        self,
        minimum: Optional[int] = None,
        maximum: Optional[int] = None,
        message: str | None = None,
    ) -> None:
        self.minimum = minimum
        self.maximum = maximum
        self.message = message

    def __call__(self, value: Any) -> None:
        length = len(value)
        if self.minimum is not None and length < self.minimum:
            raise ValueError(self.message or f"Length must be at least {self.minimum}.")
        if self.maximum is not None and length > self.maximum:
            raise ValueError(self.message or f"Length must be at most {self.maximum}.")


class RegexValidator:
    def __init__(self, pattern: str, message: str | None = None) -> None:
        self.pattern = re.compile(pattern)
        self.message = message or f"Does not match {pattern!r}."

    def __call__(self, value: Any) -> None:
        if not isinstance(value, str):
            raise ValueError("Expected a string to match against.")
        if not self.pattern.match(value):
            raise ValueError(self.message)
