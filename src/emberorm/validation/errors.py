"""
Validation error raised by ``Model.full_clean``.
"""

from __future__ import annotations

from typing import Dict, List, Mapping


class ValidationError(Exception):
    """
    Aggregated validation failure mapping field names to messages.
    Model-wide messages are stored under ``"__all__"``.
    """

    def __init__(self, errors: Mapping[str, List[str]]) -> None:
        self.errors: Dict[str, List[str]] = {
            key: list(messages) for key, messages in errors.items()
        }
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        segments = []
        for field, messages in self.errors.items():
            label = "model" if field == "__all__" else field
            segments.append(f"{label}: {'; '.join(messages)}")
        return "; ".join(segments)
