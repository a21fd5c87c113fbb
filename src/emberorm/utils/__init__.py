"""
Utility helpers shared across EmberORM packages.
"""

from .logging import configure_logging, get_correlation_id, get_logger, set_correlation_id, time_call
from .naming import camel_to_snake, child_key_name, reverse_accessor_name

__all__ = [
    "camel_to_snake",
    "child_key_name",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
    "set_correlation_id",
    "reverse_accessor_name",
    "time_call",
]
