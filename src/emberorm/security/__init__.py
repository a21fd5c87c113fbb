"""Security helpers for EmberORM."""

from .dsns import DSNConfig, parse_dsn
from .redaction import redact_params, redact_value

__all__ = ["DSNConfig", "parse_dsn", "redact_params", "redact_value"]
