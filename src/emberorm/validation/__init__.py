"""
Validation helpers: error type, built-in validators and the pipeline.
"""

from .errors import ValidationError
from .pipeline import validate_instance, validate_subjects
from .validators import LengthValidator, MaxValueValidator, MinValueValidator, RegexValidator

__all__ = [
    "ValidationError",
    "validate_instance",
    "validate_subjects",
    "MinValueValidator",
    "MaxValueValidator",
    "LengthValidator",
    "RegexValidator",
]
