"""
Field coercion rules.

Provides validators for required fields, strict dates and fixed-point
decimals used by the row sanitizer.
"""

from .base_validator import BLANK_CHARS, BLANK_PATTERN, BaseValidator, ValidationError, is_blank
from .date_validator import DateValidator
from .decimal_validator import DecimalValidator
from .required_field_validator import RequiredFieldValidator

__all__ = [
    "BaseValidator",
    "ValidationError",
    "is_blank",
    "BLANK_CHARS",
    "BLANK_PATTERN",
    "RequiredFieldValidator",
    "DateValidator",
    "DecimalValidator",
]
