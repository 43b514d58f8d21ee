"""
Base validator interface for all coercion rules.

A validator checks one field of a raw row and returns the value in its
coerced form; failures raise ValidationError.
"""

from abc import ABC, abstractmethod
from typing import Any


class ValidationError(Exception):
    """Raised when a validation rule fails."""

    def __init__(self, rule_name: str, field_name: str, message: str, kind: str = "invalid_value"):
        self.rule_name = rule_name
        self.field_name = field_name
        self.message = message
        self.kind = kind
        super().__init__(f"[{rule_name}] {field_name}: {message}")


# Unicode White_Space characters, the set Spark's (?U)\s matches (str.strip() also drops \x1c-\x1f)
BLANK_CHARS = (
    "\t\n\x0b\x0c\r \x85\xa0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000"
)

# Spark regex for text made only of BLANK_CHARS (or empty)
BLANK_PATTERN = "^[" + "".join(f"\\u{ord(ch):04x}" for ch in BLANK_CHARS) + "]*$"


def is_blank(value: Any) -> bool:
    """True for None and for strings holding only BLANK_CHARS."""
    return value is None or (isinstance(value, str) and value.strip(BLANK_CHARS) == "")


class BaseValidator(ABC):
    """
    Abstract base class for all validators.

    Each validator implements one rule type (required_field, date, decimal).
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        """
        Initialize validator.

        Args:
            field_name: Name of the field to validate
            parameters: Rule-specific parameters (e.g., precision/scale for decimal)
        """
        self.field_name = field_name
        self.parameters = parameters or {}

    @abstractmethod
    def validate(self, value: Any, record: dict[str, Any]) -> Any:
        """
        Validate a value and return it in coerced form.

        Args:
            value: The field value to validate
            record: The entire record (for context-dependent validation)

        Returns:
            The coerced value (None stays None unless the rule defaults it)

        Raises:
            ValidationError: If validation fails
        """

    @property
    @abstractmethod
    def rule_type(self) -> str:
        """Return the rule type identifier."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(field={self.field_name}, params={self.parameters})"
