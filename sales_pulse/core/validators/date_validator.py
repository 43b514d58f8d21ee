"""
DateValidator - parses posting dates strictly into datetime.date values.
"""

import re
from datetime import date, datetime
from typing import Any

from .base_validator import BLANK_CHARS, BaseValidator, ValidationError, is_blank


class DateValidator(BaseValidator):
    """
    Coerces a field to a date using one strict format.

    Parameters:
    - format: strptime format (default "%Y-%m-%d")
    - pattern: regex the stripped text must match in full before parsing
      (default four-digit year, two-digit month and day, dash separated);
      matched with ASCII-only character classes

    Blank values pass through as None; pair with required_field to reject them.
    """

    DEFAULT_FORMAT = "%Y-%m-%d"
    DEFAULT_PATTERN = r"\d{4}-\d{2}-\d{2}"

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)
        self.date_format = self.parameters.get("format", self.DEFAULT_FORMAT)
        try:
            self.pattern = re.compile(self.parameters.get("pattern", self.DEFAULT_PATTERN), re.ASCII)
        except re.error as e:
            raise ValueError(f"Invalid date pattern: {e}")

    def validate(self, value: Any, record: dict[str, Any]) -> date | None:
        if is_blank(value):
            return None

        # datetime is a subclass of date, check it first
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value

        text = str(value).strip(BLANK_CHARS)
        if not self.pattern.fullmatch(text):
            raise ValidationError(
                rule_name="date",
                field_name=self.field_name,
                message=f"Value '{text}' does not match pattern '{self.pattern.pattern}'",
                kind="unparsable_date",
            )

        try:
            return datetime.strptime(text, self.date_format).date()
        except ValueError as e:
            raise ValidationError(
                rule_name="date",
                field_name=self.field_name,
                message=f"Cannot parse '{text}' as date: {e}",
                kind="unparsable_date",
            )

    @property
    def rule_type(self) -> str:
        return "date"
