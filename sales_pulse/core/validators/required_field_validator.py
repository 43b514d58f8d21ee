"""
RequiredFieldValidator - ensures a field is present and not null/empty.
"""

from typing import Any

from .base_validator import BaseValidator, ValidationError, is_blank


class RequiredFieldValidator(BaseValidator):
    """
    Validates that a required field is present and not null/empty.

    Fails if:
    - Field is missing from the record
    - Field value is None
    - Field value is a blank string (configurable)
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)
        self.allow_empty_string = self.parameters.get("allow_empty_string", False)

    def validate(self, value: Any, record: dict[str, Any]) -> Any:
        if self.field_name not in record:
            raise ValidationError(
                rule_name="required_field",
                field_name=self.field_name,
                message="Field is missing from record",
                kind="missing_value",
            )

        if value is None:
            raise ValidationError(
                rule_name="required_field",
                field_name=self.field_name,
                message="Field value is null",
                kind="missing_value",
            )

        if not self.allow_empty_string and isinstance(value, str) and is_blank(value):
            raise ValidationError(
                rule_name="required_field",
                field_name=self.field_name,
                message="Field value is empty string",
                kind="missing_value",
            )

        return value

    @property
    def rule_type(self) -> str:
        return "required_field"
