"""
ValidationRule model representing one configurable coercion rule.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class ValidationRule(BaseModel):
    """
    A configurable rule applied to one field of every branch sales row.

    Attributes:
        rule_name: Human-readable name ("posting_date_date_1")
        rule_type: Type: "required_field", "date", "decimal"
        field_name: Canonical column this rule applies to
        parameters: Rule-specific params (e.g., {"precision": 12, "scale": 2})
        enabled: Whether rule is active
        severity: "error" (row is blocked) or "warning" (row kept, field nulled, issue recorded)
    """

    rule_name: str = Field(..., min_length=1)
    rule_type: Literal["required_field", "date", "decimal"]
    field_name: str = Field(..., min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)
    enabled: bool = True
    severity: Literal["error", "warning"] = "error"

    model_config = {
        "json_schema_extra": {
            "example": {
                "rule_name": "other_charges_decimal",
                "rule_type": "decimal",
                "field_name": "other_charges",
                "parameters": {"precision": 12, "scale": 2, "blank_as_zero": True},
                "enabled": True,
                "severity": "error"
            }
        }
    }
