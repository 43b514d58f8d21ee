"""
ValidationResult model representing the outcome of coercing a record (ephemeral).
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from .data_quality_issue import DataQualityIssue


class ValidationResult(BaseModel):
    """
    Outcome of running the rule engine over one SalesRecord.

    Attributes:
        record_id: Which record was validated
        passed: Overall validation status
        passed_rules: Rules that succeeded
        failed_rules: Rules that failed with error severity
        warnings: Rules that failed with warning severity
        transformations_applied: Coercions that changed a value ("total_decimal")
        issues: One DataQualityIssue per failed rule
        processed_payload: Coerced values, present only when passed
    """

    record_id: str
    passed: bool
    passed_rules: list[str] = Field(default_factory=list)
    failed_rules: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    transformations_applied: list[str] = Field(default_factory=list)
    issues: list[DataQualityIssue] = Field(default_factory=list)
    processed_payload: dict[str, Any] | None = None

    @field_validator('failed_rules')
    @classmethod
    def check_passed_consistency(cls, v, info):
        """Validate that passed=True implies failed_rules is empty."""
        if info.data.get('passed') and len(v) > 0:
            raise ValueError("passed=True but failed_rules is not empty")
        return v
