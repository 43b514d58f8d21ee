"""
DataQualityIssue model: one reportable anomaly found while coercing a row.
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

IssueKind = Literal[
    "missing_value",
    "unparsable_date",
    "unparsable_decimal",
    "out_of_range",
    "invalid_value",
]


class DataQualityIssue(BaseModel):
    """
    An unparsable or missing value found while coercing a row.

    Attributes:
        source_table: Branch table of the offending row
        row_number: 1-based row position within the source table
        invoice: Invoice id of the row, when present
        field: Canonical column that failed
        kind: Issue classification
        rule_name: Rule that raised the issue
        severity: "error" blocks the row; "warning" keeps the row with the field nulled
        raw_value: Original value, rendered as text
        message: Human-readable explanation
        detected_at: When the issue was recorded
    """

    source_table: str
    row_number: int = Field(..., ge=1)
    invoice: str | None = None
    field: str
    kind: IssueKind
    rule_name: str
    severity: Literal["error", "warning"] = "error"
    raw_value: str | None = None
    message: str
    detected_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def render_value(cls, value: Any) -> str | None:
        return None if value is None else str(value)

    model_config = {
        "json_schema_extra": {
            "example": {
                "source_table": "muttathara",
                "row_number": 42,
                "invoice": "SINV-00042",
                "field": "posting_date",
                "kind": "unparsable_date",
                "rule_name": "posting_date_date",
                "raw_value": "31/07/2025",
                "message": "Value '31/07/2025' does not match pattern '\\d{4}-\\d{2}-\\d{2}'"
            }
        }
    }
