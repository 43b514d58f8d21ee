"""
SalesRecord model: one branch sales line travelling through coercion (ephemeral).
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, computed_field


class SalesRecord(BaseModel):
    """
    A single invoice line item as read from a branch source.

    Only lives in memory while the sanitizer coerces it; the typed payload
    ends up in the cleaned relation, failures end up as DataQualityIssues.

    Attributes:
        source_table: Branch table the row came from
        row_number: 1-based position of the row within its source table
        raw_payload: Original values keyed by canonical column name
        processed_payload: Values after coercion
        validation_status: "pending", "valid", "invalid"
    """

    source_table: str = Field(..., min_length=1)
    row_number: int = Field(..., ge=1)
    raw_payload: dict[str, Any]
    processed_payload: dict[str, Any] | None = None
    validation_status: Literal["pending", "valid", "invalid"] = "pending"

    @computed_field
    @property
    def record_id(self) -> str:
        return f"{self.source_table}:{self.row_number}"
