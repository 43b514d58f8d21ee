"""
StageReport and SchemaDivergence models summarising what each stage did.
"""

from typing import Literal

from pydantic import BaseModel, Field, computed_field


class SchemaDivergence(BaseModel):
    """
    A documented difference between source schemas found during unification.

    kind:
    - "null_filled": column absent from the listed sources, filled with nulls
    - "type_divergence": column typed differently across sources, unified as text
    - "extra_column": column outside the known ERP header set, carried through
    """

    column: str
    kind: Literal["null_filled", "type_divergence", "extra_column"]
    sources: list[str]
    detail: str = ""


class StageReport(BaseModel):
    """
    Row accounting for one pipeline stage.

    Attributes:
        stage: Stage name
        rows_in: Rows entering the stage
        rows_out: Rows handed to the next stage
        rows_removed: Rows deliberately removed (summary rows)
        rows_quarantined: Rows excluded because of data quality issues
        removed_by_source: Removed rows per source table
        issue_count: Number of data quality issues raised
        duration_seconds: Wall time of the stage
    """

    stage: str
    rows_in: int = Field(..., ge=0)
    rows_out: int = Field(..., ge=0)
    rows_removed: int = Field(0, ge=0)
    rows_quarantined: int = Field(0, ge=0)
    removed_by_source: dict[str, int] = Field(default_factory=dict)
    issue_count: int = Field(0, ge=0)
    duration_seconds: float | None = None

    @computed_field
    @property
    def balanced(self) -> bool:
        return self.rows_in == self.rows_out + self.rows_removed + self.rows_quarantined
