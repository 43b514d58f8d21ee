"""
AggregateResult model: a named tabular result set (columns + rows).
"""

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, model_validator
from pyspark.sql import DataFrame


class AggregateResult(BaseModel):
    """
    A grouped query result in a form any reporting tool can consume.

    Attributes:
        name: Query name ("branch_breakdown")
        columns: Column names in output order
        rows: Row values, one list per row, aligned with columns
    """

    name: str = Field(..., min_length=1)
    columns: list[str]
    rows: list[list[Any]] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_row_width(self):
        width = len(self.columns)
        for idx, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(f"Row {idx} has {len(row)} values, expected {width}")
        return self

    @classmethod
    def from_dataframe(cls, name: str, df: DataFrame) -> "AggregateResult":
        """Collect a (small) aggregate DataFrame into a result set."""
        return cls(
            name=name,
            columns=list(df.columns),
            rows=[list(row) for row in df.collect()],
        )

    def records(self) -> list[dict[str, Any]]:
        """Rows as dictionaries keyed by column name."""
        return [dict(zip(self.columns, row)) for row in self.rows]

    def column(self, name: str) -> list[Any]:
        idx = self.columns.index(name)
        return [row[idx] for row in self.rows]

    def to_jsonable(self) -> dict[str, Any]:
        """Plain dict with decimals and dates rendered as strings."""
        return {
            "name": self.name,
            "columns": self.columns,
            "rows": [[_render(value) for value in row] for row in self.rows],
        }


def _render(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    return value
