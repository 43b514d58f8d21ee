"""
Core data models for the sales-pulse pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .aggregate_result import AggregateResult
from .data_quality_issue import DataQualityIssue
from .sales_record import SalesRecord
from .stage_report import SchemaDivergence, StageReport
from .validation_result import ValidationResult
from .validation_rule import ValidationRule

__all__ = [
    "AggregateResult",
    "DataQualityIssue",
    "SalesRecord",
    "SchemaDivergence",
    "StageReport",
    "ValidationResult",
    "ValidationRule",
]
