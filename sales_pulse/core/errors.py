"""
Pipeline exception hierarchy.

Stage-level failures derive from SalesPipelineError so the CLI can report
them uniformly; field-level validation failures use
validators.ValidationError and never escape the rule engine.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sales_pulse.core.models import DataQualityIssue


class SalesPipelineError(Exception):
    """Base class for all pipeline failures."""


class ConfigError(SalesPipelineError, ValueError):
    """Raised when pipeline or rule configuration is invalid."""


class SchemaMismatchError(SalesPipelineError):
    """Raised when two raw headers of one source map to the same column."""

    def __init__(self, source_table: str, column: str, headers: list[str]):
        self.source_table = source_table
        self.column = column
        self.headers = headers
        super().__init__(
            f"Source '{source_table}' has headers {headers} that all map to column '{column}'"
        )


class UnificationError(SalesPipelineError):
    """Raised when the unified relation does not conserve source row counts."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Unified row count {actual} does not match source row count {expected}"
        )


class DataQualityError(SalesPipelineError):
    """Raised when coercion finds unparsable values and the run is set to halt."""

    def __init__(self, issues: list["DataQualityIssue"]):
        self.issues = issues
        rows = {(issue.source_table, issue.row_number) for issue in issues}
        super().__init__(
            f"{len(issues)} data quality issue(s) in {len(rows)} row(s); "
            "sanitization halted for manual review"
        )
