"""
Row sanitization: summary-row removal and type coercion.

Works on the unified snapshot and returns a new cleaned relation; the
branch sources themselves are never modified, so a re-run always starts
from the same input.
"""

from dataclasses import dataclass, field
from typing import Any

from pyspark.sql import Column, DataFrame, SparkSession
from pyspark.sql import functions as F

from sales_pulse.core.errors import DataQualityError
from sales_pulse.core.models import DataQualityIssue, SalesRecord
from sales_pulse.core.rules import RuleEngine
from sales_pulse.core.schema import columns as c
from sales_pulse.core.validators import BLANK_PATTERN, is_blank
from sales_pulse.observability import metrics
from sales_pulse.observability.logger import get_logger

logger = get_logger(__name__)


def _blank(column: Column) -> Column:
    return column.isNull() | column.cast("string").rlike(BLANK_PATTERN)


class NonTransactionalRowRule:
    """
    Identifies summary rows that are not real sales.

    A row carrying a total but no posting date is an ERP summary artifact.
    Both fields are configurable so the heuristic can be checked against
    labelled samples before it is trusted.
    """

    def __init__(self, total_field: str = c.TOTAL, date_field: str = c.POSTING_DATE):
        self.total_field = total_field
        self.date_field = date_field

    def matches(self, row: dict[str, Any]) -> bool:
        return not is_blank(row.get(self.total_field)) and is_blank(row.get(self.date_field))

    def column(self) -> Column:
        return ~_blank(F.col(self.total_field)) & _blank(F.col(self.date_field))

    def __repr__(self) -> str:
        return f"NonTransactionalRowRule(total={self.total_field}, date={self.date_field})"


@dataclass
class SanitizationResult:
    """Cleaned relation plus the accounting needed to audit it."""

    cleaned: DataFrame
    rows_in: int
    removed_by_source: dict[str, int]
    issues: list[DataQualityIssue] = field(default_factory=list)
    quarantined_rows: int = 0
    transformations: dict[str, int] = field(default_factory=dict)

    @property
    def rows_removed(self) -> int:
        return sum(self.removed_by_source.values())


class RowSanitizer:
    """
    Removes non-transactional rows and coerces text fields to typed values.

    Flow:
    1. Count summary rows per source table (preview) and log the counts
    2. Filter them out
    3. Run the rule engine over every remaining row
    4. Halt with DataQualityError, or quarantine the failing rows
    5. Rebuild a typed DataFrame from the coerced payloads
    """

    def __init__(
        self,
        spark: SparkSession,
        rule_engine: RuleEngine,
        summary_rule: NonTransactionalRowRule | None = None,
        halt_on_issues: bool = True,
    ):
        """
        Args:
            spark: Active Spark session
            rule_engine: Engine holding the coercion rules
            summary_rule: Predicate for non-transactional rows
            halt_on_issues: Raise on unparsable values instead of quarantining
        """
        self.spark = spark
        self.rule_engine = rule_engine
        self.summary_rule = summary_rule or NonTransactionalRowRule()
        self.halt_on_issues = halt_on_issues

    def preview(self, df: DataFrame) -> dict[str, int]:
        """
        Count rows the summary rule would remove, per source table.

        Read-only; run it before remove_non_transactional to validate the
        heuristic against the data.
        """
        rows = (
            df.filter(self.summary_rule.column())
            .groupBy(c.SOURCE_TABLE)
            .count()
            .collect()
        )
        return {row[c.SOURCE_TABLE]: row["count"] for row in rows}

    def remove_non_transactional(self, df: DataFrame) -> tuple[DataFrame, dict[str, int]]:
        """
        Drop summary rows.

        Idempotent: running it on its own output removes nothing.

        Returns:
            Tuple of (remaining_df, removed_count_per_source)
        """
        removed = self.preview(df)
        for source_table, count in sorted(removed.items()):
            logger.warning(
                f"Removing {count} non-transactional row(s) from '{source_table}'",
                extra={"source_table": source_table, "count": count, "rule": repr(self.summary_rule)},
            )
            metrics.record_rows_removed(source_table, count)

        return df.filter(~self.summary_rule.column()), removed

    def coerce(self, df: DataFrame) -> tuple[DataFrame, list[DataQualityIssue], int, dict[str, int]]:
        """
        Coerce every row through the rule engine.

        Returns:
            Tuple of (typed_df, issues, quarantined_row_count, transformation_counts)

        Raises:
            DataQualityError: If any row fails and halt_on_issues is set
        """
        columns = list(df.columns)
        schema = c.cleaned_schema(columns, self.rule_engine.coerced_types)
        text_columns = {f.name for f in schema.fields if f.dataType.typeName() == "string"}

        typed_rows = []
        issues: list[DataQualityIssue] = []
        quarantined = 0
        transformations: dict[str, int] = {}

        # Coercion runs on the driver over collected rows
        for row in df.collect():
            values = row.asDict()
            record = SalesRecord(
                source_table=values[c.SOURCE_TABLE],
                row_number=values[c.SOURCE_ROW],
                raw_payload={k: v for k, v in values.items() if k not in c.LINEAGE_COLUMNS},
            )
            result = self.rule_engine.validate_record(record)
            issues.extend(result.issues)

            if not result.passed:
                quarantined += 1
                continue

            for name in result.transformations_applied:
                transformations[name] = transformations.get(name, 0) + 1

            payload = result.processed_payload
            typed_rows.append(tuple(
                values[name] if name in c.LINEAGE_COLUMNS
                else _as_text(payload.get(name)) if name in text_columns
                else payload.get(name)
                for name in columns
            ))

        for issue in issues:
            metrics.record_issue(issue.source_table, issue.field, issue.kind)

        blocking = [issue for issue in issues if issue.severity == "error"]
        nulled = len(issues) - len(blocking)
        if nulled:
            logger.warning(
                f"{nulled} field value(s) nulled by warning rules",
                extra={"issue_count": nulled},
            )

        if blocking:
            logger.error(
                f"{len(blocking)} data quality issue(s) in {quarantined} row(s)",
                extra={
                    "issue_count": len(blocking),
                    "row_count": quarantined,
                    "halt": self.halt_on_issues,
                },
            )
            if self.halt_on_issues:
                raise DataQualityError(blocking)

        return self.spark.createDataFrame(typed_rows, schema), issues, quarantined, transformations

    def sanitize(self, df: DataFrame) -> SanitizationResult:
        """
        Run summary-row removal followed by coercion.

        Args:
            df: Unified relation (with lineage columns)

        Returns:
            SanitizationResult holding the cleaned relation
        """
        rows_in = df.count()
        remaining, removed = self.remove_non_transactional(df)
        cleaned, issues, quarantined, transformations = self.coerce(remaining)

        logger.info(
            f"Sanitized {rows_in} rows: {sum(removed.values())} removed, {quarantined} quarantined",
            extra={"rows_in": rows_in, "removed": removed, "quarantined": quarantined},
        )

        return SanitizationResult(
            cleaned=cleaned,
            rows_in=rows_in,
            removed_by_source=removed,
            issues=issues,
            quarantined_rows=quarantined,
            transformations=transformations,
        )


def _as_text(value: Any) -> str | None:
    return value if value is None or isinstance(value, str) else str(value)
