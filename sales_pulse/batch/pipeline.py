"""
Batch pipeline orchestration.

Coordinates the flow: read → unify → profile → sanitize → label → aggregate

Every stage takes a DataFrame and returns a new one; branch sources are
read-only snapshots, so re-running the pipeline always starts from the same
input and produces the same output.
"""

from dataclasses import dataclass, field

from pyspark.sql import DataFrame, SparkSession
from pyspark.sql import functions as F

from sales_pulse.analytics.aggregations import SalesAggregator
from sales_pulse.analytics.profiling import DataProfiler
from sales_pulse.batch.readers import load_sources
from sales_pulse.batch.transforms import (
    BranchLabeler,
    ItemCategoryClassifier,
    NonTransactionalRowRule,
    RowSanitizer,
)
from sales_pulse.core.config import PipelineConfig
from sales_pulse.core.models import AggregateResult, DataQualityIssue, SchemaDivergence, StageReport
from sales_pulse.core.rules import RuleConfigLoader, RuleEngine, default_rules
from sales_pulse.core.schema import SchemaNormalizer
from sales_pulse.core.schema import columns as c
from sales_pulse.observability import metrics
from sales_pulse.observability.logger import get_logger, log_operation
from sales_pulse.warehouse.connection import DatabaseConnectionPool

logger = get_logger(__name__)


@dataclass
class PipelineResult:
    """Everything one pipeline run produced."""

    final: DataFrame
    reports: list[StageReport]
    divergences: list[SchemaDivergence]
    issues: list[DataQualityIssue]
    aggregates: dict[str, AggregateResult]
    profile: dict[str, AggregateResult] = field(default_factory=dict)

    def report(self, stage: str) -> StageReport:
        for report in self.reports:
            if report.stage == stage:
                return report
        raise KeyError(f"No report for stage '{stage}'")


class SalesPipeline:
    """
    Orchestrates the multi-branch sales pipeline.

    Flow:
    1. Load the branch sources (files or PostgreSQL tables)
    2. Unify them into one relation over the union of their columns
    3. Profile the unified relation (read-only)
    4. Remove summary rows and coerce text fields to typed values
    5. Label missing branches and derive the item category
    6. Project the final column order and register the final view
    7. Run the aggregation queries
    """

    def __init__(
        self,
        spark: SparkSession,
        config: PipelineConfig,
        pool: DatabaseConnectionPool | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            spark: Active Spark session
            config: Pipeline configuration
            pool: Open connection pool, required only for table sources
        """
        self.spark = spark
        self.config = config
        self.pool = pool

        if config.validation_rules_path:
            rules = RuleConfigLoader(config.validation_rules_path).load_rules()
        else:
            logger.info("No validation rules file configured, using built-in coercion rules")
            rules = default_rules()
        self.rule_engine = RuleEngine(rules)

        self.normalizer = SchemaNormalizer(config.header_aliases)
        self.classifier = ItemCategoryClassifier(
            markers=[(rule.marker, rule.category) for rule in config.category_markers],
            overrides=[(rule.marker, rule.category) for rule in config.category_overrides],
        )
        self.labeler = BranchLabeler(config.counter_sale_label)
        self.summary_rule = NonTransactionalRowRule(
            total_field=config.non_transactional.total_field,
            date_field=config.non_transactional.date_field,
        )

    def _sanitizer(self, halt_on_issues: bool) -> RowSanitizer:
        return RowSanitizer(
            self.spark,
            self.rule_engine,
            summary_rule=self.summary_rule,
            halt_on_issues=halt_on_issues,
        )

    def load(self) -> dict[str, DataFrame]:
        return load_sources(self.spark, self.config, self.pool)

    def unify(self, sources: dict[str, DataFrame] | None = None) -> tuple[DataFrame, list[SchemaDivergence], StageReport]:
        """Unify the sources and report the row accounting."""
        sources = sources if sources is not None else self.load()

        with log_operation("normalize", logger=logger, sources=len(sources)) as op:
            unified, divergences = self.normalizer.unify(sources)
            rows_in = sum(df.count() for df in sources.values())
            rows_out = unified.count()

        metrics.record_stage("normalize", rows_out, op.duration)
        report = StageReport(stage="normalize", rows_in=rows_in, rows_out=rows_out, duration_seconds=op.duration)
        return unified, divergences, report

    def profile(self, unified: DataFrame) -> dict[str, AggregateResult]:
        with log_operation("profile", logger=logger):
            profiler = DataProfiler(unified, self.classifier)
            return profiler.run_all(self.config.profile_columns)

    def label(self, cleaned: DataFrame) -> DataFrame:
        """Fill missing branches and add item_category, then project the final columns."""
        labeled = (
            cleaned
            .withColumn(c.BRANCH, self.labeler.column())
            .withColumn(c.ITEM_CATEGORY, self.classifier.column())
        )
        return labeled.select([F.col(name) for name in c.FINAL_COLUMNS])

    def preview(self, sources: dict[str, DataFrame] | None = None) -> tuple[dict[str, int], list[DataQualityIssue]]:
        """
        Dry run of the sanitize stage: nothing is written and nothing halts.

        Returns:
            Tuple of (summary rows per source, data quality issues)
        """
        unified, _, _ = self.unify(sources)
        sanitizer = self._sanitizer(halt_on_issues=False)
        removed = sanitizer.preview(unified)
        remaining = unified.filter(~self.summary_rule.column())
        _, issues, _, _ = sanitizer.coerce(remaining)
        return removed, issues

    def run(
        self,
        sources: dict[str, DataFrame] | None = None,
        halt_on_issues: bool | None = None,
        top_n: int | None = None,
    ) -> PipelineResult:
        """
        Execute the complete pipeline.

        Args:
            sources: Source name -> DataFrame; read from the configuration when None
            halt_on_issues: Override the configured halt behaviour
            top_n: Override the configured top invoice ranking size

        Returns:
            PipelineResult with the final relation, reports and aggregates

        Raises:
            SchemaMismatchError: On a header collision inside one source
            UnificationError: If unification loses or duplicates rows
            DataQualityError: If coercion fails while halting on issues
        """
        halt = self.config.halt_on_issues if halt_on_issues is None else halt_on_issues
        if top_n is None:
            top_n = self.config.top_n
        reports: list[StageReport] = []

        unified, divergences, normalize_report = self.unify(sources)
        reports.append(normalize_report)

        profile = self.profile(unified)

        with log_operation("sanitize", logger=logger, halt_on_issues=halt) as op:
            sanitized = self._sanitizer(halt).sanitize(unified)
            cleaned_count = sanitized.cleaned.count()

        metrics.record_stage(
            "sanitize",
            cleaned_count,
            op.duration,
            removed=sanitized.rows_removed,
            quarantined=sanitized.quarantined_rows,
        )
        reports.append(StageReport(
            stage="sanitize",
            rows_in=sanitized.rows_in,
            rows_out=cleaned_count,
            rows_removed=sanitized.rows_removed,
            rows_quarantined=sanitized.quarantined_rows,
            removed_by_source=sanitized.removed_by_source,
            issue_count=len(sanitized.issues),
            duration_seconds=op.duration,
        ))

        with log_operation("label", logger=logger) as op:
            final = self.label(sanitized.cleaned)
            final_count = final.count()

        metrics.record_stage("label", final_count, op.duration)
        reports.append(StageReport(
            stage="label",
            rows_in=cleaned_count,
            rows_out=final_count,
            duration_seconds=op.duration,
        ))

        final.createOrReplaceTempView(self.config.final_view_name)
        logger.info(
            f"Registered final view '{self.config.final_view_name}' with {final_count} rows",
            extra={"view": self.config.final_view_name, "row_count": final_count},
        )

        with log_operation("aggregate", logger=logger, top_n=top_n):
            aggregates = SalesAggregator(final).run_all(top_n)

        return PipelineResult(
            final=final,
            reports=reports,
            divergences=divergences,
            issues=sanitized.issues,
            aggregates=aggregates,
            profile=profile,
        )
