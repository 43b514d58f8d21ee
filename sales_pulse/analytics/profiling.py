"""
Pre-cleaning data profile of the unified relation.

Answers "can this data be trusted?" before anything is removed or typed:
volume per branch, date coverage, field completeness, item-group mix and
invoice granularity. All queries are read-only.
"""

from pyspark.sql import DataFrame
from pyspark.sql import functions as F

from sales_pulse.batch.transforms.features import ItemCategoryClassifier
from sales_pulse.core.models import AggregateResult
from sales_pulse.core.schema import columns as c

from .aggregations import safe_ratio


class DataProfiler:
    """
    Profiling queries over the unified relation (text-typed columns).
    """

    def __init__(self, df: DataFrame, classifier: ItemCategoryClassifier | None = None):
        self.df = df
        self.classifier = classifier or ItemCategoryClassifier()

    def rows_per_branch(self) -> DataFrame:
        return (
            self.df
            .groupBy(c.BRANCH)
            .agg(F.count(F.lit(1)).alias("transactions"))
            .orderBy(F.col("transactions").desc(), F.col(c.BRANCH).asc_nulls_first())
        )

    def date_coverage(self) -> DataFrame:
        dates = F.trim(F.col(c.POSTING_DATE).cast("string"))
        present = F.when(dates != "", dates)
        return self.df.agg(
            F.min(present).alias("start_date"),
            F.max(present).alias("end_date"),
        )

    def field_completeness(self, columns: list[str]) -> DataFrame:
        """
        Missing (null or blank) count and percentage per column.

        Columns with structural missingness (payment mode) are reported here
        and left as they are.
        """
        spark = self.df.sparkSession
        total = self.df.count()
        if not columns:
            raise ValueError("At least one column is required")

        counts = self.df.agg(*[
            F.sum(
                F.when(
                    F.col(name).isNull() | (F.trim(F.col(name).cast("string")) == ""), 1
                ).otherwise(0)
            ).alias(name)
            for name in columns
        ]).first()

        rows = [(name, total, int(counts[name] or 0)) for name in columns]
        result = spark.createDataFrame(rows, "field string, total_rows long, missing long")
        return result.withColumn(
            "missing_pct", safe_ratio(F.col("missing") * 100.0, F.col("total_rows"))
        )

    def blank_monetary_fields(self) -> DataFrame:
        return self.field_completeness([c.TOTAL, c.RATE, c.AMOUNT])

    def item_group_distribution(self) -> DataFrame:
        return (
            self.df
            .groupBy(c.BRANCH, c.ITEM_GROUP)
            .agg(F.count(F.lit(1)).alias("transaction_count"))
            .orderBy(F.col(c.BRANCH).asc_nulls_first(), F.col("transaction_count").desc(), F.col(c.ITEM_GROUP))
        )

    def category_mix_by_branch(self) -> DataFrame:
        return (
            self.df
            .groupBy(c.BRANCH, self.classifier.column().alias(c.ITEM_CATEGORY))
            .agg(F.count(F.lit(1)).alias("transaction_count"))
            .orderBy(F.col(c.BRANCH).asc_nulls_first(), F.col("transaction_count").desc(), F.col(c.ITEM_CATEGORY))
        )

    def multi_line_invoices(self) -> DataFrame:
        return (
            self.df
            .groupBy(c.INVOICE)
            .agg(F.count(F.lit(1)).alias("line_items"))
            .filter(F.col("line_items") > 1)
            .orderBy(F.col("line_items").desc(), F.col(c.INVOICE))
        )

    def run_all(self, completeness_columns: list[str] | None = None) -> dict[str, AggregateResult]:
        columns = completeness_columns or [c.PAYMENT_MODE]
        queries = {
            "rows_per_branch": self.rows_per_branch(),
            "date_coverage": self.date_coverage(),
            "field_completeness": self.field_completeness(columns),
            "blank_monetary_fields": self.blank_monetary_fields(),
            "item_group_distribution": self.item_group_distribution(),
            "category_mix_by_branch": self.category_mix_by_branch(),
            "multi_line_invoices": self.multi_line_invoices(),
        }
        return {name: AggregateResult.from_dataframe(name, df) for name, df in queries.items()}
