"""
Revenue aggregation queries over the final sales relation.

Every query is a pure function of the relation it is given: nothing is
cached, and re-running a query on unchanged input returns the same rows
in the same order.
"""

from pyspark.sql import Column, DataFrame
from pyspark.sql import functions as F
from pyspark.sql.window import Window

from sales_pulse.core.models import AggregateResult
from sales_pulse.core.schema import columns as c

RATIO_SCALE = 2


def safe_ratio(numerator: Column, denominator: Column, scale: int = RATIO_SCALE) -> Column:
    """
    numerator / denominator rounded half-up, or null when the denominator
    is null or zero (the ratio is undefined, not 0).
    """
    return (
        F.when(denominator.isNull() | (denominator == 0), F.lit(None))
        .otherwise(F.round(numerator / denominator, scale))
    )


def share_pct(value_column: str) -> Column:
    """Each row's value as a percentage of the column total across all rows."""
    everything = Window.partitionBy()
    return safe_ratio(F.col(value_column) * 100, F.sum(value_column).over(everything))


class SalesAggregator:
    """
    Canned aggregation queries over the labeled sales relation.

    Query shapes:
    - Grand totals (no grouping)
    - Monthly time series (YYYY-MM buckets)
    - Branch and category breakdowns with per-invoice ratios
    - Invoice ranking, top-N and revenue share
    """

    def __init__(self, df: DataFrame):
        """
        Args:
            df: Final relation (branch, invoice, posting_date, stock_qty,
                total and item_category are used)
        """
        self.df = df

    def grand_totals(self) -> DataFrame:
        return self.df.agg(
            F.countDistinct(c.INVOICE).alias("total_invoices"),
            F.count(F.lit(1)).alias("total_line_items"),
            F.sum(c.TOTAL).alias("total_revenue"),
        )

    def monthly_revenue(self) -> DataFrame:
        return (
            self.df
            .groupBy(F.date_format(c.POSTING_DATE, "yyyy-MM").alias("year_month"))
            .agg(F.sum(c.TOTAL).alias("monthly_revenue"))
            .orderBy("year_month")
        )

    def monthly_revenue_by_branch(self) -> DataFrame:
        return (
            self.df
            .groupBy(c.BRANCH, F.date_format(c.POSTING_DATE, "yyyy-MM").alias("year_month"))
            .agg(F.sum(c.TOTAL).alias("monthly_revenue"))
            .orderBy(c.BRANCH, "year_month")
        )

    def branch_breakdown(self) -> DataFrame:
        """Revenue, invoice count and revenue per invoice by branch, largest first."""
        return (
            self.df
            .groupBy(c.BRANCH)
            .agg(
                F.countDistinct(c.INVOICE).alias("invoices"),
                F.sum(c.TOTAL).alias("revenue"),
            )
            .withColumn("revenue_per_invoice", safe_ratio(F.col("revenue"), F.col("invoices")))
            .orderBy(F.col("revenue").desc_nulls_last(), F.col(c.BRANCH))
        )

    def category_breakdown(self) -> DataFrame:
        """Service vs spare-part revenue with each category's share of the total."""
        return (
            self.df
            .groupBy(c.ITEM_CATEGORY)
            .agg(
                F.countDistinct(c.INVOICE).alias("invoices"),
                F.sum(c.STOCK_QTY).alias("units_sold"),
                F.sum(c.TOTAL).alias("revenue"),
            )
            .withColumn("revenue_per_invoice", safe_ratio(F.col("revenue"), F.col("invoices")))
            .withColumn("revenue_share_pct", share_pct("revenue"))
            .orderBy(F.col("revenue").desc_nulls_last(), F.col(c.ITEM_CATEGORY))
        )

    def _invoice_values(self) -> DataFrame:
        return self.df.groupBy(c.INVOICE).agg(F.sum(c.TOTAL).alias("invoice_value"))

    def invoice_ranking(self, top_n: int | None = None) -> DataFrame:
        """
        Invoices by summed value, largest first; ties ordered by invoice id.

        Args:
            top_n: Keep only the first N invoices; all invoices when None
        """
        ranked = self._invoice_values().orderBy(
            F.col("invoice_value").desc_nulls_last(), F.col(c.INVOICE)
        )
        if top_n is not None:
            if top_n < 1:
                raise ValueError(f"top_n must be positive, got {top_n}")
            ranked = ranked.limit(top_n)
        return ranked

    def invoice_share(self) -> DataFrame:
        return (
            self._invoice_values()
            .withColumn("revenue_share_pct", share_pct("invoice_value"))
            .orderBy(F.col("invoice_value").desc_nulls_last(), F.col(c.INVOICE))
        )

    def invoice_line_counts(self) -> DataFrame:
        return (
            self.df
            .groupBy(c.INVOICE)
            .agg(F.count(F.lit(1)).alias("line_items"))
            .orderBy(F.col("line_items").desc(), F.col(c.INVOICE))
        )

    def average_invoice_value(self) -> DataFrame:
        return (
            self.df
            .agg(
                F.countDistinct(c.INVOICE).alias("total_invoices"),
                F.sum(c.TOTAL).alias("total_revenue"),
            )
            .withColumn(
                "avg_revenue_per_invoice",
                safe_ratio(F.col("total_revenue"), F.col("total_invoices")),
            )
        )

    def average_line_item_value(self) -> DataFrame:
        return (
            self.df
            .agg(
                F.count(F.lit(1)).alias("total_line_items"),
                F.sum(c.TOTAL).alias("total_revenue"),
            )
            .withColumn(
                "avg_revenue_per_line_item",
                safe_ratio(F.col("total_revenue"), F.col("total_line_items")),
            )
        )

    def run_all(self, top_n: int = 10) -> dict[str, AggregateResult]:
        """
        Run every canned query and collect the results.

        Args:
            top_n: Size of the top_invoices ranking

        Returns:
            Query name -> AggregateResult, in report order
        """
        queries = {
            "grand_totals": self.grand_totals(),
            "monthly_revenue": self.monthly_revenue(),
            "monthly_revenue_by_branch": self.monthly_revenue_by_branch(),
            "branch_breakdown": self.branch_breakdown(),
            "category_breakdown": self.category_breakdown(),
            "average_invoice_value": self.average_invoice_value(),
            "average_line_item_value": self.average_line_item_value(),
            "top_invoices": self.invoice_ranking(top_n),
            "invoice_ranking": self.invoice_ranking(),
            "invoice_share": self.invoice_share(),
            "invoice_line_counts": self.invoice_line_counts(),
        }
        return {name: AggregateResult.from_dataframe(name, df) for name, df in queries.items()}
