"""
Unit tests for the aggregation engine.
"""

from datetime import date
from decimal import Decimal

import pytest
from pyspark.sql import functions as F

from sales_pulse.analytics import SalesAggregator, safe_ratio

FINAL_DDL = (
    "branch string, invoice string, posting_date date, "
    "stock_qty decimal(12,3), total decimal(12,2), item_category string"
)


@pytest.fixture
def make_final(spark_session):
    def _make(rows):
        return spark_session.createDataFrame(
            [
                (branch, invoice, posting_date, Decimal(qty) if qty is not None else None, Decimal(total), category)
                for branch, invoice, posting_date, qty, total, category in rows
            ],
            FINAL_DDL,
        )

    return _make


@pytest.fixture
def final_df(make_final):
    return make_final([
        ("Muttathara", "MUT-1", date(2025, 7, 1), "1", "100.00", "Service"),
        ("Muttathara", "MUT-1", date(2025, 7, 1), "2", "40.00", "SparePart"),
        ("Muttathara", "MUT-2", date(2025, 7, 15), "1", "50.00", "SparePart"),
        ("Palayam", "PAL-1", date(2025, 8, 2), "1", "300.00", "Service"),
        ("Counter Sale", "CS-1", date(2025, 6, 30), None, "10.00", "SparePart"),
    ])


class TestGrandTotals:
    """Tests for whole-relation totals"""

    def test_grand_totals(self, final_df):
        row = SalesAggregator(final_df).grand_totals().first()

        assert row["total_invoices"] == 4
        assert row["total_line_items"] == 5
        assert row["total_revenue"] == Decimal("500.00")

    def test_average_invoice_value(self, final_df):
        row = SalesAggregator(final_df).average_invoice_value().first()
        assert row["avg_revenue_per_invoice"] == Decimal("125.00")

    def test_average_line_item_value(self, final_df):
        row = SalesAggregator(final_df).average_line_item_value().first()
        assert row["avg_revenue_per_line_item"] == Decimal("100.00")

    def test_empty_relation_ratios_are_null(self, make_final):
        aggregator = SalesAggregator(make_final([]))

        assert aggregator.average_invoice_value().first()["avg_revenue_per_invoice"] is None
        assert aggregator.average_line_item_value().first()["avg_revenue_per_line_item"] is None


class TestTimeSeries:
    """Tests for monthly revenue"""

    def test_monthly_revenue_is_chronological(self, final_df):
        rows = SalesAggregator(final_df).monthly_revenue().collect()

        assert [(r["year_month"], r["monthly_revenue"]) for r in rows] == [
            ("2025-06", Decimal("10.00")),
            ("2025-07", Decimal("190.00")),
            ("2025-08", Decimal("300.00")),
        ]

    def test_monthly_revenue_by_branch(self, final_df):
        rows = SalesAggregator(final_df).monthly_revenue_by_branch().collect()

        assert [(r["branch"], r["year_month"]) for r in rows] == [
            ("Counter Sale", "2025-06"),
            ("Muttathara", "2025-07"),
            ("Palayam", "2025-08"),
        ]


class TestBreakdowns:
    """Tests for branch and category breakdowns"""

    def test_branch_breakdown(self, final_df):
        rows = SalesAggregator(final_df).branch_breakdown().collect()

        assert [r["branch"] for r in rows] == ["Palayam", "Muttathara", "Counter Sale"]
        muttathara = rows[1]
        assert muttathara["invoices"] == 2
        assert muttathara["revenue"] == Decimal("190.00")
        assert muttathara["revenue_per_invoice"] == Decimal("95.00")

    def test_category_breakdown(self, final_df):
        rows = {r["item_category"]: r for r in SalesAggregator(final_df).category_breakdown().collect()}

        assert rows["Service"]["revenue"] == Decimal("400.00")
        assert rows["Service"]["invoices"] == 2
        assert rows["Service"]["units_sold"] == Decimal("2.000")
        assert rows["Service"]["revenue_share_pct"] == Decimal("80.00")
        assert rows["SparePart"]["revenue"] == Decimal("100.00")
        assert rows["SparePart"]["invoices"] == 3
        assert rows["SparePart"]["revenue_per_invoice"] == Decimal("33.33")
        assert rows["SparePart"]["revenue_share_pct"] == Decimal("20.00")

    def test_breakdowns_sum_to_grand_total(self, final_df):
        aggregator = SalesAggregator(final_df)
        grand = aggregator.grand_totals().first()["total_revenue"]

        assert sum(r["revenue"] for r in aggregator.branch_breakdown().collect()) == grand
        assert sum(r["revenue"] for r in aggregator.category_breakdown().collect()) == grand

    def test_zero_invoice_group_ratio_is_null(self, make_final):
        """Test a group whose lines carry no invoice id has an undefined ratio"""
        df = make_final([
            ("Palayam", None, date(2025, 7, 1), "1", "20.00", "SparePart"),
            ("Muttathara", "MUT-1", date(2025, 7, 1), "1", "10.00", "SparePart"),
        ])

        rows = {r["branch"]: r for r in SalesAggregator(df).branch_breakdown().collect()}

        assert rows["Palayam"]["invoices"] == 0
        assert rows["Palayam"]["revenue_per_invoice"] is None
        assert rows["Muttathara"]["revenue_per_invoice"] == Decimal("10.00")


class TestInvoices:
    """Tests for invoice ranking and share"""

    def test_top_n_breaks_ties_by_invoice(self, make_final):
        df = make_final([
            ("B", "INV-D", date(2025, 7, 1), "1", "100.00", "SparePart"),
            ("B", "INV-C", date(2025, 7, 1), "1", "300.00", "SparePart"),
            ("B", "INV-B", date(2025, 7, 1), "1", "300.00", "SparePart"),
            ("B", "INV-A", date(2025, 7, 1), "1", "500.00", "SparePart"),
        ])
        aggregator = SalesAggregator(df)

        first = [(r["invoice"], r["invoice_value"]) for r in aggregator.invoice_ranking(2).collect()]
        second = [(r["invoice"], r["invoice_value"]) for r in aggregator.invoice_ranking(2).collect()]

        assert first == [("INV-A", Decimal("500.00")), ("INV-B", Decimal("300.00"))]
        assert first == second

    def test_full_ranking_sums_lines(self, final_df):
        rows = SalesAggregator(final_df).invoice_ranking().collect()

        assert [r["invoice"] for r in rows] == ["PAL-1", "MUT-1", "MUT-2", "CS-1"]
        assert rows[1]["invoice_value"] == Decimal("140.00")

    def test_top_n_must_be_positive(self, final_df):
        with pytest.raises(ValueError):
            SalesAggregator(final_df).invoice_ranking(0)

    def test_invoice_share_sums_to_hundred(self, make_final):
        df = make_final([
            ("B", "INV-1", date(2025, 7, 1), "1", "10.00", "SparePart"),
            ("B", "INV-2", date(2025, 7, 1), "1", "10.00", "SparePart"),
            ("B", "INV-3", date(2025, 7, 1), "1", "10.00", "SparePart"),
        ])

        rows = SalesAggregator(df).invoice_share().collect()

        assert [r["revenue_share_pct"] for r in rows] == [Decimal("33.33")] * 3
        assert abs(sum(r["revenue_share_pct"] for r in rows) - Decimal("100")) <= Decimal("0.01")

    def test_invoice_line_counts(self, final_df):
        rows = SalesAggregator(final_df).invoice_line_counts().collect()

        assert (rows[0]["invoice"], rows[0]["line_items"]) == ("MUT-1", 2)
        assert [r["invoice"] for r in rows[1:]] == ["CS-1", "MUT-2", "PAL-1"]


class TestRunAll:
    """Tests for the canned query set"""

    def test_run_all_is_deterministic(self, final_df):
        aggregator = SalesAggregator(final_df)

        first = aggregator.run_all(top_n=2)
        second = aggregator.run_all(top_n=2)

        assert list(first) == [
            "grand_totals",
            "monthly_revenue",
            "monthly_revenue_by_branch",
            "branch_breakdown",
            "category_breakdown",
            "average_invoice_value",
            "average_line_item_value",
            "top_invoices",
            "invoice_ranking",
            "invoice_share",
            "invoice_line_counts",
        ]
        assert {k: v.rows for k, v in first.items()} == {k: v.rows for k, v in second.items()}
        assert len(first["top_invoices"].rows) == 2


class TestSafeRatio:
    """Tests for guarded division"""

    def test_zero_and_null_denominators(self, spark_session):
        df = spark_session.createDataFrame([(10, 4), (10, 0), (10, None)], "n int, d int")

        rows = df.select(safe_ratio(F.col("n"), F.col("d")).alias("r")).collect()

        assert [r["r"] for r in rows] == [2.5, None, None]
