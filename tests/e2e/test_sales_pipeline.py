"""
End-to-end tests for the sales pipeline: unify, clean, label, aggregate.
"""

from datetime import date
from decimal import Decimal

import pytest

from sales_pulse.batch.pipeline import SalesPipeline
from sales_pulse.core.config import CategoryRule, PipelineConfig, SourceConfig
from sales_pulse.core.errors import DataQualityError
from sales_pulse.core.schema import columns as c
from tests.sample_data import MUTTATHARA_HEADERS, PALAYAM_HEADERS


@pytest.fixture
def config():
    return PipelineConfig(sources=[
        SourceConfig(name="muttathara", path="muttathara.csv"),
        SourceConfig(name="palayam", path="palayam.csv"),
    ])


@pytest.mark.e2e
def test_two_branch_example(spark_session, config, example_sources):
    """A: service 100.00 and spare part 50.00 in July; B: one summary row"""
    result = SalesPipeline(spark_session, config).run(sources=example_sources)

    normalize = result.report("normalize")
    sanitize = result.report("sanitize")
    assert normalize.rows_in == normalize.rows_out == 3
    assert sanitize.rows_out == 2
    assert sanitize.removed_by_source == {"palayam": 1}
    assert all(report.balanced for report in result.reports)

    grand = result.aggregates["grand_totals"].records()[0]
    assert grand["total_revenue"] == Decimal("150.00")
    assert grand["total_invoices"] == 2

    categories = {r["item_category"]: r for r in result.aggregates["category_breakdown"].records()}
    assert categories["Service"]["revenue"] == Decimal("100.00")
    assert categories["Service"]["invoices"] == 1
    assert categories["SparePart"]["revenue"] == Decimal("50.00")
    assert categories["SparePart"]["invoices"] == 1

    assert result.aggregates["monthly_revenue"].rows == [["2025-07", Decimal("150.00")]]


@pytest.mark.e2e
def test_final_relation_contract(spark_session, config, example_sources):
    result = SalesPipeline(spark_session, config).run(sources=example_sources)

    assert result.final.columns == c.FINAL_COLUMNS
    assert [f.dataType for f in result.final.schema.fields] == [
        f.dataType for f in c.final_schema().fields
    ]
    view = spark_session.table("sales_all_branches_final")
    assert view.count() == 2

    rows = {row[c.INVOICE]: row for row in view.collect()}
    assert rows["MUT-1"][c.ITEM_CATEGORY] == "Service"
    assert rows["MUT-2"][c.ITEM_CATEGORY] == "SparePart"
    assert rows["MUT-1"][c.POSTING_DATE] == date(2025, 7, 1)


@pytest.mark.e2e
def test_blank_branch_becomes_counter_sale(spark_session, config, make_source, sales_line):
    sources = {
        "muttathara": make_source(MUTTATHARA_HEADERS, [sales_line(invoice="MUT-1", branch="  ")]),
        "palayam": make_source(PALAYAM_HEADERS, [sales_line(invoice="PAL-1", branch=None)]),
    }

    result = SalesPipeline(spark_session, config).run(sources=sources)

    branches = [row[c.BRANCH] for row in result.final.collect()]
    assert branches == ["Counter Sale", "Counter Sale"]
    breakdown = result.aggregates["branch_breakdown"].records()
    assert breakdown == [{
        "branch": "Counter Sale",
        "invoices": 2,
        "revenue": Decimal("200.00"),
        "revenue_per_invoice": Decimal("100.00"),
    }]


@pytest.mark.e2e
def test_configured_labels_and_overrides(spark_session, make_source, sales_line):
    config = PipelineConfig(
        sources=[SourceConfig(name="muttathara", path="m.csv")],
        counter_sale_label="Walk-in",
        category_overrides=[CategoryRule(marker="labour-free", category="SparePart")],
    )
    sources = {"muttathara": make_source(MUTTATHARA_HEADERS, [
        sales_line(invoice="MUT-1", branch="", item_group="Labour-Free Kit"),
        sales_line(invoice="MUT-2", item_group="Labour"),
    ])}

    result = SalesPipeline(spark_session, config).run(sources=sources)

    rows = {row[c.INVOICE]: row for row in result.final.collect()}
    assert rows["MUT-1"][c.BRANCH] == "Walk-in"
    assert rows["MUT-1"][c.ITEM_CATEGORY] == "SparePart"
    assert rows["MUT-2"][c.ITEM_CATEGORY] == "Service"


@pytest.mark.e2e
def test_halts_for_manual_review(spark_session, config, make_source, sales_line):
    sources = {
        "muttathara": make_source(MUTTATHARA_HEADERS, [
            sales_line(invoice="MUT-1"),
            sales_line(invoice="MUT-2", posting_date="07/15/2025"),
        ]),
        "palayam": make_source(PALAYAM_HEADERS, []),
    }

    with pytest.raises(DataQualityError) as exc_info:
        SalesPipeline(spark_session, config).run(sources=sources)

    assert [(i.source_table, i.row_number, i.field) for i in exc_info.value.issues] == [
        ("muttathara", 2, "posting_date"),
    ]


@pytest.mark.e2e
def test_quarantine_when_issues_allowed(spark_session, config, make_source, sales_line):
    sources = {
        "muttathara": make_source(MUTTATHARA_HEADERS, [
            sales_line(invoice="MUT-1"),
            sales_line(invoice="MUT-2", posting_date="07/15/2025"),
        ]),
        "palayam": make_source(PALAYAM_HEADERS, [sales_line(invoice="PAL-1", total="abc")]),
    }

    result = SalesPipeline(spark_session, config).run(sources=sources, halt_on_issues=False)

    sanitize = result.report("sanitize")
    assert sanitize.rows_quarantined == 2
    assert sanitize.rows_out == 1
    assert sanitize.balanced
    assert {i.invoice for i in result.issues} == {"MUT-2", "PAL-1"}
    assert [row[c.INVOICE] for row in result.final.collect()] == ["MUT-1"]


@pytest.mark.e2e
def test_rerun_is_deterministic(spark_session, config, example_sources):
    pipeline = SalesPipeline(spark_session, config)

    first = pipeline.run(sources=example_sources)
    second = pipeline.run(sources=example_sources)

    assert {k: v.rows for k, v in first.aggregates.items()} == {k: v.rows for k, v in second.aggregates.items()}
    assert example_sources["palayam"].count() == 1


@pytest.mark.e2e
def test_top_n_override(spark_session, config, make_source, sales_line):
    sources = {
        "muttathara": make_source(MUTTATHARA_HEADERS, [
            sales_line(invoice="INV-A", total="500.00"),
            sales_line(invoice="INV-B", total="300.00"),
            sales_line(invoice="INV-C", total="300.00"),
            sales_line(invoice="INV-D", total="100.00"),
        ]),
    }

    result = SalesPipeline(spark_session, config).run(sources=sources, top_n=2)

    assert result.aggregates["top_invoices"].rows == [
        ["INV-A", Decimal("500.00")],
        ["INV-B", Decimal("300.00")],
    ]


@pytest.mark.e2e
def test_zero_top_n_is_rejected(spark_session, config, example_sources):
    with pytest.raises(ValueError, match="top_n must be positive"):
        SalesPipeline(spark_session, config).run(sources=example_sources, top_n=0)


@pytest.mark.e2e
def test_preview_reports_without_halting(spark_session, config, make_source, sales_line):
    sources = {
        "muttathara": make_source(MUTTATHARA_HEADERS, [
            sales_line(invoice="MUT-1"),
            sales_line(invoice="MUT-2", total="12,50"),
            {"Total": "2024.99"},
        ]),
    }

    removed, issues = SalesPipeline(spark_session, config).preview(sources)

    assert removed == {"muttathara": 1}
    assert {(i.invoice, i.field) for i in issues} == {
        ("MUT-2", "rate"), ("MUT-2", "amount"), ("MUT-2", "total"),
    }


@pytest.mark.e2e
def test_profile_runs_on_unified_relation(spark_session, config, example_sources):
    result = SalesPipeline(spark_session, config).run(sources=example_sources)

    per_branch = {r["branch"]: r["transactions"] for r in result.profile["rows_per_branch"].records()}
    assert per_branch == {"Muttathara": 2, "": 1}
    assert {d.column for d in result.divergences if d.kind == "null_filled"} >= {"description", "company"}
