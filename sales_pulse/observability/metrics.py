"""
Prometheus metrics for the sales-pulse batch pipeline

Metrics live on a private registry so repeated pipeline runs inside one
process (tests, notebooks) never clash with the default registry.
"""
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


REGISTRY = CollectorRegistry()


# =======================
# PIPELINE METRICS
# =======================

rows_total = Counter(
    name="sales_pipeline_rows_total",
    documentation="Rows leaving each pipeline stage",
    labelnames=["stage", "status"],  # status: kept, removed, quarantined
    registry=REGISTRY,
)

stage_duration_seconds = Histogram(
    name="sales_pipeline_stage_duration_seconds",
    documentation="Time spent in each pipeline stage in seconds",
    labelnames=["stage"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
    registry=REGISTRY,
)

# =======================
# DATA QUALITY METRICS
# =======================

rows_removed_total = Counter(
    name="sales_pipeline_rows_removed_total",
    documentation="Non-transactional summary rows removed per source table",
    labelnames=["source_table"],
    registry=REGISTRY,
)

issues_total = Counter(
    name="sales_pipeline_issues_total",
    documentation="Data quality issues detected during coercion",
    labelnames=["source_table", "field", "kind"],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def get_metrics_text() -> bytes:
    """
    Generate Prometheus metrics in text exposition format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def get_content_type() -> str:
    return CONTENT_TYPE_LATEST


def record_stage(stage: str, kept: int, duration_seconds: float | None = None, **other_counts: int) -> None:
    """
    Record row counts and duration of one stage.

    Args:
        stage: Stage name (normalize, sanitize, label, ...)
        kept: Rows passed on to the next stage
        duration_seconds: Stage wall time, if measured
        **other_counts: Additional row counts keyed by status (removed=3, quarantined=1)
    """
    rows_total.labels(stage=stage, status="kept").inc(kept)
    for status, count in other_counts.items():
        if count:
            rows_total.labels(stage=stage, status=status).inc(count)
    if duration_seconds is not None:
        stage_duration_seconds.labels(stage=stage).observe(duration_seconds)


def record_rows_removed(source_table: str, count: int) -> None:
    if count:
        rows_removed_total.labels(source_table=source_table).inc(count)


def record_issue(source_table: str, field: str, kind: str) -> None:
    issues_total.labels(source_table=source_table, field=field, kind=kind).inc()
