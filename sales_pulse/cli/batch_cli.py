"""
Command-line interface for the sales pipeline.

Usage:
    sales-pulse run --config config/pipeline.yaml --output output/
    sales-pulse preview --config config/pipeline.yaml
    sales-pulse profile --config config/pipeline.yaml
"""

import argparse
import json
import sys
from contextlib import contextmanager
from pathlib import Path

from dotenv import load_dotenv
from psycopg import OperationalError
from pyspark.sql import SparkSession

from sales_pulse.batch.pipeline import SalesPipeline
from sales_pulse.batch.readers import needs_database
from sales_pulse.batch.writers import IssueWriter, ResultWriter
from sales_pulse.core.config import PipelineConfig, PipelineConfigLoader
from sales_pulse.core.errors import ConfigError, SalesPipelineError
from sales_pulse.observability.logger import get_logger
from sales_pulse.observability.metrics import get_metrics_text
from sales_pulse.warehouse.connection import DatabaseConnectionPool

logger = get_logger(__name__)


def create_spark_session(app_name: str = "SalesPulse") -> SparkSession:
    """
    Create a local Spark session for batch processing.

    Args:
        app_name: Application name

    Returns:
        SparkSession
    """
    spark = SparkSession.builder \
        .appName(app_name) \
        .master("local[*]") \
        .config("spark.sql.adaptive.enabled", "true") \
        .config("spark.sql.adaptive.coalescePartitions.enabled", "true") \
        .config("spark.sql.session.timeZone", "UTC") \
        .getOrCreate()

    return spark


def _open_pool(config: PipelineConfig) -> DatabaseConnectionPool | None:
    if not needs_database(config):
        return None
    logger.info("Initializing database connection...")
    try:
        pool = DatabaseConnectionPool()
    except ValueError as e:
        raise ConfigError(str(e)) from e
    pool.open()
    return pool


@contextmanager
def _pipeline_session(args):
    """Yield a pipeline, stopping Spark and closing the pool on the way out."""
    config = PipelineConfigLoader(args.config).load()
    spark = create_spark_session()
    pool = None
    try:
        pool = _open_pool(config)
        yield SalesPipeline(spark, config, pool=pool)
    finally:
        if pool is not None:
            pool.close()
        spark.stop()


def _print_results(results: dict) -> None:
    print(json.dumps({name: result.to_jsonable() for name, result in results.items()}, indent=2))


def run_command(args) -> int:
    """Run the full pipeline and write the final relation, aggregates and issue log."""
    output = Path(args.output)

    with _pipeline_session(args) as pipeline:
        halt = False if args.allow_issues else None
        result = pipeline.run(halt_on_issues=halt, top_n=args.top_n)

        writer = ResultWriter()
        writer.write_relation(result.final, output / "sales_all_branches_final", args.output_format)
        writer.write_aggregates(result.aggregates, output / "aggregates")
        writer.write_aggregates(result.profile, output / "profile")
        IssueWriter().write(result.issues, output / "issues.jsonl")
        (output / "metrics.prom").write_bytes(get_metrics_text())

        logger.info("=" * 60)
        logger.info("PIPELINE COMPLETE")
        logger.info("=" * 60)
        for report in result.reports:
            logger.info(
                f"{report.stage}: {report.rows_in} in, {report.rows_out} out, "
                f"{report.rows_removed} removed, {report.rows_quarantined} quarantined"
            )
        logger.info(f"Data quality issues: {len(result.issues)}")
        logger.info("=" * 60)

    return 0


def preview_command(args) -> int:
    """Count summary rows and coercion issues without writing anything."""
    with _pipeline_session(args) as pipeline:
        removed, issues = pipeline.preview()
        print(json.dumps(
            {
                "non_transactional_rows": removed,
                "issues": [issue.model_dump(mode="json") for issue in issues],
            },
            indent=2,
        ))

    return 1 if issues else 0


def profile_command(args) -> int:
    """Print the pre-cleaning data profile."""
    with _pipeline_session(args) as pipeline:
        unified, divergences, _ = pipeline.unify()
        for divergence in divergences:
            logger.info(f"{divergence.column}: {divergence.kind} in {', '.join(divergence.sources)}")
        _print_results(pipeline.profile(unified))

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sales-pulse",
        description="Multi-branch sales consolidation and revenue analytics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Full run, quarantining rows with unparsable values instead of halting
  sales-pulse run --config config/pipeline.yaml --output output/ --allow-issues

  # Check summary-row removal and coercion before a run
  sales-pulse preview --config config/pipeline.yaml

  # Profile the unified data
  sales-pulse profile --config config/pipeline.yaml
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the pipeline and write results")
    run_parser.add_argument("--config", required=True, help="Path to pipeline YAML file")
    run_parser.add_argument("--output", required=True, help="Output directory")
    run_parser.add_argument(
        "--allow-issues",
        action="store_true",
        help="Quarantine rows with unparsable values instead of halting"
    )
    run_parser.add_argument(
        "--top-n",
        type=int,
        default=None,
        help="Size of the top invoice ranking (default: from config)"
    )
    run_parser.add_argument(
        "--output-format",
        default="parquet",
        choices=["parquet", "csv"],
        help="Format of the final relation (default: parquet)"
    )

    preview_parser = subparsers.add_parser("preview", help="Dry run of summary-row removal and coercion")
    preview_parser.add_argument("--config", required=True, help="Path to pipeline YAML file")

    profile_parser = subparsers.add_parser("profile", help="Print the data profile")
    profile_parser.add_argument("--config", required=True, help="Path to pipeline YAML file")

    return parser


COMMANDS = {
    "run": run_command,
    "preview": preview_command,
    "profile": profile_command,
}


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "run" and args.top_n is not None and args.top_n < 1:
        parser.error("--top-n must be a positive integer")

    try:
        return COMMANDS[args.command](args)
    except (SalesPipelineError, FileNotFoundError, OperationalError) as e:
        logger.error(f"{args.command} failed: {e}", extra={"error_type": type(e).__name__})
        return 1


if __name__ == "__main__":
    sys.exit(main())
