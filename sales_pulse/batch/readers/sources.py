"""
Loads every configured branch source into a DataFrame snapshot.
"""

from pyspark.sql import DataFrame, SparkSession

from sales_pulse.core.config import PipelineConfig
from sales_pulse.core.errors import ConfigError
from sales_pulse.observability.logger import get_logger
from sales_pulse.warehouse.connection import DatabaseConnectionPool

from .file_reader import FileReader
from .table_reader import BranchTableReader

logger = get_logger(__name__)


def load_sources(
    spark: SparkSession,
    config: PipelineConfig,
    pool: DatabaseConnectionPool | None = None,
) -> dict[str, DataFrame]:
    """
    Read each source named in the pipeline config.

    Args:
        spark: Active Spark session
        config: Pipeline configuration
        pool: Open connection pool, required for table sources

    Returns:
        Source name -> DataFrame, in configuration order

    Raises:
        ConfigError: If a table source is configured without a pool
    """
    file_reader = FileReader(spark)
    table_reader = BranchTableReader(spark, pool) if pool is not None else None

    sources: dict[str, DataFrame] = {}
    for source in config.sources:
        if source.kind == "file":
            logger.info(f"Reading source '{source.name}' from {source.path}")
            sources[source.name] = file_reader.read(source.path, source.format, **source.options)
        else:
            if table_reader is None:
                raise ConfigError(
                    f"Source '{source.name}' reads table '{source.table}' but no database is configured"
                )
            sources[source.name] = table_reader.read_table(source.table)
    return sources


def needs_database(config: PipelineConfig) -> bool:
    return any(source.kind == "table" for source in config.sources)
