"""
PostgreSQL reader for branch sales tables.
"""

from datetime import date, datetime
from decimal import Decimal

from psycopg import sql
from pyspark.sql import DataFrame, SparkSession
from pyspark.sql.types import DateType, StringType, StructField, StructType

from sales_pulse.observability.logger import get_logger
from sales_pulse.warehouse.connection import DatabaseConnectionPool

logger = get_logger(__name__)


class BranchTableReader:
    """
    Reads a whole branch table through the connection pool.

    Values arrive as text except pure dates, which keep their type; the
    sanitizer coerces everything else.
    """

    def __init__(self, spark: SparkSession, pool: DatabaseConnectionPool):
        """
        Args:
            spark: Active Spark session
            pool: Open database connection pool
        """
        self.spark = spark
        self.pool = pool

    def read_table(self, table: str) -> DataFrame:
        """
        Read every row of a table into a Spark DataFrame.

        Args:
            table: Table name, optionally schema-qualified ("public.palayam")

        Returns:
            Spark DataFrame with the table's column names and order
        """
        query = sql.SQL("SELECT * FROM {}").format(sql.Identifier(*table.split(".")))

        with self.pool.get_cursor() as cur:
            cur.execute(query)
            names = [col.name for col in cur.description]
            rows = cur.fetchall()

        schema = StructType([
            StructField(name, DateType() if _all_dates(rows, name) else StringType(), True)
            for name in names
        ])
        date_columns = {f.name for f in schema.fields if isinstance(f.dataType, DateType)}

        data = [
            tuple(
                row[name] if name in date_columns else _as_text(row[name])
                for name in names
            )
            for row in rows
        ]

        logger.info(
            f"Read {len(data)} rows from table '{table}'",
            extra={"table": table, "row_count": len(data), "columns": len(names)},
        )
        return self.spark.createDataFrame(data, schema)


def _as_text(value) -> str | None:
    if value is None:
        return None
    # NUMERIC values keep plain notation (no exponent)
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def _all_dates(rows: list[dict], name: str) -> bool:
    values = [row[name] for row in rows if row[name] is not None]
    return bool(values) and all(
        isinstance(v, date) and not isinstance(v, datetime) for v in values
    )
