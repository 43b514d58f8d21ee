"""
CSV reader for branch sales exports.
"""

from pyspark.sql import DataFrame, SparkSession
from pyspark.sql.types import StructType


class CSVReader:
    """
    Reads ERP CSV exports with Spark, every column as text.

    Schema inference is off by default: typing is owned by the sanitizer,
    which reports values it cannot parse instead of silently nulling them.
    """

    def __init__(self, spark: SparkSession):
        """
        Initialize CSV reader.

        Args:
            spark: Active Spark session
        """
        self.spark = spark

    def read(
        self,
        file_path: str,
        schema: StructType | None = None,
        header: bool = True,
        delimiter: str = ",",
        infer_schema: bool = False,
        encoding: str = "UTF-8",
    ) -> DataFrame:
        """
        Read CSV file into Spark DataFrame.

        Args:
            file_path: Path to CSV file
            schema: Optional explicit schema
            header: Whether CSV has header row
            delimiter: Field delimiter
            infer_schema: Whether to infer column types if no schema is given
            encoding: File encoding

        Returns:
            Spark DataFrame
        """
        reader = self.spark.read

        if schema:
            reader = reader.schema(schema)
        elif infer_schema:
            reader = reader.option("inferSchema", "true")

        df = reader \
            .option("header", str(header).lower()) \
            .option("delimiter", delimiter) \
            .option("encoding", encoding) \
            .option("multiLine", "true") \
            .option("escape", '"') \
            .option("mode", "PERMISSIVE") \
            .csv(file_path)

        return df
