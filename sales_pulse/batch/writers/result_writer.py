"""
Writers for the final relation and its aggregate results.
"""

import json
from pathlib import Path

from pyspark.sql import DataFrame

from sales_pulse.core.models import AggregateResult
from sales_pulse.observability.logger import get_logger

logger = get_logger(__name__)

SUPPORTED_FORMATS = ("parquet", "csv")


class ResultWriter:
    """
    Persists pipeline outputs.

    - The final relation is written by Spark (overwrite mode)
    - Each aggregate result becomes one <name>.json file
    """

    def write_relation(self, df: DataFrame, path: str | Path, file_format: str = "parquet") -> str:
        """
        Write the final relation.

        Args:
            df: Final relation
            path: Output directory
            file_format: parquet or csv

        Returns:
            Output path as written

        Raises:
            ValueError: If file format is unsupported
        """
        file_format = file_format.lower()
        if file_format not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported output format: {file_format}")

        writer = df.write.mode("overwrite")
        if file_format == "csv":
            writer.option("header", "true").csv(str(path))
        else:
            writer.parquet(str(path))

        logger.info(f"Wrote final relation to {path}", extra={"path": str(path), "format": file_format})
        return str(path)

    def write_aggregates(self, results: dict[str, AggregateResult], directory: str | Path) -> list[Path]:
        """
        Write every aggregate result as JSON.

        Args:
            results: Query name -> result
            directory: Output directory, created if missing

        Returns:
            Paths of the written files
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)

        written = []
        for name, result in results.items():
            target = directory / f"{name}.json"
            with open(target, "w") as f:
                json.dump(result.to_jsonable(), f, indent=2)
            written.append(target)

        logger.info(
            f"Wrote {len(written)} aggregate result(s) to {directory}",
            extra={"directory": str(directory), "results": sorted(results)},
        )
        return written
