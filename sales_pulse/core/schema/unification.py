"""
Schema unification for branch sales tables.

Aligns differently shaped branch exports onto one superset schema and
stacks them, null-filling the columns a branch does not carry.
"""

from functools import reduce

from pyspark.sql import DataFrame
from pyspark.sql import functions as F
from pyspark.sql.types import DataType, StringType
from pyspark.sql.window import Window

from sales_pulse.core.errors import SchemaMismatchError, UnificationError
from sales_pulse.core.models import SchemaDivergence
from sales_pulse.observability.logger import get_logger

from . import columns as c

logger = get_logger(__name__)


def quoted(name: str) -> str:
    """Backtick-quote a column name so spaces and dots survive resolution."""
    return "`" + name.replace("`", "``") + "`"


class SchemaNormalizer:
    """
    Builds the unified relation from two or more branch sources.

    Handles:
    - Header renaming onto canonical column names
    - Null-filling columns absent from a source
    - Text-casting columns whose type differs between sources
    - Row-count conservation check
    """

    def __init__(self, header_aliases: dict[str, str] | None = None):
        """
        Args:
            header_aliases: Extra raw header -> canonical name mappings,
                applied before the built-in ERP aliases
        """
        self.header_aliases = header_aliases or {}

    def _canonical(self, header: str) -> str:
        stripped = header.strip()
        if stripped in self.header_aliases:
            return self.header_aliases[stripped]
        return c.canonical_name(stripped)

    def canonicalize(self, source_table: str, df: DataFrame) -> DataFrame:
        """
        Rename a source's raw headers to canonical column names.

        Raises:
            SchemaMismatchError: If two headers map to the same column
        """
        targets: dict[str, list[str]] = {}
        for header in df.columns:
            targets.setdefault(self._canonical(header), []).append(header)

        for column, headers in targets.items():
            if len(headers) > 1:
                raise SchemaMismatchError(source_table, column, headers)

        return df.select([
            F.col(quoted(headers[0])).alias(column)
            for column, headers in targets.items()
        ])

    @staticmethod
    def _number_rows(df: DataFrame) -> DataFrame:
        """Attach the 1-based position of each row within its source, in read order."""
        order = Window.orderBy(F.monotonically_increasing_id())
        return df.withColumn(c.SOURCE_ROW, F.row_number().over(order))

    def unify(self, sources: dict[str, DataFrame]) -> tuple[DataFrame, list[SchemaDivergence]]:
        """
        Stack all sources into one relation over the union of their columns.

        Args:
            sources: Source table name -> raw DataFrame

        Returns:
            Tuple of (unified_df, divergences). The unified frame starts with
            the source_table and source_row lineage columns, then the contract columns, then
            any extra columns in first-seen order.

        Raises:
            SchemaMismatchError: On a header collision inside one source
            UnificationError: If the unified row count differs from the sum
                of the source row counts
        """
        if not sources:
            raise ValueError("At least one source table is required")

        canonical = {name: self.canonicalize(name, df) for name, df in sources.items()}

        extras: list[str] = []
        types: dict[str, dict[str, DataType]] = {}
        for name, df in canonical.items():
            for field in df.schema.fields:
                types.setdefault(field.name, {})[name] = field.dataType
                if field.name not in c.UNIFIED_COLUMNS and field.name not in extras:
                    extras.append(field.name)

        all_columns = c.UNIFIED_COLUMNS + extras
        divergences: list[SchemaDivergence] = []
        target_types: dict[str, DataType] = {}

        for column in all_columns:
            present = types.get(column, {})
            missing = [name for name in canonical if name not in present]
            distinct_types = {t.simpleString() for t in present.values()}

            if len(distinct_types) > 1:
                target_types[column] = StringType()
                divergences.append(SchemaDivergence(
                    column=column,
                    kind="type_divergence",
                    sources=sorted(present),
                    detail=", ".join(f"{n}={t.simpleString()}" for n, t in sorted(present.items())) + "; unified as string",
                ))
            elif present:
                target_types[column] = next(iter(present.values()))
            else:
                target_types[column] = StringType()

            if missing:
                divergences.append(SchemaDivergence(
                    column=column,
                    kind="null_filled",
                    sources=missing,
                    detail="column absent from source, filled with nulls",
                ))
            if column in extras:
                divergences.append(SchemaDivergence(
                    column=column,
                    kind="extra_column",
                    sources=sorted(present),
                    detail="column outside the known ERP header set, carried through",
                ))

        aligned = []
        for name, df in canonical.items():
            numbered = self._number_rows(df)
            projection = [F.lit(name).alias(c.SOURCE_TABLE), F.col(c.SOURCE_ROW)]
            for column in all_columns:
                target = target_types[column]
                if column in df.columns:
                    expr = F.col(quoted(column))
                    if df.schema[column].dataType != target:
                        expr = expr.cast(target)
                else:
                    expr = F.lit(None).cast(target)
                projection.append(expr.alias(column))
            aligned.append(numbered.select(projection))

        unified = reduce(DataFrame.unionByName, aligned)

        expected = sum(df.count() for df in sources.values())
        actual = unified.count()
        if actual != expected:
            raise UnificationError(expected, actual)

        for divergence in divergences:
            logger.info(
                f"Schema divergence on '{divergence.column}': {divergence.kind}",
                extra={"column": divergence.column, "kind": divergence.kind, "sources": divergence.sources},
            )
        logger.info(f"Unified {len(sources)} sources into {actual} rows, {len(all_columns)} columns")

        return unified, divergences
