"""
Pipeline configuration.

Loads config/pipeline.yaml into validated pydantic models. Source paths and
the rule file path are resolved relative to the YAML file's directory.
"""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from sales_pulse.core.errors import ConfigError
from sales_pulse.core.schema import columns as c


class SourceConfig(BaseModel):
    """
    One branch source.

    Attributes:
        name: Source table name used for lineage ("muttathara")
        kind: "file" (CSV/JSON/parquet export) or "table" (PostgreSQL table)
        path: File path, for kind=file
        table: Table name, for kind=table
        format: File format, for kind=file
        options: Extra reader options (delimiter, encoding, ...)
    """

    name: str = Field(..., min_length=1)
    kind: Literal["file", "table"] = "file"
    path: str | None = None
    table: str | None = None
    format: Literal["csv", "json", "parquet"] = "csv"
    options: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_location(self):
        if self.kind == "file" and not self.path:
            raise ValueError(f"File source '{self.name}' requires 'path'")
        if self.kind == "table" and not self.table:
            raise ValueError(f"Table source '{self.name}' requires 'table'")
        return self


class CategoryRule(BaseModel):
    """Item-group marker and the category it implies."""

    marker: str = Field(..., min_length=1)
    category: Literal["Service", "SparePart"]


class NonTransactionalConfig(BaseModel):
    """Fields of the summary-row predicate: total present, posting date blank."""

    total_field: str = c.TOTAL
    date_field: str = c.POSTING_DATE


class PipelineConfig(BaseModel):
    """
    Complete configuration of one pipeline run.

    Attributes:
        sources: Branch sources to unify
        header_aliases: Extra raw header -> canonical column mappings
        non_transactional: Summary-row predicate fields
        category_overrides: Markers checked before category_markers
        category_markers: Ordered item-group markers; first match wins
        counter_sale_label: Label for rows without a branch
        halt_on_issues: Stop on unparsable values instead of quarantining
        top_n: Size of the top invoice ranking
        final_view_name: Temp view name of the final relation
        validation_rules_path: Coercion rules YAML, built-in rules if unset
        profile_columns: Columns reported by the completeness profile
    """

    sources: list[SourceConfig] = Field(..., min_length=1)
    header_aliases: dict[str, str] = Field(default_factory=dict)
    non_transactional: NonTransactionalConfig = Field(default_factory=NonTransactionalConfig)
    category_overrides: list[CategoryRule] = Field(default_factory=list)
    category_markers: list[CategoryRule] = Field(
        default_factory=lambda: [
            CategoryRule(marker="labour", category="Service"),
            CategoryRule(marker="service", category="Service"),
        ]
    )
    counter_sale_label: str = Field("Counter Sale", min_length=1)
    halt_on_issues: bool = True
    top_n: int = Field(10, ge=1)
    final_view_name: str = Field("sales_all_branches_final", pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    validation_rules_path: str | None = None
    profile_columns: list[str] = Field(
        default_factory=lambda: [c.PAYMENT_MODE, c.BRANCH, c.POSTING_DATE, c.TOTAL]
    )

    @model_validator(mode="after")
    def check_unique_sources(self):
        names = [source.name for source in self.sources]
        if len(names) != len(set(names)):
            raise ValueError(f"Source names must be unique, got {names}")
        return self


class PipelineConfigLoader:
    """
    Loads the pipeline configuration from YAML.

    Expected YAML format:
    ```yaml
    sources:
      - name: muttathara
        path: data/muttathara.csv
      - name: palayam
        kind: table
        table: palayam
    halt_on_issues: true
    category_markers:
      - {marker: labour, category: Service}
      - {marker: service, category: Service}
    ```
    """

    def __init__(self, config_path: str | Path):
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Pipeline configuration file not found: {config_path}")

    def load(self) -> PipelineConfig:
        """
        Parse and validate the configuration.

        Raises:
            ConfigError: If the YAML is malformed or fails validation
        """
        with open(self.config_path) as f:
            try:
                raw = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigError(f"{self.config_path} must contain a mapping")

        try:
            config = PipelineConfig.model_validate(raw)
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid pipeline configuration in {self.config_path}: {e}") from e

        base = self.config_path.parent
        for source in config.sources:
            if source.path and not Path(source.path).is_absolute():
                source.path = str(base / source.path)
        if config.validation_rules_path and not Path(config.validation_rules_path).is_absolute():
            config.validation_rules_path = str(base / config.validation_rules_path)

        return config
