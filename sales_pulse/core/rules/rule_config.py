"""
Rule configuration management.

Loads coercion rules from YAML files and provides the built-in rule set
for branch sales data.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from sales_pulse.core.errors import ConfigError
from sales_pulse.core.models import ValidationRule
from sales_pulse.core.schema import columns as c


class RuleConfigLoader:
    """
    Loads coercion rules from YAML configuration files.

    Expected YAML format:
    ```yaml
    rules:
      posting_date:
        - type: required_field
        - type: date
          params:
            format: "%Y-%m-%d"

      other_charges:
        - type: decimal
          params:
            precision: 12
            scale: 2
            blank_as_zero: true
    ```
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the rule config loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Rule configuration file not found: {config_path}")

    def load_rules(self) -> list[dict[str, Any]]:
        """
        Load and parse coercion rules from the YAML file.

        Returns:
            List of rule dictionaries suitable for RuleEngine

        Raises:
            ConfigError: If YAML is invalid or missing required fields
        """
        with open(self.config_path) as f:
            try:
                config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not config or "rules" not in config:
            raise ConfigError("Configuration file must contain 'rules' section")

        rules = []
        for field_name, field_rule_list in config["rules"].items():
            if not isinstance(field_rule_list, list):
                raise ConfigError(f"Rules for field '{field_name}' must be a list")

            for idx, rule_def in enumerate(field_rule_list):
                rules.append(self._parse_rule(field_name, rule_def, idx))

        return rules

    def _parse_rule(self, field_name: str, rule_def: dict[str, Any], idx: int) -> dict[str, Any]:
        if not isinstance(rule_def, dict) or "type" not in rule_def:
            raise ConfigError(f"Rule for field '{field_name}' is missing 'type'")

        rule_type = rule_def["type"]
        try:
            rule = ValidationRule(
                rule_name=rule_def.get("name", f"{field_name}_{rule_type}_{idx}"),
                rule_type=rule_type,
                field_name=field_name,
                parameters=rule_def.get("params", rule_def.get("parameters")) or {},
                severity=rule_def.get("severity", "error"),
                enabled=rule_def.get("enabled", True),
            )
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid rule #{idx} for field '{field_name}': {e}") from e

        return rule.model_dump()


class RuleConfigBuilder:
    """
    Programmatically build rule configurations (for defaults and tests).
    """

    def __init__(self):
        self.rules: list[dict[str, Any]] = []

    def _add(self, field_name: str, rule_type: str, parameters: dict[str, Any], severity: str) -> None:
        rule = ValidationRule(
            rule_name=f"{field_name}_{rule_type}",
            rule_type=rule_type,
            field_name=field_name,
            parameters=parameters,
            severity=severity,
        )
        self.rules.append(rule.model_dump())

    def add_required_field(self, field_name: str, allow_empty_string: bool = False) -> "RuleConfigBuilder":
        self._add(field_name, "required_field", {"allow_empty_string": allow_empty_string}, "error")
        return self

    def add_date(self, field_name: str, date_format: str = "%Y-%m-%d", severity: str = "error") -> "RuleConfigBuilder":
        self._add(field_name, "date", {"format": date_format}, severity)
        return self

    def add_decimal(
        self,
        field_name: str,
        precision: int = 12,
        scale: int = 2,
        blank_as_zero: bool = False,
        severity: str = "error",
    ) -> "RuleConfigBuilder":
        self._add(
            field_name,
            "decimal",
            {"precision": precision, "scale": scale, "blank_as_zero": blank_as_zero},
            severity,
        )
        return self

    def build(self) -> list[dict[str, Any]]:
        """Build and return the rule configuration."""
        return self.rules


def default_rules() -> list[dict[str, Any]]:
    """
    Built-in coercion rules for branch sales lines.

    Posting date must be a strict ISO date; the five monetary fields must be
    2-digit decimals (blank other charges count as zero); stock quantity is
    optional but must be numeric when present.
    """
    builder = (
        RuleConfigBuilder()
        .add_required_field(c.POSTING_DATE)
        .add_date(c.POSTING_DATE)
        .add_decimal(c.STOCK_QTY, precision=12, scale=3)
        .add_decimal(c.OTHER_CHARGES, precision=12, scale=2, blank_as_zero=True)
    )
    for field_name, precision in ((c.RATE, 10), (c.AMOUNT, 12), (c.TOTAL_TAX, 12), (c.TOTAL, 12)):
        builder.add_required_field(field_name).add_decimal(field_name, precision=precision, scale=2)
    return builder.build()
