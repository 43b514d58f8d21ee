"""
Rule engine for coercing branch sales records.

The rule engine builds validators from rule configurations, runs them over
each record field by field, and produces a ValidationResult holding either
the coerced payload or the data quality issues that blocked it.
"""

from typing import Any

from pyspark.sql.types import DataType, DateType, DecimalType

from sales_pulse.core.errors import ConfigError
from sales_pulse.core.models import DataQualityIssue, SalesRecord, ValidationResult
from sales_pulse.core.schema import columns as c
from sales_pulse.core.validators import (
    BaseValidator,
    DateValidator,
    DecimalValidator,
    RequiredFieldValidator,
    ValidationError,
)


class RuleEngine:
    """
    Orchestrates coercion rules on sales records.

    Rules for the same field run in configuration order, each one receiving
    the value produced by the previous one.

    Warning severity is allowed only on optional fields: the posting date and
    the monetary fields must always come out typed.
    """

    VALIDATOR_REGISTRY = {
        "required_field": RequiredFieldValidator,
        "date": DateValidator,
        "decimal": DecimalValidator,
    }

    # Fields every cleaned row must carry as typed values
    REQUIRED_TYPED_FIELDS = frozenset([c.POSTING_DATE, *c.MONETARY_COLUMNS])

    def __init__(self, rules: list[dict[str, Any]]):
        """
        Initialize the rule engine with coercion rules.

        Args:
            rules: List of rule configurations, each containing:
                   - rule_name: str
                   - rule_type: str (required_field, date, decimal)
                   - field_name: str
                   - parameters: Dict[str, Any] (optional)
                   - severity: str (error or warning)
                   - enabled: bool (default True)
        """
        self.rules = rules
        self.validators: list[tuple[str, str, BaseValidator]] = []
        self._build_validators()

    def _build_validators(self) -> None:
        for rule in self.rules:
            if not rule.get("enabled", True):
                continue

            rule_name = rule["rule_name"]
            rule_type = rule["rule_type"]
            field_name = rule["field_name"]

            validator_class = self.VALIDATOR_REGISTRY.get(rule_type)
            if not validator_class:
                raise ConfigError(f"Unknown rule type: {rule_type}")

            severity = rule.get("severity", "error")
            if severity == "warning" and field_name in self.REQUIRED_TYPED_FIELDS:
                raise ConfigError(
                    f"Rule '{rule_name}' cannot use warning severity: "
                    f"'{field_name}' must be typed in every cleaned row"
                )

            try:
                validator = validator_class(field_name, rule.get("parameters", {}))
            except Exception as e:
                raise ConfigError(f"Failed to create validator for rule '{rule_name}': {e}") from e
            self.validators.append((rule_name, severity, validator))

    @property
    def fields(self) -> list[str]:
        """Fields touched by at least one enabled rule, in rule order."""
        seen: dict[str, None] = {}
        for _, _, validator in self.validators:
            seen.setdefault(validator.field_name, None)
        return list(seen)

    @property
    def coerced_types(self) -> dict[str, DataType]:
        """Spark type each date/decimal rule produces, keyed by field."""
        types: dict[str, DataType] = {}
        for _, _, validator in self.validators:
            if isinstance(validator, DateValidator):
                types[validator.field_name] = DateType()
            elif isinstance(validator, DecimalValidator):
                types[validator.field_name] = DecimalType(validator.precision, validator.scale)
        return types

    def validate_record(self, record: SalesRecord) -> ValidationResult:
        """
        Coerce a sales record against all rules.

        Args:
            record: The SalesRecord to coerce

        Returns:
            ValidationResult with the processed payload when every error-level
            rule passed, and one issue per failed rule of either severity
        """
        passed_rules = []
        failed_rules = []
        warnings = []
        transformations = []
        issues = []

        payload = dict(record.raw_payload)
        broken_fields: set[str] = set()

        for rule_name, severity, validator in self.validators:
            field_name = validator.field_name
            if field_name in broken_fields:
                # Later rules on a failed field would only repeat the failure
                continue

            value = payload.get(field_name)
            try:
                coerced = validator.validate(value, payload)
            except ValidationError as e:
                broken_fields.add(field_name)
                issues.append(DataQualityIssue(
                    source_table=record.source_table,
                    row_number=record.row_number,
                    invoice=DataQualityIssue.render_value(record.raw_payload.get(c.INVOICE)),
                    field=field_name,
                    kind=e.kind,
                    rule_name=rule_name,
                    severity=severity,
                    raw_value=DataQualityIssue.render_value(value),
                    message=e.message,
                ))
                if severity == "error":
                    failed_rules.append(rule_name)
                else:
                    # Warning: keep the row, null the value that could not be typed
                    warnings.append(rule_name)
                    payload[field_name] = None
                continue

            passed_rules.append(rule_name)
            if field_name in payload and (type(coerced) is not type(value) or coerced != value):
                transformations.append(f"{field_name}_{validator.rule_type}")
            payload[field_name] = coerced

        passed = len(failed_rules) == 0
        record.validation_status = "valid" if passed else "invalid"
        if passed:
            record.processed_payload = payload

        return ValidationResult(
            record_id=record.record_id,
            passed=passed,
            passed_rules=passed_rules,
            failed_rules=failed_rules,
            warnings=warnings,
            transformations_applied=transformations,
            issues=issues,
            processed_payload=payload if passed else None,
        )

    def validate_batch(self, records: list[SalesRecord]) -> list[ValidationResult]:
        return [self.validate_record(record) for record in records]

    def get_rule_summary(self) -> dict[str, Any]:
        """
        Get summary of loaded rules.

        Returns:
            Dictionary with rule counts by type and severity
        """
        by_type: dict[str, int] = {}
        by_severity: dict[str, int] = {}
        for _, severity, validator in self.validators:
            by_type[validator.rule_type] = by_type.get(validator.rule_type, 0) + 1
            by_severity[severity] = by_severity.get(severity, 0) + 1
        return {
            "total_rules": len(self.validators),
            "rules_by_type": by_type,
            "rules_by_severity": by_severity,
        }
