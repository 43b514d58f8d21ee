"""
DecimalValidator - coerces monetary and quantity text into fixed-point decimals.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from .base_validator import BLANK_CHARS, BaseValidator, ValidationError, is_blank


class DecimalValidator(BaseValidator):
    """
    Coerces a field to a Decimal with a fixed number of fractional digits.

    Parameters:
    - precision: total number of digits allowed (default 12)
    - scale: fractional digits kept, rounding half-up (default 2)
    - blank_as_zero: treat null/blank as zero instead of passing None through

    Text must be plain ASCII digits with an optional sign and fraction;
    thousands separators, decimal commas, underscores and exponents are
    rejected rather than reinterpreted.
    """

    NUMBER_PATTERN = re.compile(r"[+-]?\d+(\.\d+)?", re.ASCII)

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)
        self.precision = int(self.parameters.get("precision", 12))
        self.scale = int(self.parameters.get("scale", 2))
        if self.scale < 0 or self.precision <= self.scale:
            raise ValueError(
                f"Invalid decimal({self.precision},{self.scale}) for field '{field_name}'"
            )
        self.blank_as_zero = self.parameters.get("blank_as_zero", False)
        self.quantum = Decimal(1).scaleb(-self.scale)
        self.limit = Decimal(10) ** (self.precision - self.scale)

    def validate(self, value: Any, record: dict[str, Any]) -> Decimal | None:
        if is_blank(value):
            if self.blank_as_zero:
                return Decimal(0).quantize(self.quantum)
            return None

        if isinstance(value, bool):
            raise ValidationError(
                rule_name="decimal",
                field_name=self.field_name,
                message=f"Cannot coerce bool {value!r} to decimal",
                kind="unparsable_decimal",
            )

        text = str(value).strip(BLANK_CHARS)
        if isinstance(value, str) and not self.NUMBER_PATTERN.fullmatch(text):
            raise ValidationError(
                rule_name="decimal",
                field_name=self.field_name,
                message=f"Cannot parse '{text}' as decimal",
                kind="unparsable_decimal",
            )

        try:
            number = Decimal(text)
        except InvalidOperation:
            raise ValidationError(
                rule_name="decimal",
                field_name=self.field_name,
                message=f"Cannot parse '{text}' as decimal",
                kind="unparsable_decimal",
            )

        if not number.is_finite():
            raise ValidationError(
                rule_name="decimal",
                field_name=self.field_name,
                message=f"Value '{text}' is not a finite number",
                kind="unparsable_decimal",
            )

        try:
            quantized = number.quantize(self.quantum, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            quantized = None
        if quantized is None or abs(quantized) >= self.limit:
            raise ValidationError(
                rule_name="decimal",
                field_name=self.field_name,
                message=f"Value '{text}' does not fit decimal({self.precision},{self.scale})",
                kind="out_of_range",
            )

        return quantized

    @property
    def rule_type(self) -> str:
        return "decimal"
