"""
Derived row labels: item category and normalized branch.

Each label is a pure function of one source column, available both as a
plain Python function and as an equivalent Spark column expression, so the
derived value is always computed from the text it depends on.
"""

from collections.abc import Iterable

from pyspark.sql import Column
from pyspark.sql import functions as F

from sales_pulse.core.schema import columns as c
from sales_pulse.core.validators import BLANK_PATTERN, is_blank

SERVICE = "Service"
SPARE_PART = "SparePart"
CATEGORIES = (SERVICE, SPARE_PART)

COUNTER_SALE = "Counter Sale"


class ItemCategoryClassifier:
    """
    Classifies an item group as Service or SparePart from a rule table.

    Rule table semantics:
    - overrides are checked first, then markers, in the given order
    - a rule matches when its marker occurs in the item group, ignoring case
    - the first matching rule decides; no match means SparePart

    Default markers: "labour" -> Service, "service" -> Service.
    """

    DEFAULT_MARKERS: tuple[tuple[str, str], ...] = (
        ("labour", SERVICE),
        ("service", SERVICE),
    )

    def __init__(
        self,
        markers: Iterable[tuple[str, str]] | None = None,
        overrides: Iterable[tuple[str, str]] | None = None,
    ):
        rules = list(overrides or []) + list(self.DEFAULT_MARKERS if markers is None else markers)
        for marker, category in rules:
            if category not in CATEGORIES:
                raise ValueError(f"Unknown item category '{category}' for marker '{marker}'")
            if not marker:
                raise ValueError("Category markers must be non-empty")
        self.rules: list[tuple[str, str]] = [(marker.lower(), category) for marker, category in rules]

    def classify(self, item_group: str | None) -> str:
        text = (item_group or "").lower()
        for marker, category in self.rules:
            if marker in text:
                return category
        return SPARE_PART

    def column(self, column_name: str = c.ITEM_GROUP) -> Column:
        text = F.lower(F.coalesce(F.col(column_name), F.lit("")))
        expr = None
        for marker, category in self.rules:
            condition = text.contains(marker)
            expr = F.when(condition, F.lit(category)) if expr is None else expr.when(condition, F.lit(category))
        if expr is None:
            return F.lit(SPARE_PART)
        return expr.otherwise(F.lit(SPARE_PART))


class BranchLabeler:
    """
    Replaces a missing branch with a sentinel label.

    Null or whitespace-only branches become the sentinel ("Counter Sale");
    any other value is returned untouched, surrounding whitespace included.
    """

    def __init__(self, sentinel: str = COUNTER_SALE):
        if is_blank(sentinel):
            raise ValueError("Branch sentinel label must not be blank")
        self.sentinel = sentinel

    def label(self, branch: str | None) -> str:
        if is_blank(branch):
            return self.sentinel
        return branch

    def column(self, column_name: str = c.BRANCH) -> Column:
        branch = F.col(column_name)
        return (
            F.when(branch.isNull() | branch.rlike(BLANK_PATTERN), F.lit(self.sentinel))
            .otherwise(branch)
        )


_default_classifier = ItemCategoryClassifier()
_default_labeler = BranchLabeler()


def classify_item_group(item_group: str | None) -> str:
    """Service if the item group mentions labour or service (any case), else SparePart."""
    return _default_classifier.classify(item_group)


def label_branch(branch: str | None) -> str:
    """Counter Sale for a null/blank branch, otherwise the branch unchanged."""
    return _default_labeler.label(branch)
