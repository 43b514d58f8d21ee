"""
Row-level transforms applied between unification and aggregation.
"""

from .features import (
    CATEGORIES,
    COUNTER_SALE,
    SERVICE,
    SPARE_PART,
    BranchLabeler,
    ItemCategoryClassifier,
    classify_item_group,
    label_branch,
)
from .sanitizer import NonTransactionalRowRule, RowSanitizer, SanitizationResult

__all__ = [
    "CATEGORIES",
    "COUNTER_SALE",
    "SERVICE",
    "SPARE_PART",
    "BranchLabeler",
    "ItemCategoryClassifier",
    "classify_item_group",
    "label_branch",
    "NonTransactionalRowRule",
    "RowSanitizer",
    "SanitizationResult",
]
