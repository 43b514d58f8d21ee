"""
Canonical sales columns and schema unification.
"""

from . import columns
from .unification import SchemaNormalizer

__all__ = [
    "columns",
    "SchemaNormalizer",
]
