"""
Aggregation and profiling queries.
"""

from .aggregations import SalesAggregator, safe_ratio, share_pct
from .profiling import DataProfiler

__all__ = [
    "SalesAggregator",
    "DataProfiler",
    "safe_ratio",
    "share_pct",
]
