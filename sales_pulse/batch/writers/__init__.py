"""
Batch output writers.
"""

from .issue_writer import IssueWriter
from .result_writer import ResultWriter

__all__ = [
    "ResultWriter",
    "IssueWriter",
]
