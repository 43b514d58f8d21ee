"""
Spark batch processing: readers, transforms and writers.

The pipeline itself lives in sales_pulse.batch.pipeline.
"""

from .readers import BranchTableReader, CSVReader, FileReader, load_sources
from .writers import IssueWriter, ResultWriter

__all__ = [
    "CSVReader",
    "FileReader",
    "BranchTableReader",
    "load_sources",
    "ResultWriter",
    "IssueWriter",
]
