"""
Batch data source readers.
"""

from .csv_reader import CSVReader
from .file_reader import FileReader
from .sources import load_sources, needs_database
from .table_reader import BranchTableReader

__all__ = [
    "CSVReader",
    "FileReader",
    "BranchTableReader",
    "load_sources",
    "needs_database",
]
