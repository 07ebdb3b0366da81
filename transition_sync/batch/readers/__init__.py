"""
Batch source readers.
"""

from .csv_reader import CSVReader
from .file_reader import FileReader
from .source_loader import BackupPlacementLookup, SourceDatasetLoader

__all__ = [
    "CSVReader",
    "FileReader",
    "BackupPlacementLookup",
    "SourceDatasetLoader",
]
