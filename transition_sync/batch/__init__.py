"""
Spark batch processing module.
"""

from .pipeline import SyncPipeline
from .readers import BackupPlacementLookup, CSVReader, FileReader, SourceDatasetLoader

__all__ = [
    "SyncPipeline",
    "CSVReader",
    "FileReader",
    "SourceDatasetLoader",
    "BackupPlacementLookup",
]
