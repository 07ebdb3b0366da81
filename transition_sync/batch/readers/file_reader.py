"""
Generic file reader for multiple formats (CSV, JSON, Parquet).
"""

from typing import Any

from pyspark.sql import DataFrame, SparkSession

from transition_sync.utils.validation import clean_cell

from .csv_reader import CSVReader


class FileReader:
    """
    Reads a source file in any supported format and returns its rows as
    header-keyed records of cell strings.
    """

    SUPPORTED_FORMATS = ("csv", "json", "parquet")

    def __init__(self, spark: SparkSession):
        """
        Initialize file reader.

        Args:
            spark: Active Spark session
        """
        self.spark = spark
        self.csv_reader = CSVReader(spark)

    def read(self, file_path: str, file_format: str = "csv", **options) -> DataFrame:
        """
        Read file into Spark DataFrame.

        Args:
            file_path: Path to file
            file_format: Format (csv, json, parquet)
            **options: Format-specific options

        Returns:
            Spark DataFrame

        Raises:
            ValueError: If file format is unsupported
        """
        if file_format.lower() == "csv":
            return self.csv_reader.read(file_path, **options)
        elif file_format.lower() == "json":
            return self.spark.read.option("multiLine", "true").json(file_path)
        elif file_format.lower() == "parquet":
            return self.spark.read.parquet(file_path)
        else:
            raise ValueError(f"Unsupported file format: {file_format}")

    @staticmethod
    def to_records(df: DataFrame) -> list[dict[str, Any]]:
        """
        Collect a DataFrame into records keyed by column name.

        Nulls become "" and typed values (JSON/Parquet) are normalized to
        their cell string form. Row order follows the file.
        """
        return [
            {column: clean_cell(value) for column, value in row.asDict().items()}
            for row in df.collect()
        ]
