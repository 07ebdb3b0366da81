"""
CSV reader using Spark for source snapshots.
"""

from typing import Optional

from pyspark.sql import DataFrame, SparkSession
from pyspark.sql.types import StructType


class CSVReader:
    """
    Reads CSV exports of the source sheets with Spark.

    Schema inference is off by default so that every cell arrives as text,
    exactly as it was typed into the sheet (leading zeros, "1st", dates).
    """

    def __init__(self, spark: SparkSession):
        """
        Initialize CSV reader.

        Args:
            spark: Active Spark session
        """
        self.spark = spark

    def read(
        self,
        file_path: str,
        schema: Optional[StructType] = None,
        header: bool = True,
        delimiter: str = ",",
        infer_schema: bool = False,
        multi_line: bool = True,
    ) -> DataFrame:
        """
        Read CSV file into Spark DataFrame.

        Args:
            file_path: Path to CSV file
            schema: Optional explicit schema
            header: Whether CSV has header row
            delimiter: Field delimiter
            infer_schema: Whether to infer column types if no schema is given
            multi_line: Allow quoted cells spanning lines (free-text answers)

        Returns:
            Spark DataFrame
        """
        reader = self.spark.read

        if schema:
            reader = reader.schema(schema)
        elif infer_schema:
            reader = reader.option("inferSchema", "true")

        df = reader \
            .option("header", str(header).lower()) \
            .option("delimiter", delimiter) \
            .option("multiLine", str(multi_line).lower()) \
            .option("escape", '"') \
            .option("mode", "PERMISSIVE") \
            .csv(file_path)

        return df
