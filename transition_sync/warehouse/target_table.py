"""
Target table accessors.

The target table is an ordered list of fixed-width rows. Each row has a
1-based position and carries its student key in a fixed column. Accessors
never delete or reorder rows: they overwrite rows in place and append.
"""

import json
from abc import ABC, abstractmethod
from collections.abc import Sequence

from transition_sync.core.errors import TargetTableError
from transition_sync.core.models import PersistedRow
from transition_sync.core.rows.columns import COLUMN_COUNT, STUDENT_ID_INDEX
from transition_sync.observability.logger import get_logger
from transition_sync.utils.validation import clean_cell, extract_student_key, sanitize_sql_identifier

from .connection import DatabaseConnectionPool

logger = get_logger(__name__)

RowUpdate = tuple[int, list[str]]


class TargetTableAccessor(ABC):
    """
    Read/write access to the published table.

    Args:
        column_count: Fixed row width
        key_column_index: 0-based index of the student key column
    """

    def __init__(self, column_count: int = COLUMN_COUNT, key_column_index: int = STUDENT_ID_INDEX):
        if key_column_index >= column_count:
            raise ValueError(f"Key column {key_column_index} outside row width {column_count}")
        self.column_count = column_count
        self.key_column_index = key_column_index

    @abstractmethod
    def exists(self) -> bool:
        """Whether the table exists and can be written."""

    @abstractmethod
    def read_all_rows(self) -> list[PersistedRow]:
        """All rows in position order."""

    @abstractmethod
    def update_rows(self, updates: Sequence[RowUpdate]) -> int:
        """Overwrite the cells of existing rows in one batch. Returns rows updated."""

    @abstractmethod
    def append_rows(self, rows: Sequence[list[str]]) -> int:
        """Append rows after the current last row in one batch. Returns rows appended."""

    def update_row(self, position: int, cells: list[str]) -> int:
        return self.update_rows([(position, cells)])

    def require_exists(self) -> None:
        """
        Raises:
            TargetTableError: If the table does not exist
        """
        if not self.exists():
            raise TargetTableError(f"Target table {self.describe()} does not exist")

    def describe(self) -> str:
        return type(self).__name__

    def normalize(self, cells: Sequence) -> list[str]:
        """Stored cells as strings, padded or truncated to the row width."""
        values = [clean_cell(value) for value in cells[: self.column_count]]
        return values + [""] * (self.column_count - len(values))

    def to_persisted(self, position: int, cells: Sequence) -> PersistedRow:
        values = self.normalize(cells)
        return PersistedRow(
            position=position,
            cells=values,
            student_key=extract_student_key(values[self.key_column_index]),
        )

    def check_width(self, cells: Sequence) -> None:
        if len(cells) != self.column_count:
            raise TargetTableError(
                f"Row has {len(cells)} cells, target table expects {self.column_count}"
            )


class InMemoryTargetTable(TargetTableAccessor):
    """
    List-backed target table for dry runs and tests.

    Counts write calls so callers can assert batching behavior.
    """

    def __init__(
        self,
        rows: Sequence[Sequence] | None = None,
        column_count: int = COLUMN_COUNT,
        key_column_index: int = STUDENT_ID_INDEX,
        table_exists: bool = True,
    ):
        super().__init__(column_count, key_column_index)
        self._rows = [self.normalize(row) for row in rows or []]
        self.table_exists = table_exists
        self.update_calls = 0
        self.append_calls = 0

    @property
    def rows(self) -> list[list[str]]:
        return [list(row) for row in self._rows]

    def exists(self) -> bool:
        return self.table_exists

    def read_all_rows(self) -> list[PersistedRow]:
        self.require_exists()
        return [self.to_persisted(idx, row) for idx, row in enumerate(self._rows, start=1)]

    def update_rows(self, updates: Sequence[RowUpdate]) -> int:
        self.require_exists()
        if not updates:
            return 0
        for position, cells in updates:
            self.check_width(cells)
            if not 1 <= position <= len(self._rows):
                raise TargetTableError(f"No row at position {position}")
        self.update_calls += 1
        for position, cells in updates:
            self._rows[position - 1] = list(cells)
        return len(updates)

    def append_rows(self, rows: Sequence[list[str]]) -> int:
        self.require_exists()
        if not rows:
            return 0
        for cells in rows:
            self.check_width(cells)
        self.append_calls += 1
        self._rows.extend(list(cells) for cells in rows)
        return len(rows)


class PostgresTargetTable(TargetTableAccessor):
    """
    Target table stored in PostgreSQL.

    Layout:
        row_position INTEGER PRIMARY KEY  -- 1-based row position
        cells        JSONB NOT NULL       -- cell strings in column order
        updated_at   TIMESTAMPTZ          -- last write time
    """

    def __init__(
        self,
        pool: DatabaseConnectionPool,
        table_name: str = "tentative_rows",
        column_count: int = COLUMN_COUNT,
        key_column_index: int = STUDENT_ID_INDEX,
    ):
        super().__init__(column_count, key_column_index)
        self.pool = pool
        self.table_name = sanitize_sql_identifier(table_name, "table_name")

    def describe(self) -> str:
        return self.table_name

    def exists(self) -> bool:
        rows = self.pool.execute_query("SELECT to_regclass(%s) AS oid", (self.table_name,))
        return bool(rows) and rows[0]["oid"] is not None

    def ensure_table(self) -> None:
        """Create the table when missing (first-time setup)."""
        self.pool.execute_command(
            f"""
            CREATE TABLE IF NOT EXISTS {self.table_name} (
                row_position INTEGER PRIMARY KEY CHECK (row_position > 0),
                cells JSONB NOT NULL,
                updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
            """
        )
        logger.info(f"Target table {self.table_name} is ready", extra={"table": self.table_name})

    def read_all_rows(self) -> list[PersistedRow]:
        self.require_exists()
        rows = self.pool.execute_query(
            f"SELECT row_position, cells FROM {self.table_name} ORDER BY row_position"
        )
        return [self.to_persisted(row["row_position"], row["cells"]) for row in rows]

    def update_rows(self, updates: Sequence[RowUpdate]) -> int:
        self.require_exists()
        if not updates:
            return 0
        for _, cells in updates:
            self.check_width(cells)

        self.pool.execute_batch(
            f"UPDATE {self.table_name} SET cells = %s::jsonb, updated_at = now() WHERE row_position = %s",
            [(json.dumps(list(cells)), position) for position, cells in updates],
        )
        return len(updates)

    def append_rows(self, rows: Sequence[list[str]]) -> int:
        self.require_exists()
        if not rows:
            return 0
        for cells in rows:
            self.check_width(cells)

        with self.pool.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT COALESCE(MAX(row_position), 0) AS last FROM {self.table_name}")
                last = cur.fetchone()["last"]
                cur.executemany(
                    f"INSERT INTO {self.table_name} (row_position, cells) VALUES (%s, %s::jsonb)",
                    [(last + offset, json.dumps(list(cells))) for offset, cells in enumerate(rows, start=1)],
                )
            conn.commit()
        return len(rows)
