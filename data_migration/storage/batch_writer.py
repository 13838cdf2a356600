"""
Chunked, conflict-safe bulk inserts.

A BatchWriter turns an arbitrarily long sequence of rows into multi-row
INSERT statements, each bounded so that its bind parameters stay below
the database's parameter ceiling. Every statement carries an explicit
ON CONFLICT ... DO NOTHING on the table's natural key, so replaying the
same rows is a no-op rather than an error or an upsert.
"""
import logging
from itertools import islice
from typing import Any, Iterable, Iterator, List, Sequence, Set, Tuple

import duckdb

logger = logging.getLogger(__name__)

# Postgres' bind parameter ceiling, kept so chunks stay portable
MAX_PARAMETERS = 65535
DEFAULT_CHUNK_SIZE = 1000


class BatchWriter:
    """
    Inserts rows in size-bounded chunks, ignoring natural-key conflicts.

    Rows are sequences ordered like `columns`. Rows repeating the conflict
    key of an earlier row in the same sequence are dropped before they
    reach the database; the first occurrence wins, as it would against an
    already persisted row.
    """

    def __init__(
        self,
        conn: duckdb.DuckDBPyConnection,
        table: str,
        columns: Sequence[str],
        conflict_columns: Sequence[str],
        chunk_size: int = DEFAULT_CHUNK_SIZE
    ):
        """
        Initialize the writer.

        Args:
            conn: Connection (usually with a transaction open)
            table: Target table
            columns: Column names, in row order
            conflict_columns: Natural key columns, a subset of `columns`
            chunk_size: Maximum rows per statement

        Raises:
            ValueError: If the key is not part of the columns or the chunk size is invalid
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        missing = [c for c in conflict_columns if c not in columns]
        if missing:
            raise ValueError(f"Conflict columns not in column list: {missing}")

        self.conn = conn
        self.table = table
        self.columns = list(columns)
        self.conflict_columns = list(conflict_columns)
        self.chunk_size = min(chunk_size, MAX_PARAMETERS // len(self.columns))
        self._key_positions = [self.columns.index(c) for c in self.conflict_columns]

    def insert(self, rows: Iterable[Sequence[Any]]) -> int:
        """
        Insert all rows, chunk by chunk.

        Each chunk must succeed; a failing chunk raises and leaves earlier
        chunks in place (wrap the call in a transaction for atomicity).

        Args:
            rows: Rows to insert, consumed lazily

        Returns:
            Number of rows submitted (after dropping in-sequence duplicates)
        """
        submitted = 0
        for chunk in self._chunks(self._unique(rows)):
            self.conn.execute(self._statement(len(chunk)), [value for row in chunk for value in row])
            submitted += len(chunk)

        logger.debug(f"Submitted {submitted} rows to {self.table}")
        return submitted

    def _unique(self, rows: Iterable[Sequence[Any]]) -> Iterator[Tuple[Any, ...]]:
        seen: Set[Tuple[Any, ...]] = set()
        for row in rows:
            row = tuple(row)
            if len(row) != len(self.columns):
                raise ValueError(
                    f"Row has {len(row)} values, expected {len(self.columns)} for {self.table}"
                )
            key = tuple(row[i] for i in self._key_positions)
            if key in seen:
                continue
            seen.add(key)
            yield row

    def _chunks(self, rows: Iterator[Tuple[Any, ...]]) -> Iterator[List[Tuple[Any, ...]]]:
        while True:
            chunk = list(islice(rows, self.chunk_size))
            if not chunk:
                return
            yield chunk

    def _statement(self, row_count: int) -> str:
        placeholders = "(" + ", ".join("?" for _ in self.columns) + ")"
        values = ", ".join(placeholders for _ in range(row_count))
        return (
            f"INSERT INTO {self.table} ({', '.join(self.columns)}) "
            f"VALUES {values} "
            f"ON CONFLICT ({', '.join(self.conflict_columns)}) DO NOTHING"
        )
