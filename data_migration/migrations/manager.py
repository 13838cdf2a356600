"""
Per-row processing driver of data migrations.

SchemaDataManager.process() is the single entry point a migration uses to
re-process documents:

1. List every row of the handler's category (each worker reads all rows)
2. Keep the rows selected by this worker's partition
3. For each selected row, in its own transaction: resolve the original
   document and call the handler
4. Commit the row and move on

There is no skip-and-continue: the first failing row rolls back and aborts
the whole call. Rows committed before it stay committed, so a failed
migration is resumed by running it again, which relies on handlers being
idempotent (e.g. delete-then-insert).

Error mapping:
- documents.DocumentError subclasses propagate unchanged
- duckdb.Error becomes DatabaseError
- anything else raised by a handler becomes HandlerError
"""
import logging
from typing import Any, Optional, Sequence

import duckdb

from documents import DocumentError, DocumentResolver
from observability.metrics import RunMetrics
from storage.content import StorageBackend
from storage.database import Database
from .errors import DatabaseError, HandlerError, MigrationError
from .handlers import DocumentHandler
from .options import Options
from .partition import Partition

logger = logging.getLogger(__name__)

# Log progress every N processed rows
PROGRESS_INTERVAL = 100


class SchemaDataManager:
    """
    Runs migration handlers over the rows owned by this worker.

    One manager is bound to one database, one storage backend and one set
    of run options for the duration of a migration run.
    """

    def __init__(
        self,
        database: Database,
        storage: StorageBackend,
        options: Optional[Options] = None,
        metrics: Optional[RunMetrics] = None
    ):
        """
        Initialize manager.

        Args:
            database: Database the migrations run against
            storage: Backend holding the original document bytes
            options: Run options (partition, skip list, chunk size)
            metrics: Optional metrics to record row counts in
        """
        self.database = database
        self.storage = storage
        self.options = options or Options()
        self.metrics = metrics
        self.resolver = DocumentResolver(storage)

    @property
    def partition(self) -> Partition:
        return self.options.partition

    def process(self, name: str, handler: DocumentHandler) -> int:
        """
        Run a handler over every row of its category owned by this worker.

        Args:
            name: Name of the calling migration (checked against the skip list)
            handler: Per-row logic

        Returns:
            Number of rows processed

        Raises:
            DocumentError: If a row's document cannot be resolved
            DatabaseError: If a statement fails
            HandlerError: If the handler fails
        """
        if self.options.should_skip(name):
            logger.info(f"Skipping data migration {name}")
            if self.metrics:
                self.metrics.record_skipped(name)
            return 0

        category = handler.category
        try:
            records = category.list_records(self.database.connect())
        except duckdb.Error as e:
            raise DatabaseError(f"{name}: failed to list {category.name} rows: {e}") from e

        partition = self.partition
        selected = [record for record in records if partition.is_selected(record)]
        logger.info(
            "%s: processing %d of %d %s rows (partition %s)",
            name, len(selected), len(records), category.name, partition
        )
        if self.metrics:
            self.metrics.record_documents(name, len(records), len(selected))

        for index, record in enumerate(selected, start=1):
            self._process_record(name, handler, record)
            if self.metrics:
                self.metrics.record_processed(name)
            if index % PROGRESS_INTERVAL == 0:
                logger.info(f"{name}: {index}/{len(selected)} rows processed")

        logger.info(f"{name}: processed {len(selected)} {category.name} rows")
        return len(selected)

    def _process_record(self, name: str, handler: DocumentHandler, record: Any):
        what = handler.category.describe(record)
        try:
            with self.database.transaction() as conn:
                document = self.resolver.resolve(handler.category, record, conn)
                handler.handle(document, record, conn)
        except (DocumentError, MigrationError):
            raise
        except duckdb.Error as e:
            raise DatabaseError(f"{name}: database error on {what}: {e}") from e
        except Exception as e:
            raise HandlerError(f"{name}: handler failed on {what}: {e}") from e

    def execute(self, statement: str, params: Optional[Sequence[Any]] = None):
        """
        Run one statement in its own transaction.

        Meant for set-based work that does not need documents, such as
        clearing derived rows when a migration is reverted.

        Raises:
            DatabaseError: If the statement fails
        """
        try:
            with self.database.transaction() as conn:
                conn.execute(statement, list(params or []))
        except duckdb.Error as e:
            raise DatabaseError(f"Statement failed: {e}") from e
