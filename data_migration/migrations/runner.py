"""
Run named data migrations, in order, up or down.

The runner:
1. Resolves every requested name (any unknown name fails the whole run
   before the database is touched)
2. Opens one connection
3. Runs the migrations strictly one after the other, each with a manager
   bound to the connection, the storage backend and the run options
4. Stops at the first failure; migrations completed before it are not
   reverted (that is a separate `down` run)

Every executed migration is recorded in the data_migration_runs table and
in the returned RunMetrics.
"""
import logging
import time
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Sequence, Union

import duckdb

from observability.metrics import MigrationResult, RunMetrics
from storage.content import StorageBackend
from storage.database import Database
from .base import Migration
from .manager import SchemaDataManager
from .options import Options
from .registry import MigrationRegistry

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


class MigrationRunner:
    """
    Orchestrates a run of data migrations against one database.

    The database may be given as an open Database, which the runner uses
    and leaves open, or as a path, which the runner opens and closes.
    """

    def __init__(
        self,
        registry: MigrationRegistry,
        database: Union[Database, str],
        storage: StorageBackend,
        options: Optional[Options] = None,
        direction: Direction = Direction.UP,
        progress: Optional[Callable[[str], None]] = None
    ):
        """
        Initialize runner.

        Args:
            registry: Known migrations
            database: Database instance, or path of a DuckDB file
            storage: Backend holding the original document bytes
            options: Run options (partition, skip list, chunk size)
            direction: Apply (UP) or revert (DOWN) the migrations
            progress: Called with each migration's name before it runs
        """
        self.registry = registry
        self.database = database
        self.storage = storage
        self.options = options or Options()
        self.direction = Direction(direction)
        self.progress = progress
        self.metrics: Optional[RunMetrics] = None

    def run(self, names: Optional[Sequence[str]] = None) -> RunMetrics:
        """
        Run migrations.

        Args:
            names: Migrations to run, in order. An empty list runs nothing.
                None runs every registered migration (in reverse registration
                order when reverting).

        Returns:
            RunMetrics of the run

        Raises:
            MigrationNotFound: If any name is unknown (nothing ran)
            MigrationError / DocumentError: From the first failing migration
        """
        migrations = self._select(names)

        if isinstance(self.database, Database):
            database, owned = self.database, False
        else:
            database, owned = Database(self.database), True

        partition = self.options.partition
        metrics = RunMetrics(
            run_id=database.get_current_run_id(),
            started_at=datetime.utcnow(),
            direction=self.direction.value,
            partition_current=partition.current,
            partition_total=partition.total,
        )
        self.metrics = metrics

        logger.info(
            f"=== Starting data migration run {metrics.run_id}: "
            f"{len(migrations)} migration(s) {self.direction.value}, partition {partition} ==="
        )

        try:
            database.connect()
            manager = SchemaDataManager(database, self.storage, self.options, metrics)
            for migration in migrations:
                self._run_one(migration, manager, database, metrics)
        finally:
            metrics.completed_at = datetime.utcnow()
            if owned:
                database.close()

        duration = (metrics.completed_at - metrics.started_at).total_seconds()
        logger.info(f"=== Data migration run {metrics.run_id} complete in {duration:.1f}s ===")
        return metrics

    def _select(self, names: Optional[Sequence[str]]) -> List[Migration]:
        if names is not None:
            return self.registry.resolve(list(names))
        migrations = list(self.registry)
        if self.direction is Direction.DOWN:
            migrations.reverse()
        return migrations

    def _run_one(
        self,
        migration: Migration,
        manager: SchemaDataManager,
        database: Database,
        metrics: RunMetrics
    ):
        name = migration.name
        if self.progress:
            self.progress(name)

        logger.info(f"Running data migration {name} ({self.direction.value})")
        result = metrics.start_migration(name)
        start = time.monotonic()

        try:
            if self.direction is Direction.UP:
                migration.up(manager)
            else:
                migration.down(manager)
        except Exception as e:
            metrics.fail_migration(name, str(e))
            logger.error(f"Data migration {name} failed: {e}", exc_info=True)
            self._record_run(database, metrics, result)
            raise

        metrics.complete_migration(name)
        logger.info(f"Data migration {name} took {time.monotonic() - start:.2f}s")
        self._record_run(database, metrics, result)

    def _record_run(self, database: Database, metrics: RunMetrics, result: MigrationResult):
        try:
            with database.transaction() as conn:
                conn.execute("""
                    INSERT INTO data_migration_runs (
                        run_id, migration, direction, partition_current, partition_total,
                        started_at, completed_at, status, documents_selected,
                        documents_processed, error
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, [
                    metrics.run_id,
                    result.migration,
                    metrics.direction,
                    metrics.partition_current,
                    metrics.partition_total,
                    result.started_at,
                    result.completed_at,
                    result.status,
                    result.documents_selected,
                    result.documents_processed,
                    result.error,
                ])
        except duckdb.Error as e:
            logger.warning(f"Could not record run of {result.migration}: {e}")
