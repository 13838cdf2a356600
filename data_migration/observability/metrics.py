"""
Metrics collection for data migration runs.

This module provides RunMetrics, a dataclass that tracks the observability
metrics of a single migration run:
- One MigrationResult per executed migration (status, timing, row counts)
- The partition the run worked on
- Errors encountered

Design decisions:
- Single metrics object per run, shared by the runner and the manager
- Results keyed by migration name, in execution order
- Row counts accumulate, so a migration may call process() more than once
- Serializable to_dict() for reports and logs
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

STATUS_RUNNING = "running"
STATUS_COMPLETED = "completed"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


@dataclass
class MigrationResult:
    """Outcome of one migration within a run."""
    migration: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    status: str = STATUS_RUNNING
    documents_total: int = 0
    documents_selected: int = 0
    documents_processed: int = 0
    error: Optional[str] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()


@dataclass
class RunMetrics:
    """
    Metrics for a single data migration run.

    The runner opens and closes migration results; the manager adds row
    counts to the result of the migration currently running.
    """
    run_id: str
    started_at: datetime
    completed_at: datetime = None
    direction: str = "up"
    partition_current: int = 0
    partition_total: int = 1

    errors: int = 0

    # Key: migration name, in execution order
    migrations: Dict[str, MigrationResult] = field(default_factory=dict)

    error_log: List[Dict] = field(default_factory=list)

    def start_migration(self, name: str) -> MigrationResult:
        result = MigrationResult(migration=name, started_at=datetime.utcnow())
        self.migrations[name] = result
        return result

    def _result(self, name: str) -> MigrationResult:
        if name not in self.migrations:
            return self.start_migration(name)
        return self.migrations[name]

    def record_documents(self, name: str, total: int, selected: int):
        """
        Record the rows a migration listed and the rows this worker owns.

        Args:
            name: Migration name
            total: Rows listed
            selected: Rows selected by the partition
        """
        result = self._result(name)
        result.documents_total += total
        result.documents_selected += selected

    def record_processed(self, name: str, count: int = 1):
        self._result(name).documents_processed += count

    def record_skipped(self, name: str):
        self._result(name).status = STATUS_SKIPPED

    def complete_migration(self, name: str):
        result = self._result(name)
        result.completed_at = datetime.utcnow()
        if result.status == STATUS_RUNNING:
            result.status = STATUS_COMPLETED

    def fail_migration(self, name: str, error: str):
        result = self._result(name)
        result.completed_at = datetime.utcnow()
        result.status = STATUS_FAILED
        result.error = error
        self.record_error(error, {"migration": name})

    def record_error(self, error: str, context: Dict = None):
        """
        Record an error encountered during the run.

        Args:
            error: Error message
            context: Optional dict with additional context (e.g., migration name)
        """
        self.errors += 1
        self.error_log.append({
            "type": "error",
            "message": error,
            "context": context or {}
        })

    @property
    def failed(self) -> bool:
        return any(r.status == STATUS_FAILED for r in self.migrations.values())

    @property
    def documents_processed(self) -> int:
        return sum(r.documents_processed for r in self.migrations.values())

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert metrics to dictionary for JSON serialization.

        Returns:
            Dictionary representation with ISO formatted timestamps
        """
        return {
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "direction": self.direction,
            "partition": f"{self.partition_current}/{self.partition_total}",
            "errors": self.errors,
            "migrations": [
                {
                    "migration": r.migration,
                    "status": r.status,
                    "started_at": r.started_at.isoformat(),
                    "completed_at": r.completed_at.isoformat() if r.completed_at else None,
                    "documents_total": r.documents_total,
                    "documents_selected": r.documents_selected,
                    "documents_processed": r.documents_processed,
                    "error": r.error,
                }
                for r in self.migrations.values()
            ],
            "error_log": self.error_log
        }
