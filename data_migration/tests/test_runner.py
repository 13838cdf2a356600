"""
Tests for the migration runner and registry.

Verifies:
- Unknown names fail the run before any migration executes
- Migrations run strictly in the requested order
- The first failure stops the run
- Direction selects up or down
- Runs are recorded in data_migration_runs
"""
import pytest

from migrations import (
    Direction,
    HandlerError,
    Migration,
    MigrationNotFound,
    MigrationRegistry,
    MigrationRunner,
    Options,
    build_registry,
)
from observability.metrics import STATUS_COMPLETED, STATUS_FAILED, STATUS_SKIPPED
from storage import Database


class RecordingMigration(Migration):
    """Appends to a shared journal instead of touching documents."""

    def __init__(self, name, journal, fail=False):
        self.name = name
        self.journal = journal
        self.fail = fail

    def up(self, manager):
        self.journal.append(("up", self.name))
        if self.fail:
            raise HandlerError(f"{self.name} failed")

    def down(self, manager):
        self.journal.append(("down", self.name))


@pytest.fixture
def journal():
    return []


@pytest.fixture
def registry(journal):
    return MigrationRegistry([
        RecordingMigration("valid_a", journal),
        RecordingMigration("valid_b", journal),
        RecordingMigration("valid_c", journal),
        RecordingMigration("broken", journal, fail=True),
    ])


def run_rows(db):
    return db.connect().execute("""
        SELECT migration, direction, status, error
        FROM data_migration_runs
        ORDER BY started_at, migration
    """).fetchall()


class TestMigrationRegistry:
    """Test the migration registry."""

    def test_names_in_registration_order(self, registry):
        assert registry.names() == ["valid_a", "valid_b", "valid_c", "broken"]
        assert "valid_a" in registry
        assert len(registry) == 4

    def test_resolve_lists_every_unknown_name(self, registry):
        with pytest.raises(MigrationNotFound) as exc_info:
            registry.resolve(["valid_a", "typo_b", "valid_c", "typo_d"])

        assert exc_info.value.names == ["typo_b", "typo_d"]
        assert "typo_b" in str(exc_info.value)

    def test_get_unknown(self, registry):
        with pytest.raises(MigrationNotFound):
            registry.get("nope")

    def test_duplicate_names_rejected(self, journal):
        with pytest.raises(ValueError):
            MigrationRegistry([RecordingMigration("a", journal), RecordingMigration("a", journal)])

    def test_build_registry(self):
        assert build_registry().names() == [
            "m0002000_add_sbom_properties",
            "m0002010_add_advisory_scores",
            "m0002020_add_sbom_files",
        ]


class TestMigrationRunner:
    """Test running migrations."""

    def test_unknown_name_fails_before_anything_runs(self, temp_db, storage, registry, journal):
        runner = MigrationRunner(registry, temp_db, storage)

        with pytest.raises(MigrationNotFound):
            runner.run(["valid_a", "typo_b", "valid_c"])

        assert journal == []
        assert run_rows(temp_db) == []

    def test_runs_in_requested_order(self, temp_db, storage, registry, journal):
        progress = []
        runner = MigrationRunner(registry, temp_db, storage, progress=progress.append)

        metrics = runner.run(["valid_c", "valid_a"])

        assert journal == [("up", "valid_c"), ("up", "valid_a")]
        assert progress == ["valid_c", "valid_a"]
        assert list(metrics.migrations) == ["valid_c", "valid_a"]
        assert all(r.status == STATUS_COMPLETED for r in metrics.migrations.values())

    def test_first_failure_stops_the_run(self, temp_db, storage, registry, journal):
        runner = MigrationRunner(registry, temp_db, storage)

        with pytest.raises(HandlerError):
            runner.run(["valid_a", "broken", "valid_b"])

        assert journal == [("up", "valid_a"), ("up", "broken")]
        assert runner.metrics.migrations["broken"].status == STATUS_FAILED
        assert runner.metrics.errors == 1
        assert sorted((m, s) for m, _, s, _ in run_rows(temp_db)) == [
            ("broken", STATUS_FAILED),
            ("valid_a", STATUS_COMPLETED),
        ]

    def test_down_direction(self, temp_db, storage, registry, journal):
        runner = MigrationRunner(registry, temp_db, storage, direction=Direction.DOWN)

        runner.run(["valid_b"])

        assert journal == [("down", "valid_b")]
        assert run_rows(temp_db) == [("valid_b", "down", STATUS_COMPLETED, None)]

    def test_all_migrations_when_no_names(self, temp_db, storage, journal):
        registry = MigrationRegistry([
            RecordingMigration("first", journal),
            RecordingMigration("second", journal),
        ])

        MigrationRunner(registry, temp_db, storage).run()
        MigrationRunner(registry, temp_db, storage, direction="down").run()

        assert journal == [
            ("up", "first"), ("up", "second"),
            ("down", "second"), ("down", "first"),
        ]

    def test_empty_name_list_runs_nothing(self, temp_db, storage, registry, journal):
        """An explicit empty list is not the same as asking for every migration."""
        for direction in (Direction.UP, Direction.DOWN):
            metrics = MigrationRunner(registry, temp_db, storage, direction=direction).run([])

            assert metrics.migrations == {}

        assert journal == []
        assert run_rows(temp_db) == []

    def test_provided_database_stays_open(self, temp_db, storage, registry):
        MigrationRunner(registry, temp_db, storage).run(["valid_a"])

        assert temp_db.conn is not None

    def test_database_path_is_opened_and_closed(self, tmp_path, storage, registry, journal):
        db_path = str(tmp_path / "runner.duckdb")
        with Database(db_path) as db:
            db.initialize_schema()

        MigrationRunner(registry, db_path, storage).run(["valid_a"])

        assert journal == [("up", "valid_a")]
        with Database(db_path) as db:
            assert [m for m, _, _, _ in run_rows(db)] == ["valid_a"]

    def test_skipped_migration_is_reported(self, temp_db, storage, add_advisory):
        add_advisory("adv-1", b"{}")
        runner = MigrationRunner(build_registry(), temp_db, storage, Options(skip_all=True))

        metrics = runner.run(["m0002010_add_advisory_scores"])

        assert metrics.migrations["m0002010_add_advisory_scores"].status == STATUS_SKIPPED
