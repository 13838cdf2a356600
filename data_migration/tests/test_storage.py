"""
Lightweight tests for storage layer.

These tests validate core functionality without heavy mocking:
- Database schema initialization
- Document row loading
- Transactions commit and roll back
- Row listing queries
"""
import json

import pytest

from storage import DocumentLoader, get_source_document, list_advisories, list_sboms


def test_database_initialization(temp_db):
    """Verify database schema is created correctly."""
    conn = temp_db.connect()

    # Check all expected tables exist
    tables = conn.execute("""
        SELECT table_name FROM information_schema.tables
        WHERE table_schema = 'main'
    """).fetchall()

    table_names = {t[0] for t in tables}

    assert "source_document" in table_names
    assert "advisory" in table_names
    assert "sbom" in table_names
    assert "advisory_vulnerability_score" in table_names
    assert "sbom_file" in table_names
    assert "data_migration_runs" in table_names


def test_schema_initialization_is_repeatable(temp_db):
    """Initializing twice keeps existing rows."""
    DocumentLoader(temp_db).load_advisory("adv-1", "CVE-2024-0001", None)

    temp_db.initialize_schema()

    assert len(list_advisories(temp_db.connect())) == 1


def test_run_id_generation(temp_db):
    """Verify run ID format."""
    run_id = temp_db.get_current_run_id()
    assert run_id.startswith("run_")
    assert len(run_id) == 19  # run_YYYYMMDD_HHMMSS


def test_transaction_commits(temp_db):
    with temp_db.transaction() as conn:
        conn.execute("INSERT INTO sbom_file VALUES ('sbom-1', 'file-1')")

    assert temp_db.connect().execute("SELECT count(*) FROM sbom_file").fetchone()[0] == 1


def test_transaction_rolls_back_on_error(temp_db):
    with pytest.raises(RuntimeError):
        with temp_db.transaction() as conn:
            conn.execute("INSERT INTO sbom_file VALUES ('sbom-1', 'file-1')")
            raise RuntimeError("abort")

    assert temp_db.connect().execute("SELECT count(*) FROM sbom_file").fetchone()[0] == 0


def test_loader_source_document(temp_db, loader):
    """Digests and size are computed from the bytes."""
    record = loader.load_source_document(b"hello")

    assert record.sha256 == "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
    assert record.id == "sd_2cf24dba5fb0a30e"
    assert record.size == 5

    stored = get_source_document(temp_db.connect(), record.id)
    assert stored.sha256 == record.sha256
    assert stored.sha512 == record.sha512


def test_get_source_document_missing(temp_db):
    assert get_source_document(temp_db.connect(), None) is None
    assert get_source_document(temp_db.connect(), "sd_unknown") is None


def test_loader_is_idempotent(temp_db, loader):
    """Loading the same ids twice leaves one row each."""
    for _ in range(2):
        source = loader.load_source_document(b"{}", document_id="sd_1")
        loader.load_advisory("adv-1", "CVE-2024-0001", source.id, title="Example")
        loader.load_sbom("sbom-1", source.id, properties={"a": "b"})

    conn = temp_db.connect()
    assert conn.execute("SELECT count(*) FROM source_document").fetchone()[0] == 1
    assert len(list_advisories(conn)) == 1
    assert len(list_sboms(conn)) == 1


def test_listing_is_ordered(temp_db, loader):
    for advisory_id in ["adv-b", "adv-c", "adv-a"]:
        loader.load_advisory(advisory_id, advisory_id, None)
    loader.load_sbom("sbom-2", None, properties={"k": "v"})
    loader.load_sbom("sbom-1", None)

    conn = temp_db.connect()
    advisories = list_advisories(conn)
    sboms = list_sboms(conn)

    assert [a.id for a in advisories] == ["adv-a", "adv-b", "adv-c"]
    assert [s.sbom_id for s in sboms] == ["sbom-1", "sbom-2"]
    assert sboms[0].properties is None
    assert json.loads(sboms[1].properties) == {"k": "v"}
    assert advisories[0].partition_key == "adv-a"
    assert sboms[0].partition_key == "sbom-1"
