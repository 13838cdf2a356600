"""
Database connection and schema management for the data-migration engine.

This module provides:
- DuckDB connection lifecycle management
- The document tables data migrations read from (source documents,
  advisories, SBOMs)
- The derived tables data migrations write to (scores, file references)
- Migration run metadata tracking

Design decisions:
- Derived tables carry their natural key as PRIMARY KEY so bulk inserts
  can use ON CONFLICT DO NOTHING
- JSON columns for SBOM properties and run metadata
- One connection per Database instance, transactions opened explicitly
"""
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

import duckdb


class Database:
    """
    Manages the DuckDB connection and schema initialization.

    This class is responsible for:
    - Creating and maintaining a single database connection
    - Initializing the document and derived tables
    - Running units of work inside a transaction
    - Providing run ID generation for migration run tracking
    """

    def __init__(self, db_path: str = "data_migration.duckdb"):
        """
        Initialize database manager.

        Args:
            db_path: Path to DuckDB database file (created if doesn't exist)
        """
        self.db_path = db_path
        self.conn: Optional[duckdb.DuckDBPyConnection] = None

    def connect(self) -> duckdb.DuckDBPyConnection:
        """
        Get or create database connection.

        Returns:
            Active DuckDB connection
        """
        if self.conn is None:
            self.conn = duckdb.connect(self.db_path)
        return self.conn

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    @contextmanager
    def transaction(self) -> Iterator[duckdb.DuckDBPyConnection]:
        """
        Run a unit of work inside a transaction.

        Commits when the block exits normally, rolls back and re-raises
        otherwise.

        Yields:
            The connection, with a transaction open
        """
        conn = self.connect()
        conn.begin()
        try:
            yield conn
        except BaseException:
            conn.rollback()
            raise
        conn.commit()

    def initialize_schema(self):
        """
        Create all required tables if they don't exist.

        Tables created:
        - source_document: Metadata of the originally uploaded bytes
        - advisory: Ingested advisories (CVE, CSAF, OSV, ...)
        - sbom: Ingested SBOMs (SPDX, CycloneDX)
        - advisory_vulnerability_score: Normalized CVSS scores
        - sbom_file: File references of an SBOM
        - data_migration_runs: Data migration execution metadata
        """
        conn = self.connect()

        conn.execute("""
            CREATE TABLE IF NOT EXISTS source_document (
                id VARCHAR PRIMARY KEY,
                sha256 VARCHAR NOT NULL,
                sha384 VARCHAR,
                sha512 VARCHAR,
                size BIGINT,
                ingested TIMESTAMP
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS advisory (
                id VARCHAR PRIMARY KEY,
                identifier VARCHAR NOT NULL,
                source_document_id VARCHAR,
                title VARCHAR,
                modified TIMESTAMP
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS sbom (
                sbom_id VARCHAR PRIMARY KEY,
                node_id VARCHAR,
                document_id VARCHAR,
                source_document_id VARCHAR,
                properties JSON
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS advisory_vulnerability_score (
                advisory_id VARCHAR NOT NULL,
                vulnerability_id VARCHAR NOT NULL,
                score_type VARCHAR NOT NULL,
                vector VARCHAR NOT NULL,
                score DOUBLE NOT NULL,
                severity VARCHAR NOT NULL,
                PRIMARY KEY (advisory_id, vulnerability_id, score_type, vector)
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS sbom_file (
                sbom_id VARCHAR NOT NULL,
                node_id VARCHAR NOT NULL,
                PRIMARY KEY (sbom_id, node_id)
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS data_migration_runs (
                run_id VARCHAR NOT NULL,
                migration VARCHAR NOT NULL,
                direction VARCHAR NOT NULL,
                partition_current UBIGINT,
                partition_total UBIGINT,
                started_at TIMESTAMP,
                completed_at TIMESTAMP,
                status VARCHAR,
                documents_selected INTEGER,
                documents_processed INTEGER,
                error VARCHAR
            )
        """)

    def get_current_run_id(self) -> str:
        """
        Generate a unique run ID for this migration execution.

        Returns:
            Run ID in format: run_YYYYMMDD_HHMMSS
        """
        return f"run_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}"

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
