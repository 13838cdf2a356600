"""
Storage layer for the data-migration engine.

This module provides access to the database the migrations run against
and to the content-addressed store holding the original document bytes.

Components:
- Database: Connection management, transactions and schema initialization
- DocumentLoader: Register already-ingested documents in the document tables
- BatchWriter: Chunked, conflict-safe bulk inserts
- StorageBackend: Read access to stored documents, keyed by StorageKey

Usage:
    from storage import Database, BatchWriter, build_storage

    db = Database("data_migration.duckdb")
    db.initialize_schema()

    storage = build_storage({"type": "filesystem", "root": "storage/"})

    with db.transaction() as conn:
        BatchWriter(conn, "sbom_file", ["sbom_id", "node_id"], ["sbom_id", "node_id"]).insert(rows)
"""

from .batch_writer import BatchWriter, DEFAULT_CHUNK_SIZE, MAX_PARAMETERS
from .content import (
    FileSystemBackend,
    HttpBackend,
    MemoryBackend,
    StorageBackend,
    StorageKey,
    build_storage,
)
from .database import Database
from .loader import DocumentLoader
from .records import (
    AdvisoryRecord,
    SbomRecord,
    SourceDocumentRecord,
    get_source_document,
    list_advisories,
    list_sboms,
)

__all__ = [
    "Database",
    "DocumentLoader",
    "BatchWriter",
    "DEFAULT_CHUNK_SIZE",
    "MAX_PARAMETERS",
    "StorageBackend",
    "StorageKey",
    "FileSystemBackend",
    "HttpBackend",
    "MemoryBackend",
    "build_storage",
    "AdvisoryRecord",
    "SbomRecord",
    "SourceDocumentRecord",
    "get_source_document",
    "list_advisories",
    "list_sboms",
]
