"""
Row models and read queries for the document tables.

Data migrations never hold on to rows beyond a single handler call, so
rows are plain frozen dataclasses built from query results rather than
live ORM objects.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import duckdb


@dataclass(frozen=True)
class SourceDocumentRecord:
    """Metadata of the bytes a document was originally ingested from."""
    id: str
    sha256: str
    sha384: Optional[str] = None
    sha512: Optional[str] = None
    size: Optional[int] = None
    ingested: Optional[datetime] = None


@dataclass(frozen=True)
class AdvisoryRecord:
    """A row of the advisory table."""
    id: str
    identifier: str
    source_document_id: Optional[str]
    title: Optional[str] = None
    modified: Optional[datetime] = None

    @property
    def partition_key(self) -> str:
        return self.id


@dataclass(frozen=True)
class SbomRecord:
    """A row of the sbom table."""
    sbom_id: str
    node_id: Optional[str]
    document_id: Optional[str]
    source_document_id: Optional[str]
    properties: Optional[str] = None

    @property
    def partition_key(self) -> str:
        return self.sbom_id


def _fetch_dicts(conn: duckdb.DuckDBPyConnection, query: str, params=None) -> List[Dict[str, Any]]:
    results = conn.execute(query, params or []).fetchall()
    columns = [desc[0] for desc in conn.description]
    return [dict(zip(columns, row)) for row in results]


def list_advisories(conn: duckdb.DuckDBPyConnection) -> List[AdvisoryRecord]:
    """Return every advisory row, ordered by id."""
    rows = _fetch_dicts(conn, """
        SELECT id, identifier, source_document_id, title, modified
        FROM advisory
        ORDER BY id
    """)
    return [AdvisoryRecord(**row) for row in rows]


def list_sboms(conn: duckdb.DuckDBPyConnection) -> List[SbomRecord]:
    """Return every SBOM row, ordered by id."""
    rows = _fetch_dicts(conn, """
        SELECT sbom_id, node_id, document_id, source_document_id, properties
        FROM sbom
        ORDER BY sbom_id
    """)
    return [SbomRecord(**row) for row in rows]


def get_source_document(
    conn: duckdb.DuckDBPyConnection,
    source_document_id: Optional[str]
) -> Optional[SourceDocumentRecord]:
    """
    Look up a source document by id.

    Args:
        conn: Active connection
        source_document_id: Id referenced by an advisory or SBOM row

    Returns:
        The source document, or None if the row references nothing
    """
    if source_document_id is None:
        return None

    rows = _fetch_dicts(conn, """
        SELECT id, sha256, sha384, sha512, size, ingested
        FROM source_document
        WHERE id = ?
    """, [source_document_id])

    if rows:
        return SourceDocumentRecord(**rows[0])
    return None
