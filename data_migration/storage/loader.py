"""
Document row loader for the document tables.

This module registers already-ingested documents: the metadata of their
source bytes plus the advisory or SBOM row pointing at it. It never writes
the bytes themselves, those live in content-addressed storage.

Design decisions:
- Digests computed here so a row always matches the bytes it describes
- DELETE + INSERT pattern for idempotent loads
- Ids derived from the content digest unless given explicitly
"""
import hashlib
import json
from datetime import datetime
from typing import Any, Dict, Optional

from .database import Database
from .records import AdvisoryRecord, SbomRecord, SourceDocumentRecord


class DocumentLoader:
    """
    Loads document rows into the document tables.

    Each document kind has a dedicated method that:
    1. Clears a previous row with the same id
    2. Maps fields to table columns
    3. Inserts the row
    """

    def __init__(self, database: Database):
        """
        Initialize loader with database connection.

        Args:
            database: Database instance to load rows into
        """
        self.db = database

    def load_source_document(self, data: bytes, document_id: Optional[str] = None) -> SourceDocumentRecord:
        """
        Register the metadata of a stored document.

        Args:
            data: The document bytes, as stored
            document_id: Row id, defaults to a digest-derived id

        Returns:
            The registered source document
        """
        sha256 = hashlib.sha256(data).hexdigest()
        record = SourceDocumentRecord(
            id=document_id or f"sd_{sha256[:16]}",
            sha256=sha256,
            sha384=hashlib.sha384(data).hexdigest(),
            sha512=hashlib.sha512(data).hexdigest(),
            size=len(data),
            ingested=datetime.utcnow(),
        )

        conn = self.db.connect()
        conn.execute("DELETE FROM source_document WHERE id = ?", [record.id])
        conn.execute("""
            INSERT INTO source_document (id, sha256, sha384, sha512, size, ingested)
            VALUES (?, ?, ?, ?, ?, ?)
        """, [
            record.id,
            record.sha256,
            record.sha384,
            record.sha512,
            record.size,
            record.ingested
        ])

        return record

    def load_advisory(
        self,
        advisory_id: str,
        identifier: str,
        source_document_id: Optional[str],
        title: Optional[str] = None
    ) -> AdvisoryRecord:
        """
        Register an advisory row.

        Args:
            advisory_id: Advisory row id
            identifier: Advisory identifier (e.g. CVE-2024-0001, RHSA-2024:0001)
            source_document_id: Source document the advisory was ingested from
            title: Optional advisory title

        Returns:
            The registered advisory
        """
        record = AdvisoryRecord(
            id=advisory_id,
            identifier=identifier,
            source_document_id=source_document_id,
            title=title,
            modified=datetime.utcnow(),
        )

        conn = self.db.connect()
        conn.execute("DELETE FROM advisory WHERE id = ?", [record.id])
        conn.execute("""
            INSERT INTO advisory (id, identifier, source_document_id, title, modified)
            VALUES (?, ?, ?, ?, ?)
        """, [
            record.id,
            record.identifier,
            record.source_document_id,
            record.title,
            record.modified
        ])

        return record

    def load_sbom(
        self,
        sbom_id: str,
        source_document_id: Optional[str],
        document_id: Optional[str] = None,
        node_id: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None
    ) -> SbomRecord:
        """
        Register an SBOM row.

        Args:
            sbom_id: SBOM row id
            source_document_id: Source document the SBOM was ingested from
            document_id: Document namespace or serial number
            node_id: Id of the SBOM's root node
            properties: Optional pre-existing properties

        Returns:
            The registered SBOM
        """
        record = SbomRecord(
            sbom_id=sbom_id,
            node_id=node_id,
            document_id=document_id,
            source_document_id=source_document_id,
            properties=json.dumps(properties) if properties is not None else None,
        )

        conn = self.db.connect()
        conn.execute("DELETE FROM sbom WHERE sbom_id = ?", [record.sbom_id])
        conn.execute("""
            INSERT INTO sbom (sbom_id, node_id, document_id, source_document_id, properties)
            VALUES (?, ?, ?, ?, ?)
        """, [
            record.sbom_id,
            record.node_id,
            record.document_id,
            record.source_document_id,
            record.properties
        ])

        return record
