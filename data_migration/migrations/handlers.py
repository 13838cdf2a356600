"""
Handler interfaces of data migrations.

A handler is called once per selected row, with the row's resolved
document and the connection of the row's transaction. The handler decides
what to write; nothing is saved implicitly. A handler may touch any number
of tables, everything it writes commits or rolls back with the row.
"""
from abc import ABC, abstractmethod
from typing import Any

import duckdb

from documents import ADVISORY, SBOM, Advisory, DocumentCategory, Sbom
from storage.records import AdvisoryRecord, SbomRecord


class DocumentHandler(ABC):
    """Per-row logic of a data migration over one document category."""

    category: DocumentCategory

    @abstractmethod
    def handle(self, document: Any, record: Any, conn: duckdb.DuckDBPyConnection):
        """Process one row."""


class AdvisoryHandler(DocumentHandler):
    """Handler over every advisory row."""

    category = ADVISORY

    @abstractmethod
    def handle(self, advisory: Advisory, record: AdvisoryRecord, conn: duckdb.DuckDBPyConnection):
        """
        Process one advisory.

        Args:
            advisory: Resolved advisory document
            record: The advisory row
            conn: Connection with the row's transaction open
        """


class SbomHandler(DocumentHandler):
    """Handler over every SBOM row."""

    category = SBOM

    @abstractmethod
    def handle(self, sbom: Sbom, record: SbomRecord, conn: duckdb.DuckDBPyConnection):
        """
        Process one SBOM.

        Args:
            sbom: Resolved SBOM document
            record: The sbom row
            conn: Connection with the row's transaction open
        """
