"""
Re-materialize documents from their database rows.

Resolution walks from a row to its typed document in four steps, each
with its own failure:

1. source document lookup      -> MissingSourceDocument
2. storage retrieval by digest -> StorageRetrievalError / MissingStoredDocument
3. collecting the byte stream  -> StreamCollectionError
4. format sniffing             -> UnrecognizedFormat (SBOMs only)

Categories bind a row type to its listing query and its parser, so the
migration manager can process advisories and SBOMs the same way.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

import duckdb

from storage.content import StorageBackend, StorageKey
from storage.records import (
    AdvisoryRecord,
    SbomRecord,
    get_source_document,
    list_advisories,
    list_sboms,
)
from .advisory import Advisory, parse_advisory
from .errors import (
    MissingSourceDocument,
    MissingStoredDocument,
    StorageRetrievalError,
    StreamCollectionError,
)
from .sbom import Sbom, parse_sbom

logger = logging.getLogger(__name__)


class DocumentCategory(ABC):
    """A kind of document that data migrations can re-process."""

    name: str = ""

    @abstractmethod
    def list_records(self, conn: duckdb.DuckDBPyConnection) -> List[Any]:
        """Return every row of the category."""

    @abstractmethod
    def source_document_id(self, record: Any) -> Optional[str]:
        """Return the source document a row was ingested from."""

    @abstractmethod
    def parse(self, data: bytes) -> Any:
        """Turn stored bytes into the category's document type."""

    def describe(self, record: Any) -> str:
        return f"{self.name} {record.partition_key}"


class AdvisoryCategory(DocumentCategory):
    name = "advisory"

    def list_records(self, conn: duckdb.DuckDBPyConnection) -> List[AdvisoryRecord]:
        return list_advisories(conn)

    def source_document_id(self, record: AdvisoryRecord) -> Optional[str]:
        return record.source_document_id

    def parse(self, data: bytes) -> Advisory:
        return parse_advisory(data)


class SbomCategory(DocumentCategory):
    name = "sbom"

    def list_records(self, conn: duckdb.DuckDBPyConnection) -> List[SbomRecord]:
        return list_sboms(conn)

    def source_document_id(self, record: SbomRecord) -> Optional[str]:
        return record.source_document_id

    def parse(self, data: bytes) -> Sbom:
        return parse_sbom(data)


ADVISORY = AdvisoryCategory()
SBOM = SbomCategory()


class DocumentResolver:
    """
    Fetches and parses the original document behind a row.

    The resolver reads the source document metadata through the caller's
    connection, so the lookup sees the same transaction as the handler.
    """

    def __init__(self, storage: StorageBackend):
        """
        Initialize resolver.

        Args:
            storage: Backend holding the original document bytes
        """
        self.storage = storage

    def resolve(self, category: DocumentCategory, record: Any, conn: duckdb.DuckDBPyConnection) -> Any:
        """
        Re-materialize the document behind a row.

        Args:
            category: Category the row belongs to
            record: Row to resolve
            conn: Active connection

        Returns:
            The category's document type (Advisory or Sbom)
        """
        what = category.describe(record)
        data = self.load_bytes(category.source_document_id(record), conn, what)
        document = category.parse(data)
        logger.debug(f"Resolved {what} as {document.format.value} ({len(data)} bytes)")
        return document

    def load_bytes(
        self,
        source_document_id: Optional[str],
        conn: duckdb.DuckDBPyConnection,
        what: str = "document"
    ) -> bytes:
        """
        Fetch the stored bytes of a source document.

        Args:
            source_document_id: Id of the source document row
            conn: Active connection
            what: Description of the requesting row, for error messages

        Returns:
            The complete stored bytes
        """
        source = get_source_document(conn, source_document_id)
        if source is None:
            raise MissingSourceDocument(
                f"Missing source document entry for {what}: {source_document_id}"
            )

        stream = self._open(source.sha256, what)
        return self._collect(stream, what)

    def _open(self, sha256: str, what: str):
        try:
            key = StorageKey.from_sha256(sha256)
        except ValueError as e:
            raise StorageRetrievalError(f"Invalid storage key for {what}: {e}") from e

        try:
            stream = self.storage.retrieve(key)
        except Exception as e:
            raise StorageRetrievalError(f"Failed to retrieve {what} ({key}): {e}") from e

        if stream is None:
            raise MissingStoredDocument(f"Missing stored document for {what}: {key}")
        return stream

    @staticmethod
    def _collect(stream, what: str) -> bytes:
        buffer = bytearray()
        try:
            for chunk in stream:
                buffer.extend(chunk)
        except Exception as e:
            raise StreamCollectionError(f"Failed to collect bytes of {what}: {e}") from e
        return bytes(buffer)
