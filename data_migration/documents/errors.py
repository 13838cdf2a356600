"""
Failures while re-materializing a stored document.

Each step of resolution has its own error so a failed run says exactly
where the chain between a database row and its bytes broke.
"""


class DocumentError(Exception):
    """Base class for document resolution failures."""


class MissingSourceDocument(DocumentError):
    """The row references no source document, or the reference dangles."""


class StorageRetrievalError(DocumentError):
    """The storage backend failed to open the document."""


class MissingStoredDocument(DocumentError):
    """The storage backend has nothing stored under the document's digest."""


class StreamCollectionError(DocumentError):
    """Reading the stored bytes failed part way through."""


class UnrecognizedFormat(DocumentError):
    """The bytes match none of the schemas accepted for the category."""
