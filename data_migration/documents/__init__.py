"""
Document layer for the data-migration engine.

Turns database rows back into the typed documents they were ingested
from: the row's source document is looked up, its bytes fetched from
content-addressed storage and sniffed against the known schemas.

Main exports:
- DocumentResolver: row -> bytes -> typed document
- ADVISORY, SBOM: document categories the manager can process
- Advisory / AdvisoryFormat: CVE, CSAF, OSV or OTHER advisories
- Sbom / SbomFormat: SPDX or CycloneDX SBOMs
- DocumentError and its subclasses: one per resolution step
"""
from .advisory import (
    Advisory,
    AdvisoryFormat,
    CsafDocument,
    CveRecord,
    OsvVulnerability,
    parse_advisory,
)
from .errors import (
    DocumentError,
    MissingSourceDocument,
    MissingStoredDocument,
    StorageRetrievalError,
    StreamCollectionError,
    UnrecognizedFormat,
)
from .resolver import ADVISORY, SBOM, DocumentCategory, DocumentResolver
from .sbom import CycloneDxBom, Sbom, SbomFormat, SpdxDocument, parse_sbom

__all__ = [
    "ADVISORY",
    "SBOM",
    "DocumentCategory",
    "DocumentResolver",
    "Advisory",
    "AdvisoryFormat",
    "CveRecord",
    "CsafDocument",
    "OsvVulnerability",
    "parse_advisory",
    "Sbom",
    "SbomFormat",
    "SpdxDocument",
    "CycloneDxBom",
    "parse_sbom",
    "DocumentError",
    "MissingSourceDocument",
    "MissingStoredDocument",
    "StorageRetrievalError",
    "StreamCollectionError",
    "UnrecognizedFormat",
]
