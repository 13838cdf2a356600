"""
Shared pytest fixtures for data migration tests.

This module provides reusable fixtures that simplify test setup
and reduce code duplication across test modules:
- A temporary DuckDB database with the schema initialized
- An in-memory storage backend
- Sample CVE, CSAF, OSV, SPDX and CycloneDX documents
- Helpers that store a document and register its rows
"""
import json
import sys
import tempfile
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from storage import Database, DocumentLoader, MemoryBackend

CVSS_V31_CRITICAL = "CVSS:3.1/AV:N/AC:L/PR:N/UI:N/S:U/C:H/I:H/A:H"
CVSS_V2_HIGH = "AV:N/AC:L/Au:N/C:P/I:P/A:P"
CVSS_V4_CRITICAL = "CVSS:4.0/AV:N/AC:L/AT:N/PR:N/UI:N/VC:H/VI:H/VA:H/SC:N/SI:N/SA:N"


def to_bytes(document) -> bytes:
    return json.dumps(document).encode("utf-8")


@pytest.fixture
def temp_db():
    """
    Create a temporary database for testing.

    Yields:
        Database instance with schema initialized

    Cleanup:
        Automatically closes connection and removes file after test
    """
    # DuckDB creates the file itself, only the name is reserved here
    with tempfile.NamedTemporaryFile(suffix=".duckdb", delete=True) as f:
        db_path = f.name

    db = Database(db_path)
    db.initialize_schema()
    yield db
    db.close()

    # Cleanup
    Path(db_path).unlink(missing_ok=True)
    Path(db_path + ".wal").unlink(missing_ok=True)


@pytest.fixture
def storage():
    """Empty in-memory storage backend."""
    return MemoryBackend()


@pytest.fixture
def loader(temp_db):
    """DocumentLoader connected to the temporary database."""
    return DocumentLoader(temp_db)


@pytest.fixture
def add_advisory(loader, storage):
    """
    Store advisory bytes and register the advisory row.

    Returns:
        Callable(advisory_id, data) -> AdvisoryRecord
    """
    def _add(advisory_id: str, data: bytes, identifier: str = None):
        storage.add(data)
        source = loader.load_source_document(data, document_id=f"sd_{advisory_id}")
        return loader.load_advisory(advisory_id, identifier or advisory_id, source.id)

    return _add


@pytest.fixture
def add_sbom(loader, storage):
    """
    Store SBOM bytes and register the sbom row.

    Returns:
        Callable(sbom_id, data) -> SbomRecord
    """
    def _add(sbom_id: str, data: bytes):
        storage.add(data)
        source = loader.load_source_document(data, document_id=f"sd_{sbom_id}")
        return loader.load_sbom(sbom_id, source.id)

    return _add


@pytest.fixture
def cve_document():
    """
    Published CVE record.

    The CNA metric carries both a v3.1 and a v2.0 block, one ADP
    container adds a v4.0 block.
    """
    return {
        "dataType": "CVE_RECORD",
        "dataVersion": "5.1",
        "cveMetadata": {
            "cveId": "CVE-2024-0001",
            "assignerOrgId": "00000000-0000-0000-0000-000000000000",
            "state": "PUBLISHED",
        },
        "containers": {
            "cna": {
                "providerMetadata": {"orgId": "00000000-0000-0000-0000-000000000000"},
                "descriptions": [{"lang": "en", "value": "Buffer overflow in example-package"}],
                "metrics": [
                    {
                        "cvssV3_1": {
                            "version": "3.1",
                            "vectorString": CVSS_V31_CRITICAL,
                            "baseScore": 9.8,
                            "baseSeverity": "CRITICAL",
                        },
                        "cvssV2_0": {
                            "version": "2.0",
                            "vectorString": CVSS_V2_HIGH,
                            "baseScore": 7.5,
                        },
                    }
                ],
            },
            "adp": [
                {
                    "metrics": [
                        {
                            "cvssV4_0": {
                                "version": "4.0",
                                "vectorString": CVSS_V4_CRITICAL,
                                "baseScore": 9.3,
                                "baseSeverity": "CRITICAL",
                            }
                        }
                    ]
                }
            ],
        },
    }


@pytest.fixture
def csaf_document():
    """
    CSAF advisory with one CVE vulnerability and one without a CVE id.

    The document's own baseScore and baseSeverity are deliberately wrong.
    """
    score_block = {
        "version": "3.1",
        "vectorString": CVSS_V31_CRITICAL,
        "baseScore": 1.0,
        "baseSeverity": "LOW",
    }
    return {
        "document": {
            "category": "csaf_security_advisory",
            "csaf_version": "2.0",
            "title": "Example security update",
            "publisher": {
                "category": "vendor",
                "name": "Example",
                "namespace": "https://example.com",
            },
            "tracking": {
                "id": "EXA-2024:0001",
                "status": "final",
                "version": "1",
            },
        },
        "vulnerabilities": [
            {
                "cve": "CVE-2024-0002",
                "title": "Remote code execution",
                "scores": [{"products": ["example-1.0"], "cvss_v3": score_block}],
            },
            {
                "title": "Issue without a CVE",
                "scores": [{"products": ["example-1.0"], "cvss_v3": score_block}],
            },
        ],
    }


@pytest.fixture
def osv_document():
    """OSV entry with two CVE aliases and one non-CVSS severity."""
    return {
        "schema_version": "1.6.0",
        "id": "GHSA-aaaa-bbbb-cccc",
        "modified": "2024-01-15T12:00:00Z",
        "aliases": ["CVE-2024-0003", "CVE-2024-0004", "PYSEC-2024-1"],
        "summary": "Path traversal in example-package",
        "severity": [
            {"type": "CVSS_V3", "score": CVSS_V31_CRITICAL},
            {"type": "Ubuntu", "score": "medium"},
        ],
    }


@pytest.fixture
def spdx_document():
    """SPDX 2.3 document with two files."""
    return {
        "spdxVersion": "SPDX-2.3",
        "SPDXID": "SPDXRef-DOCUMENT",
        "name": "example-app",
        "dataLicense": "CC0-1.0",
        "documentNamespace": "https://example.com/spdx/example-app-1.0",
        "creationInfo": {
            "created": "2024-01-15T12:00:00Z",
            "creators": ["Tool: example-sbom-1.0"],
        },
        "packages": [{"SPDXID": "SPDXRef-Package", "name": "example-app"}],
        "files": [
            {"SPDXID": "SPDXRef-File-main", "fileName": "./main.py"},
            {"SPDXID": "SPDXRef-File-util", "fileName": "./util.py"},
        ],
    }


@pytest.fixture
def cyclonedx_document():
    """CycloneDX 1.5 BOM with top-level properties and a nested file component."""
    return {
        "bomFormat": "CycloneDX",
        "specVersion": "1.5",
        "serialNumber": "urn:uuid:3e671687-395b-41f5-a30f-a58921a69b79",
        "version": 1,
        "metadata": {
            "timestamp": "2024-01-15T12:00:00Z",
            "component": {"type": "application", "name": "example-app", "bom-ref": "app"},
        },
        "components": [
            {
                "type": "library",
                "name": "example-lib",
                "bom-ref": "pkg:pypi/example-lib@1.0",
                "components": [
                    {"type": "file", "name": "example_lib/__init__.py", "bom-ref": "file-init"},
                ],
            },
            {"type": "file", "name": "README.md", "bom-ref": "file-readme"},
        ],
        "properties": [
            {"name": "build", "value": "42"},
            {"name": "team", "value": "security"},
        ],
    }
