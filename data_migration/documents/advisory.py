"""
Advisory documents and format sniffing.

An advisory's stored bytes are parsed once into a generic JSON value and
then validated against the known advisory schemas in a fixed order:
CVE record, then CSAF, then OSV. The first schema that accepts the value
wins. The order matters because the schemas overlap (an OSV entry only
needs an `id` and a `modified` timestamp, which many documents carry).

Bytes matching no schema, or not JSON at all, still resolve: they become
an OTHER advisory holding the raw bytes, so advisories ingested before a
format was supported do not break migrations.
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class _Schema(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# CVE JSON 5.x record

class CveMetadata(_Schema):
    cve_id: str = Field(alias="cveId")
    state: Literal["PUBLISHED", "REJECTED"]


class CveContainer(_Schema):
    # metric entries stay raw: each CVSS version inside is validated on its own
    metrics: Optional[List[Dict[str, Any]]] = None


class CveContainers(_Schema):
    cna: CveContainer
    adp: Optional[List[CveContainer]] = None


class CveRecord(_Schema):
    data_type: Literal["CVE_RECORD"] = Field(alias="dataType")
    data_version: str = Field(alias="dataVersion")
    cve_metadata: CveMetadata = Field(alias="cveMetadata")
    containers: CveContainers

    @property
    def is_published(self) -> bool:
        return self.cve_metadata.state == "PUBLISHED"

    def all_containers(self) -> List[CveContainer]:
        """CNA container first, then every ADP container."""
        return [self.containers.cna, *(self.containers.adp or [])]


# CSAF 2.0

class CsafTracking(_Schema):
    id: str
    status: Optional[str] = None
    version: Optional[str] = None


class CsafDocumentMeta(_Schema):
    category: str
    csaf_version: str
    title: str
    publisher: Dict[str, Any]
    tracking: CsafTracking


class CsafScore(_Schema):
    products: List[str] = Field(default_factory=list)
    cvss_v2: Optional[Dict[str, Any]] = None
    cvss_v3: Optional[Dict[str, Any]] = None


class CsafVulnerability(_Schema):
    cve: Optional[str] = None
    title: Optional[str] = None
    scores: Optional[List[CsafScore]] = None


class CsafDocument(_Schema):
    document: CsafDocumentMeta
    vulnerabilities: Optional[List[CsafVulnerability]] = None


# OSV

class OsvSeverity(_Schema):
    type: str
    score: str


class OsvVulnerability(_Schema):
    id: str
    modified: datetime
    schema_version: Optional[str] = None
    aliases: Optional[List[str]] = None
    summary: Optional[str] = None
    severity: Optional[List[OsvSeverity]] = None

    def cve_ids(self) -> List[str]:
        return [alias for alias in self.aliases or [] if alias.startswith("CVE-")]


class AdvisoryFormat(str, Enum):
    CVE = "cve"
    CSAF = "csaf"
    OSV = "osv"
    OTHER = "other"


@dataclass(frozen=True)
class Advisory:
    """
    A resolved advisory.

    `document` holds the validated model for CVE, CSAF and OSV, and is None
    for OTHER. `raw` always holds the bytes the advisory was resolved from.
    """
    format: AdvisoryFormat
    document: Optional[_Schema]
    raw: bytes


# Sniffing order, first match wins
ADVISORY_PARSERS: Tuple[Tuple[AdvisoryFormat, Callable[[Any], _Schema]], ...] = (
    (AdvisoryFormat.CVE, CveRecord.model_validate),
    (AdvisoryFormat.CSAF, CsafDocument.model_validate),
    (AdvisoryFormat.OSV, OsvVulnerability.model_validate),
)


def parse_advisory(data: bytes) -> Advisory:
    """
    Resolve advisory bytes into a typed advisory.

    Args:
        data: Stored advisory bytes

    Returns:
        Advisory of the first matching format, or an OTHER advisory
    """
    try:
        value = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.debug("Advisory is not JSON, keeping raw bytes")
        return Advisory(format=AdvisoryFormat.OTHER, document=None, raw=data)

    for advisory_format, parser in ADVISORY_PARSERS:
        try:
            document = parser(value)
        except ValidationError:
            continue
        return Advisory(format=advisory_format, document=document, raw=data)

    logger.debug("Advisory matches no known schema, keeping raw bytes")
    return Advisory(format=AdvisoryFormat.OTHER, document=None, raw=data)
