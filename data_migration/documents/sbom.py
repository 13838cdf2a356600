"""
SBOM documents and format sniffing.

SBOM bytes are parsed once into a generic JSON value and validated against
SPDX first, then CycloneDX. Unlike advisories there is no fallback: an SBOM
matching neither schema fails with UnrecognizedFormat.
"""
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import UnrecognizedFormat


class _Schema(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# SPDX 2.x

class SpdxCreationInfo(_Schema):
    created: str
    creators: List[str]


class SpdxFile(_Schema):
    spdx_id: str = Field(alias="SPDXID")
    file_name: Optional[str] = Field(default=None, alias="fileName")


class SpdxDocument(_Schema):
    spdx_version: str = Field(alias="spdxVersion")
    spdx_id: str = Field(alias="SPDXID")
    name: str
    data_license: str = Field(alias="dataLicense")
    document_namespace: str = Field(alias="documentNamespace")
    creation_info: SpdxCreationInfo = Field(alias="creationInfo")
    files: Optional[List[SpdxFile]] = None
    packages: Optional[List[Dict[str, Any]]] = None


# CycloneDX 1.x

class CycloneDxProperty(_Schema):
    name: str
    value: Optional[str] = None


class CycloneDxComponent(_Schema):
    type: str
    name: str
    bom_ref: Optional[str] = Field(default=None, alias="bom-ref")
    components: Optional[List["CycloneDxComponent"]] = None


CycloneDxComponent.model_rebuild()


class CycloneDxMetadata(_Schema):
    timestamp: Optional[str] = None
    component: Optional[CycloneDxComponent] = None


class CycloneDxBom(_Schema):
    bom_format: Literal["CycloneDX"] = Field(alias="bomFormat")
    spec_version: str = Field(alias="specVersion")
    serial_number: Optional[str] = Field(default=None, alias="serialNumber")
    metadata: Optional[CycloneDxMetadata] = None
    components: Optional[List[CycloneDxComponent]] = None
    properties: Optional[List[CycloneDxProperty]] = None

    def walk_components(self) -> Iterator[CycloneDxComponent]:
        """Every component, depth first, nested ones included."""
        stack = list(reversed(self.components or []))
        while stack:
            component = stack.pop()
            yield component
            stack.extend(reversed(component.components or []))


class SbomFormat(str, Enum):
    SPDX = "spdx"
    CYCLONEDX = "cyclonedx"


@dataclass(frozen=True)
class Sbom:
    """A resolved SBOM with its validated model and source bytes."""
    format: SbomFormat
    document: _Schema
    raw: bytes


# Sniffing order, first match wins
SBOM_PARSERS: Tuple[Tuple[SbomFormat, Callable[[Any], _Schema]], ...] = (
    (SbomFormat.SPDX, SpdxDocument.model_validate),
    (SbomFormat.CYCLONEDX, CycloneDxBom.model_validate),
)


def parse_sbom(data: bytes) -> Sbom:
    """
    Resolve SBOM bytes into a typed SBOM.

    Args:
        data: Stored SBOM bytes

    Returns:
        Sbom of the first matching format

    Raises:
        UnrecognizedFormat: If the bytes are not JSON or match no SBOM schema
    """
    try:
        value = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise UnrecognizedFormat(f"SBOM is not valid JSON: {e}") from e

    errors = []
    for sbom_format, parser in SBOM_PARSERS:
        try:
            document = parser(value)
        except ValidationError as e:
            errors.append(f"{sbom_format.value}: {e.error_count()} validation errors")
            continue
        return Sbom(format=sbom_format, document=document, raw=data)

    raise UnrecognizedFormat(f"SBOM matches no known format ({'; '.join(errors)})")
