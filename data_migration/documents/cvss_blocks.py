"""
Schemas of the CVSS JSON blocks embedded in advisories.

CVE records and CSAF documents both embed the FIRST CVSS JSON
representation. Only the fields needed to identify and recompute a score
are required; anything else in a block is ignored.
"""
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class CvssBlock(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    vector_string: str = Field(alias="vectorString")
    base_score: float = Field(alias="baseScore")


class CvssV2Block(CvssBlock):
    version: Literal["2.0"]


class CvssV3Block(CvssBlock):
    version: Literal["3.0", "3.1"]
    base_severity: str = Field(alias="baseSeverity")


class CvssV4Block(CvssBlock):
    version: Literal["4.0"]
    base_severity: Optional[str] = Field(default=None, alias="baseSeverity")
