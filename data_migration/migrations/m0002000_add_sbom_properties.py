"""
Fill `sbom.properties` from the stored SBOM documents.

CycloneDX SBOMs carry top-level properties as a list of name/value pairs,
stored as one JSON object keyed by name (later duplicates win). SPDX has
no equivalent and gets an empty object.
"""
import json
from typing import Dict, Optional

import duckdb

from documents import CycloneDxBom, Sbom, SbomFormat
from storage.records import SbomRecord
from .base import Migration
from .handlers import SbomHandler


def extract_properties(sbom: Sbom) -> Dict[str, Optional[str]]:
    if sbom.format is SbomFormat.CYCLONEDX:
        bom: CycloneDxBom = sbom.document
        return {prop.name: prop.value for prop in bom.properties or []}
    return {}


class SbomPropertiesHandler(SbomHandler):

    def handle(self, sbom: Sbom, record: SbomRecord, conn: duckdb.DuckDBPyConnection):
        conn.execute(
            "UPDATE sbom SET properties = ? WHERE sbom_id = ?",
            [json.dumps(extract_properties(sbom)), record.sbom_id]
        )


class AddSbomProperties(Migration):
    name = "m0002000_add_sbom_properties"

    def up(self, manager):
        manager.process(self.name, SbomPropertiesHandler())

    def down(self, manager):
        manager.execute("UPDATE sbom SET properties = NULL")
