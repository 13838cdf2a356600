"""
Create the file references of every SBOM.

- SPDX: every entry of `files`, referenced by its SPDXID
- CycloneDX: every component of type "file" with a bom-ref, nested
  components included

References are bulk inserted; existing ones are left untouched.
"""
from typing import Iterator, List, Tuple

import duckdb

from documents import CycloneDxBom, Sbom, SbomFormat, SpdxDocument
from storage.batch_writer import DEFAULT_CHUNK_SIZE, BatchWriter
from storage.records import SbomRecord
from .base import Migration
from .handlers import SbomHandler

FILE_TABLE = "sbom_file"
FILE_COLUMNS = ("sbom_id", "node_id")


def file_node_ids(sbom: Sbom) -> Iterator[str]:
    if sbom.format is SbomFormat.SPDX:
        spdx: SpdxDocument = sbom.document
        for file in spdx.files or []:
            yield file.spdx_id
    elif sbom.format is SbomFormat.CYCLONEDX:
        bom: CycloneDxBom = sbom.document
        for component in bom.walk_components():
            if component.type == "file" and component.bom_ref:
                yield component.bom_ref


class FileCreator:
    """Collects the file references of one SBOM and bulk inserts them."""

    def __init__(self, sbom_id: str, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.sbom_id = sbom_id
        self.chunk_size = chunk_size
        self.node_ids: List[str] = []

    def add(self, node_id: str):
        self.node_ids.append(node_id)

    def create(self, conn: duckdb.DuckDBPyConnection) -> int:
        writer = BatchWriter(conn, FILE_TABLE, FILE_COLUMNS, FILE_COLUMNS, chunk_size=self.chunk_size)
        rows: Iterator[Tuple[str, str]] = ((self.sbom_id, node_id) for node_id in self.node_ids)
        return writer.insert(rows)


class SbomFilesHandler(SbomHandler):

    def __init__(self, chunk_size: int):
        self.chunk_size = chunk_size

    def handle(self, sbom: Sbom, record: SbomRecord, conn: duckdb.DuckDBPyConnection):
        creator = FileCreator(record.sbom_id, chunk_size=self.chunk_size)
        for node_id in file_node_ids(sbom):
            creator.add(node_id)
        creator.create(conn)


class AddSbomFiles(Migration):
    name = "m0002020_add_sbom_files"

    def up(self, manager):
        manager.process(self.name, SbomFilesHandler(manager.options.chunk_size))

    def down(self, manager):
        manager.execute(f"DELETE FROM {FILE_TABLE}")
