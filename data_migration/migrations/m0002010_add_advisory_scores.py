"""
Extract normalized CVSS scores of every advisory.

Scores of an advisory are replaced as a whole on every run, so re-running
the migration over unchanged documents leaves the same rows behind.
Advisories in an unsupported format keep whatever scores they have.
"""
import logging

import duckdb

from documents import Advisory, AdvisoryFormat
from scoring import SCORE_TABLE, ScoreCreator, extract_scores
from storage.records import AdvisoryRecord
from .base import Migration
from .handlers import AdvisoryHandler

logger = logging.getLogger(__name__)


class AdvisoryScoresHandler(AdvisoryHandler):

    def __init__(self, chunk_size: int):
        self.chunk_size = chunk_size

    def handle(self, advisory: Advisory, record: AdvisoryRecord, conn: duckdb.DuckDBPyConnection):
        if advisory.format is AdvisoryFormat.OTHER:
            logger.debug(f"Ignoring advisory {record.id} of unsupported format")
            return

        creator = ScoreCreator(record.id, chunk_size=self.chunk_size)
        creator.extend(extract_scores(advisory))
        creator.create(conn)


class AddAdvisoryScores(Migration):
    name = "m0002010_add_advisory_scores"

    def up(self, manager):
        manager.process(self.name, AdvisoryScoresHandler(manager.options.chunk_size))

    def down(self, manager):
        manager.execute(f"DELETE FROM {SCORE_TABLE}")
