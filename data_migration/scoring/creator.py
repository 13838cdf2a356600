"""
Replace the stored scores of one advisory.

Scores are never merged: creating scores for an advisory first deletes
every score row it has, then bulk inserts the collected set. Running the
creator twice with the same input leaves the same rows behind.
"""
import logging
from typing import Iterable, List

import duckdb

from storage.batch_writer import DEFAULT_CHUNK_SIZE, BatchWriter
from .cvss import ScoreInformation

logger = logging.getLogger(__name__)

SCORE_TABLE = "advisory_vulnerability_score"
SCORE_COLUMNS = ("advisory_id", "vulnerability_id", "score_type", "vector", "score", "severity")
SCORE_KEY = ("advisory_id", "vulnerability_id", "score_type", "vector")


class ScoreCreator:
    """Collects scores for one advisory and writes them in one replacement."""

    def __init__(self, advisory_id: str, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.advisory_id = advisory_id
        self.chunk_size = chunk_size
        self.scores: List[ScoreInformation] = []

    def add(self, score: ScoreInformation):
        self.scores.append(score)

    def extend(self, scores: Iterable[ScoreInformation]):
        self.scores.extend(scores)

    def __len__(self) -> int:
        return len(self.scores)

    def create(self, conn: duckdb.DuckDBPyConnection) -> int:
        """
        Replace the advisory's scores with the collected ones.

        Must run inside the caller's transaction so the delete and the
        inserts commit together.

        Args:
            conn: Active connection

        Returns:
            Number of score rows submitted
        """
        conn.execute(f"DELETE FROM {SCORE_TABLE} WHERE advisory_id = ?", [self.advisory_id])

        writer = BatchWriter(conn, SCORE_TABLE, SCORE_COLUMNS, SCORE_KEY, chunk_size=self.chunk_size)
        written = writer.insert(
            (
                self.advisory_id,
                score.vulnerability_id,
                score.score_type.value,
                score.vector,
                score.score,
                score.severity.value,
            )
            for score in self.scores
        )

        logger.debug(f"Stored {written} scores for advisory {self.advisory_id}")
        return written
