"""
CVSS scoring of advisories.

Extracts CVSS vectors from CVE, CSAF and OSV advisories, recomputes score
and severity from each vector and replaces an advisory's stored scores.
"""
from .creator import SCORE_TABLE, ScoreCreator
from .cvss import (
    InvalidScore,
    ScoreInformation,
    ScoreType,
    Severity,
    score_v2,
    score_v3,
    score_v4,
)
from .extract import extract_csaf_scores, extract_cve_scores, extract_osv_scores, extract_scores

__all__ = [
    "SCORE_TABLE",
    "ScoreCreator",
    "InvalidScore",
    "ScoreInformation",
    "ScoreType",
    "Severity",
    "score_v2",
    "score_v3",
    "score_v4",
    "extract_scores",
    "extract_cve_scores",
    "extract_csaf_scores",
    "extract_osv_scores",
]
