"""
Normalized CVSS scores.

Every score is recomputed from its vector string with the `cvss` library.
Numeric scores and severities found next to a vector in a document are
never trusted, only the vector is.

Severity scales:
- CVSS v2: low (< 4.0), medium (< 7.0), high
- CVSS v3.x and v4.0: none (0.0), low (< 4.0), medium (< 7.0),
  high (< 9.0), critical
"""
from dataclasses import dataclass
from enum import Enum

from cvss import CVSS2, CVSS3, CVSS4
from cvss.exceptions import CVSSError


class ScoreType(str, Enum):
    V2_0 = "2.0"
    V3_0 = "3.0"
    V3_1 = "3.1"
    V4_0 = "4.0"


class Severity(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class InvalidScore(ValueError):
    """A vector string that does not parse as the expected CVSS version."""


@dataclass(frozen=True)
class ScoreInformation:
    """A normalized score of one vulnerability, not yet bound to an advisory."""
    vulnerability_id: str
    score_type: ScoreType
    vector: str
    score: float
    severity: Severity


def severity_v2(score: float) -> Severity:
    if score < 4.0:
        return Severity.LOW
    if score < 7.0:
        return Severity.MEDIUM
    return Severity.HIGH


def severity_v3(score: float) -> Severity:
    if score == 0.0:
        return Severity.NONE
    if score < 4.0:
        return Severity.LOW
    if score < 7.0:
        return Severity.MEDIUM
    if score < 9.0:
        return Severity.HIGH
    return Severity.CRITICAL


def score_v2(vulnerability_id: str, vector: str) -> ScoreInformation:
    """
    Score a CVSS v2 vector (e.g. "AV:N/AC:L/Au:N/C:P/I:P/A:P").

    Raises:
        InvalidScore: If the vector is not a valid v2 vector
    """
    vector = vector.strip()
    if vector.startswith("(") and vector.endswith(")"):
        vector = vector[1:-1]

    try:
        cvss = CVSS2(vector)
    except (CVSSError, ValueError) as e:
        raise InvalidScore(f"Invalid CVSS v2 vector {vector!r}: {e}") from e

    score = float(cvss.base_score)
    return ScoreInformation(
        vulnerability_id=vulnerability_id,
        score_type=ScoreType.V2_0,
        vector=vector,
        score=score,
        severity=severity_v2(score),
    )


def score_v3(vulnerability_id: str, vector: str) -> ScoreInformation:
    """
    Score a CVSS v3.0 or v3.1 vector.

    The version tag comes from the vector's own prefix and the stored
    vector is the library's canonical rendering of it.

    Raises:
        InvalidScore: If the vector is not a valid v3.x vector
    """
    try:
        cvss = CVSS3(vector.strip())
        canonical = cvss.clean_vector()
    except (CVSSError, ValueError) as e:
        raise InvalidScore(f"Invalid CVSS v3 vector {vector!r}: {e}") from e

    score = float(cvss.base_score)
    return ScoreInformation(
        vulnerability_id=vulnerability_id,
        score_type=ScoreType.V3_1 if canonical.startswith("CVSS:3.1/") else ScoreType.V3_0,
        vector=canonical,
        score=score,
        severity=severity_v3(score),
    )


def score_v4(vulnerability_id: str, vector: str) -> ScoreInformation:
    """
    Score a CVSS v4.0 vector.

    Raises:
        InvalidScore: If the vector is not a valid v4.0 vector
    """
    vector = vector.strip()
    try:
        cvss = CVSS4(vector)
    except (CVSSError, ValueError) as e:
        raise InvalidScore(f"Invalid CVSS v4 vector {vector!r}: {e}") from e

    score = float(cvss.base_score)
    return ScoreInformation(
        vulnerability_id=vulnerability_id,
        score_type=ScoreType.V4_0,
        vector=vector,
        score=score,
        severity=severity_v3(score),
    )
