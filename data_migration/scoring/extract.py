"""
Score extraction from resolved advisories.

Each supported advisory format has its own extractor that walks the
document and yields normalized ScoreInformation values:

- CVE: published records only; CNA and ADP metric entries, every CVSS
  version present in an entry is kept
- CSAF: vulnerabilities with a CVE id only; cvss_v2 and cvss_v3 blocks
- OSV: CVSS_V2, CVSS_V3 and CVSS_V4 severities, applied to every CVE alias

Blocks that fail validation or scoring are skipped and logged at DEBUG.
A malformed score never aborts extraction of the rest of the document.
"""
import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Type

from pydantic import ValidationError

from documents.advisory import Advisory, AdvisoryFormat, CsafDocument, CveRecord, OsvVulnerability
from documents.cvss_blocks import CvssBlock, CvssV2Block, CvssV3Block, CvssV4Block
from .cvss import InvalidScore, ScoreInformation, score_v2, score_v3, score_v4

logger = logging.getLogger(__name__)

Scorer = Callable[[str, str], ScoreInformation]

# Keys of a CVE metric entry, in extraction order
CVE_METRIC_BLOCKS: Tuple[Tuple[str, Type[CvssBlock], Scorer], ...] = (
    ("cvssV2_0", CvssV2Block, score_v2),
    ("cvssV3_0", CvssV3Block, score_v3),
    ("cvssV3_1", CvssV3Block, score_v3),
    ("cvssV4_0", CvssV4Block, score_v4),
)

CSAF_SCORE_BLOCKS: Tuple[Tuple[str, Type[CvssBlock], Scorer], ...] = (
    ("cvss_v2", CvssV2Block, score_v2),
    ("cvss_v3", CvssV3Block, score_v3),
)

OSV_SEVERITY_TYPES: Dict[str, Scorer] = {
    "CVSS_V2": score_v2,
    "CVSS_V3": score_v3,
    "CVSS_V4": score_v4,
}


def _score_block(
    vulnerability_id: str,
    raw: Any,
    model: Type[CvssBlock],
    scorer: Scorer
) -> Optional[ScoreInformation]:
    try:
        block = model.model_validate(raw)
        return scorer(vulnerability_id, block.vector_string)
    except (ValidationError, InvalidScore) as e:
        logger.debug(f"Skipping {model.__name__} of {vulnerability_id}: {e}")
        return None


def extract_cve_scores(record: CveRecord) -> Iterator[ScoreInformation]:
    """
    Extract scores from a CVE record.

    Args:
        record: Validated CVE record

    Yields:
        One score per valid CVSS block, CNA container first
    """
    if not record.is_published:
        return

    vulnerability_id = record.cve_metadata.cve_id
    for container in record.all_containers():
        for metric in container.metrics or []:
            for key, model, scorer in CVE_METRIC_BLOCKS:
                raw = metric.get(key)
                if raw is None:
                    continue
                score = _score_block(vulnerability_id, raw, model, scorer)
                if score is not None:
                    yield score


def extract_csaf_scores(document: CsafDocument) -> Iterator[ScoreInformation]:
    """
    Extract scores from a CSAF document.

    Args:
        document: Validated CSAF document

    Yields:
        One score per valid cvss_v2/cvss_v3 block of a CVE vulnerability
    """
    for vulnerability in document.vulnerabilities or []:
        if not vulnerability.cve:
            continue

        for entry in vulnerability.scores or []:
            for attribute, model, scorer in CSAF_SCORE_BLOCKS:
                raw = getattr(entry, attribute)
                if raw is None:
                    continue
                score = _score_block(vulnerability.cve, raw, model, scorer)
                if score is not None:
                    yield score


def extract_osv_scores(vulnerability: OsvVulnerability) -> Iterator[ScoreInformation]:
    """
    Extract scores from an OSV entry.

    Severities are scored once and attached to every CVE alias. Entries
    without CVE aliases produce nothing.
    """
    aliases = vulnerability.cve_ids()
    if not aliases:
        return

    scored: List[Tuple[Scorer, str]] = []
    for severity in vulnerability.severity or []:
        scorer = OSV_SEVERITY_TYPES.get(severity.type)
        if scorer is None:
            logger.debug(f"Skipping {severity.type} severity of {vulnerability.id}")
            continue
        scored.append((scorer, severity.score))

    for alias in aliases:
        for scorer, vector in scored:
            try:
                yield scorer(alias, vector)
            except InvalidScore as e:
                logger.debug(f"Skipping severity of {vulnerability.id}: {e}")


EXTRACTORS: Dict[AdvisoryFormat, Callable[[Any], Iterator[ScoreInformation]]] = {
    AdvisoryFormat.CVE: extract_cve_scores,
    AdvisoryFormat.CSAF: extract_csaf_scores,
    AdvisoryFormat.OSV: extract_osv_scores,
}


def extract_scores(advisory: Advisory) -> List[ScoreInformation]:
    """
    Extract every score of a resolved advisory.

    OTHER advisories have no extractor and yield an empty list.
    """
    extractor = EXTRACTORS.get(advisory.format)
    if extractor is None:
        return []
    return list(extractor(advisory.document))
