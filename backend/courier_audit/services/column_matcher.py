"""
Fuzzy column-name detection for courier invoice exports.

Scoring hierarchy (0-1):
    1.0        exact match after normalization
    0.9        one string fully contains the other
    0.55-0.90  Jaccard word overlap
    0-1        Levenshtein character edit distance

A required field must score >= CONFIDENCE_THRESHOLD to be auto-accepted;
anything below is surfaced for manual review.
"""
import logging
import re
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

import jellyfish

from courier_audit.config.mapping_loader import get_field_synonyms
from courier_audit.schemas.detection import ColumnMatch, DetectionResult
from courier_audit.schemas.shipment import ALL_FIELDS, REQUIRED_FIELDS

logger = logging.getLogger(__name__)

# Candidates scoring below this are never assigned
MIN_MATCH_SCORE = 0.4
# Minimum confidence to auto-accept a required field
CONFIDENCE_THRESHOLD = 0.8

JACCARD_FLOOR = 0.55
JACCARD_SPAN = 0.35

_NON_ALNUM = re.compile(r"[^a-z0-9 ]")
_WHITESPACE = re.compile(r"\s+")

Candidate = Tuple[str, float]


def normalise(value: str) -> str:
    """Lowercase, turn punctuation into spaces and collapse whitespace."""
    text = _NON_ALNUM.sub(" ", str(value).lower())
    return _WHITESPACE.sub(" ", text).strip()


def levenshtein(a: str, b: str) -> int:
    return jellyfish.levenshtein_distance(a, b)


def similarity(a: str, b: str) -> float:
    """Return a [0, 1] similarity score between two raw header strings."""
    na = normalise(a)
    nb = normalise(b)

    if na == nb:
        return 1.0

    if na in nb or nb in na:
        return 0.9

    words_a = set(w for w in na.split(" ") if w)
    words_b = set(w for w in nb.split(" ") if w)
    intersection = len(words_a & words_b)
    if intersection > 0:
        jaccard = intersection / len(words_a | words_b)
        return JACCARD_FLOOR + jaccard * JACCARD_SPAN

    max_len = max(len(na), len(nb))
    if max_len == 0:
        return 1.0
    return max(0.0, 1 - levenshtein(na, nb) / max_len)


def score_header(raw_header: str, canonical: str, synonyms: Iterable[str]) -> float:
    """Best score of a raw header against a canonical name and its synonyms."""
    best = similarity(raw_header, canonical)
    for variant in synonyms:
        score = similarity(raw_header, variant)
        if score > best:
            best = score
    return best


def build_candidates(
    raw_headers: Sequence[str],
    fields: Sequence[str] = ALL_FIELDS,
    synonyms: Optional[Dict[str, List[str]]] = None,
) -> Dict[str, List[Candidate]]:
    """Per canonical field, the raw headers scoring >= MIN_MATCH_SCORE, best first."""
    synonyms = synonyms if synonyms is not None else get_field_synonyms()
    candidates: Dict[str, List[Candidate]] = {}
    for canonical in fields:
        variants = synonyms.get(canonical, [])
        scored = []
        for raw in raw_headers:
            score = score_header(raw, canonical, variants)
            if score >= MIN_MATCH_SCORE:
                scored.append((raw, score))
        # Stable sort keeps header order for equal scores
        scored.sort(key=lambda c: c[1], reverse=True)
        candidates[canonical] = scored
    return candidates


def _claim(
    canonical: str,
    candidates: List[Candidate],
    claimed: FrozenSet[str],
) -> Tuple[ColumnMatch, FrozenSet[str]]:
    for raw, score in candidates:
        if raw not in claimed:
            return ColumnMatch(canonical=canonical, raw_header=raw, confidence=score), claimed | {raw}
    return ColumnMatch(canonical=canonical, raw_header=None, confidence=0.0), claimed


def assign_columns(
    candidates: Dict[str, List[Candidate]],
    fields: Sequence[str] = ALL_FIELDS,
) -> List[ColumnMatch]:
    """
    Greedy assignment in field priority order.

    The claimed-header set is threaded through each step as a new frozenset,
    so a raw header is never given to two canonical fields.
    """
    matches: List[ColumnMatch] = []
    claimed: FrozenSet[str] = frozenset()
    for canonical in fields:
        match, claimed = _claim(canonical, candidates.get(canonical, []), claimed)
        matches.append(match)
    return matches


def detect_columns(raw_headers: Sequence[str]) -> DetectionResult:
    """
    Fuzzy-match every canonical field against the raw headers.

    Required fields are processed first so they get first pick of headers.
    """
    headers = [str(h) for h in raw_headers if h is not None and str(h).strip()]
    candidates = build_candidates(headers)
    matches = assign_columns(candidates)

    by_field = {m.canonical: m for m in matches}
    low_confidence = [
        field for field in REQUIRED_FIELDS
        if by_field[field].raw_header is None or by_field[field].confidence < CONFIDENCE_THRESHOLD
    ]

    if low_confidence:
        logger.info("Column detection needs review for %s", low_confidence)
    return DetectionResult.from_matches(matches, low_confidence)


def is_canonical_headers(raw_headers: Iterable[str]) -> bool:
    """True when every required canonical name already appears verbatim."""
    present = set(str(h).strip() for h in raw_headers if h is not None)
    return all(field in present for field in REQUIRED_FIELDS)


def identity_mapping(raw_headers: Iterable[str]) -> Dict[str, Optional[str]]:
    """
    Canonical -> the raw header spelling it, for each canonical name present.

    Headers are compared trimmed but mapped to their original text, so rows
    keyed by "AWB " still project onto AWB.
    """
    mapping: Dict[str, Optional[str]] = {field: None for field in ALL_FIELDS}
    for raw in raw_headers:
        if raw is None:
            continue
        name = str(raw).strip()
        if name in mapping and mapping[name] is None:
            mapping[name] = raw
    return mapping
