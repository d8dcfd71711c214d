"""
Term Normalizer
===============

Maps noisy user supplied terms ("Aus", "sales agreement") onto the
canonical vocabulary of the synonym table ("Australia", "Sales Contract").

Similarity is the normalized Levenshtein distance:

    similarity = 1 - distance(a, b) / max(len(a), len(b))

An exact (case-insensitive) hit on a term or one of its synonyms
short-circuits with confidence 1.0.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from rapidfuzz.distance import Levenshtein

from legal_triage.config import FIELD_CATEGORIES
from legal_triage.routing.domain.entities import ExtractedInfo, LegalTerm, normalize_text
from legal_triage.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

DEFAULT_THRESHOLD = 0.7


def similarity(first: str, second: str) -> float:
    """Normalized edit-distance similarity in [0, 1]."""
    longest = max(len(first), len(second))
    if longest == 0:
        return 1.0
    return 1 - Levenshtein.distance(first, second) / longest


@dataclass(frozen=True)
class NormalizationResult:
    """
    Outcome of normalizing one raw value.

    confidence == 0 means no normalization was applied and `canonical`
    is the raw input.
    """
    canonical: str
    confidence: float
    matched_term: Optional[str] = None

    @property
    def applied(self) -> bool:
        return self.confidence > 0


@dataclass(frozen=True)
class FieldMatch:
    """Observability record of a normalized field."""
    original: str
    matched: str
    confidence: float


@dataclass(frozen=True)
class NormalizedInfo:
    """Normalized request information plus the per-field match records."""
    info: ExtractedInfo
    matches: Dict[str, FieldMatch] = field(default_factory=dict)


class TermNormalizer:
    """
    Pure lookup over a read-only synonym table.

    The table is grouped by category once at construction; normalize()
    never raises. Passing `terms=None` models an unavailable table and
    every value passes through unchanged.
    """

    def __init__(
        self,
        terms: Optional[Sequence[LegalTerm]],
        threshold: float = DEFAULT_THRESHOLD
    ):
        self._threshold = threshold
        self._by_category: Optional[Dict[str, List[LegalTerm]]] = None
        if terms is not None:
            self._by_category = {}
            for term in terms:
                self._by_category.setdefault(term.category, []).append(term)

    @property
    def threshold(self) -> float:
        return self._threshold

    def normalize(self, raw_value: str, category: str) -> NormalizationResult:
        """
        Normalize a raw value against the terms of one category.

        Args:
            raw_value: User supplied value
            category: Synonym table category (request_type, location, department)

        Returns:
            NormalizationResult; the raw value with confidence 0 when no
            term reaches the threshold or the table is unavailable
        """
        unchanged = NormalizationResult(canonical=raw_value, confidence=0.0)
        if self._by_category is None or not raw_value:
            return unchanged

        try:
            best = self._best_match(normalize_text(raw_value), self._by_category.get(category, []))
        except Exception as e:
            logger.error(
                "Term normalization failed, keeping raw value",
                extra={"category": category, "error": str(e)}
            )
            return unchanged

        if best is not None and best.confidence >= self._threshold:
            return best
        return unchanged

    def _best_match(
        self,
        needle: str,
        terms: Sequence[LegalTerm]
    ) -> Optional[NormalizationResult]:
        """Scan terms and synonyms; first exact hit wins, else the best score."""
        best: Optional[NormalizationResult] = None

        for term in terms:
            canonical = term.canonical_term
            candidates = [canonical, *term.synonyms]
            for candidate in candidates:
                candidate_text = normalize_text(candidate)
                if needle == candidate_text:
                    return NormalizationResult(
                        canonical=canonical, confidence=1.0, matched_term=canonical
                    )
                score = similarity(needle, candidate_text)
                if best is None or score > best.confidence:
                    best = NormalizationResult(
                        canonical=canonical, confidence=score, matched_term=canonical
                    )

        return best

    def normalize_extracted_info(self, info: ExtractedInfo) -> NormalizedInfo:
        """
        Normalize every recognized field of the extracted information.

        Fields below the threshold keep their raw value. The returned match
        map is for observability only.
        """
        normalized = info
        matches: Dict[str, FieldMatch] = {}

        for field_name, category in FIELD_CATEGORIES.items():
            value = info.get(field_name)
            if not value:
                continue

            result = self.normalize(value, category)
            if not result.applied:
                continue

            normalized = normalized.with_field(field_name, result.canonical)
            matches[field_name] = FieldMatch(
                original=value,
                matched=result.canonical,
                confidence=result.confidence,
            )
            logger.info(
                "Normalized extracted field",
                extra={
                    "field": field_name,
                    "original": value,
                    "matched": result.canonical,
                    "confidence": round(result.confidence, 2),
                }
            )

        return NormalizedInfo(info=normalized, matches=matches)
