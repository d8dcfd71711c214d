"""Tests for fuzzy term normalization."""

import pytest

from legal_triage.config import TermCategory
from legal_triage.routing.domain import ExtractedInfo, LegalTerm, TermNormalizer, similarity


@pytest.fixture
def normalizer(legal_terms):
    return TermNormalizer(legal_terms)


class TestSimilarity:
    def test_identical_strings(self):
        assert similarity("australia", "australia") == 1.0

    def test_empty_strings(self):
        assert similarity("", "") == 1.0

    def test_one_edit(self):
        assert similarity("astralia", "australia") == pytest.approx(1 - 1 / 9)


class TestNormalize:
    def test_exact_synonym(self, normalizer):
        result = normalizer.normalize("US", TermCategory.LOCATION)
        assert result.canonical == "United States"
        assert result.confidence == 1.0

    def test_exact_canonical_term_case_insensitive(self, normalizer):
        result = normalizer.normalize("  sales contract ", TermCategory.REQUEST_TYPE)
        assert result.canonical == "Sales Contract"
        assert result.confidence == 1.0

    def test_misspelling(self, normalizer):
        result = normalizer.normalize("Astralia", TermCategory.LOCATION)
        assert result.canonical == "Australia"
        assert 0.7 <= result.confidence < 1.0

    def test_no_match_returns_raw_value(self, normalizer):
        result = normalizer.normalize("xyz123", TermCategory.LOCATION)
        assert result.canonical == "xyz123"
        assert result.confidence == 0
        assert not result.applied

    def test_only_searches_requested_category(self, normalizer):
        # "sales" is a department synonym, not a location
        result = normalizer.normalize("sales", TermCategory.LOCATION)
        assert result.canonical == "sales"
        assert result.confidence == 0

    def test_unknown_category(self, normalizer):
        result = normalizer.normalize("US", "planet")
        assert result.canonical == "US"
        assert result.confidence == 0

    def test_unavailable_table_passes_values_through(self):
        result = TermNormalizer(None).normalize("US", TermCategory.LOCATION)
        assert result.canonical == "US"
        assert result.confidence == 0

    def test_first_exact_hit_wins(self):
        terms = [
            LegalTerm("Alpha", TermCategory.LOCATION, ("shared",)),
            LegalTerm("Beta", TermCategory.LOCATION, ("shared",)),
        ]
        result = TermNormalizer(terms).normalize("Shared", TermCategory.LOCATION)
        assert result.canonical == "Alpha"

    def test_custom_threshold(self, legal_terms):
        strict = TermNormalizer(legal_terms, threshold=0.95)
        result = strict.normalize("Astralia", TermCategory.LOCATION)
        assert result.canonical == "Astralia"
        assert result.confidence == 0


class TestNormalizeExtractedInfo:
    def test_normalizes_each_recognized_field(self, normalizer):
        info = ExtractedInfo(request_type="sales agreement", location="Aus", department="eng")
        normalized = normalizer.normalize_extracted_info(info)

        assert normalized.info.request_type == "Sales Contract"
        assert normalized.info.location == "Australia"
        assert normalized.info.department == "Engineering"
        assert set(normalized.matches) == {"requestType", "location", "department"}
        assert normalized.matches["location"].original == "Aus"
        assert normalized.matches["location"].matched == "Australia"

    def test_below_threshold_keeps_raw_value(self, normalizer):
        info = ExtractedInfo(request_type="xyz123", location="US")
        normalized = normalizer.normalize_extracted_info(info)

        assert normalized.info.request_type == "xyz123"
        assert normalized.info.location == "United States"
        assert "requestType" not in normalized.matches

    def test_extra_fields_untouched(self, normalizer):
        info = ExtractedInfo(location="usa", extra={"urgency": "high"})
        normalized = normalizer.normalize_extracted_info(info)
        assert normalized.info.extra == {"urgency": "high"}

    def test_empty_info(self, normalizer):
        normalized = normalizer.normalize_extracted_info(ExtractedInfo())
        assert normalized.info == ExtractedInfo()
        assert normalized.matches == {}
