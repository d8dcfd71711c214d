"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from legal_triage.config import Settings


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.normalization_threshold == 0.7
    assert settings.min_match_score == 20
    assert settings.availability_window_days == 7
    assert settings.document_top_k == 3
    assert settings.triage_timeout_seconds is None


def test_provider_is_case_insensitive():
    assert Settings(_env_file=None, llm_provider="MOCK").llm_provider == "mock"


def test_unknown_provider_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, llm_provider="anthropic-local")


def test_unknown_environment_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, environment="qa")


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("MIN_MATCH_SCORE", "35")
    monkeypatch.setenv("WATCH_CATALOG", "true")
    settings = Settings(_env_file=None)
    assert settings.min_match_score == 35
    assert settings.watch_catalog is True


def test_threshold_bounds():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, normalization_threshold=1.5)
