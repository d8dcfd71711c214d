"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from pathlib import Path
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="legal-triage", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Completion Service ==========
    llm_provider: str = Field(
        default="openai",
        description="Completion provider: openai, zai or mock"
    )
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    openai_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for OpenAI-compatible providers (e.g. https://api.groq.com/openai/v1)"
    )
    zai_api_key: Optional[str] = Field(default=None, description="Z.AI API key")
    llm_model: str = Field(default="gpt-4o-mini", description="Completion model name")
    llm_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for a single completion call",
        ge=0.1,
        le=300
    )
    llm_max_retries: int = Field(
        default=2,
        description="Retries for transient completion failures",
        ge=0,
        le=10
    )

    # ========== Document Search ==========
    document_search_url: Optional[str] = Field(
        default=None,
        description="Semantic search service endpoint (POST /search)"
    )
    document_search_api_key: Optional[str] = Field(
        default=None,
        description="Bearer token for the semantic search service"
    )
    document_search_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for semantic search calls",
        ge=0.1,
        le=60
    )
    document_top_k: int = Field(
        default=3,
        description="Number of document chunks used to answer a question",
        ge=1,
        le=20
    )

    # ========== Routing Catalog ==========
    catalog_path: Path = Field(
        default=Path("routing_catalog.yaml"),
        description="YAML file with rules, legal terms, specialists and employees"
    )
    watch_catalog: bool = Field(
        default=False,
        description="Reload the catalog when the YAML file changes"
    )

    # ========== Triage Engine ==========
    normalization_threshold: float = Field(
        default=0.7,
        description="Minimum similarity for a term normalization to apply",
        ge=0.0,
        le=1.0
    )
    min_match_score: int = Field(
        default=20,
        description="Minimum specialist score for a dynamic assignment"
    )
    availability_window_days: int = Field(
        default=7,
        description="Days ahead counted as near-term availability",
        ge=1
    )
    triage_timeout_seconds: Optional[float] = Field(
        default=None,
        description="Abort a triage run after this many seconds",
        gt=0
    )
    trace_buffer_size: int = Field(
        default=100,
        description="Number of recent triage traces kept in memory",
        ge=1
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("llm_provider")
    @classmethod
    def validate_llm_provider(cls, v: str) -> str:
        """Ensure the completion provider is supported."""
        v = v.lower()
        allowed = {"openai", "zai", "mock"}
        if v not in allowed:
            raise ValueError(f"llm_provider must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# ========== Constants ==========

class TermCategory(str):
    """Synonym table categories."""
    REQUEST_TYPE = "request_type"
    LOCATION = "location"
    DEPARTMENT = "department"


class ConditionOperator(str):
    """Operators allowed in triage rule conditions."""
    EQUALS = "equals"
    CONTAINS = "contains"


class RequestField(str):
    """Canonical field names of extracted request information."""
    REQUEST_TYPE = "requestType"
    LOCATION = "location"
    DEPARTMENT = "department"
    IS_DOCUMENT_QUESTION = "isDocumentQuestion"


class TriageStage(str):
    """States of the triage state machine."""
    START = "start"
    CLASSIFYING = "classifying"
    DOCUMENT_PATH = "document_path"
    EXTRACTING = "extracting"
    NORMALIZING = "normalizing"
    SCORING = "scoring"
    RULE_FALLBACK = "rule_fallback"
    ASSIGNED = "assigned"
    DOCUMENT_ANSWERED = "document_answered"
    NEEDS_INFO = "needs_info"
    DONE = "done"


class IntentLabel(str):
    """Labels returned by the intent classification prompt."""
    DOCUMENT = "document"
    REQUEST = "request"
    GREETING = "greeting"


# ========== Lists for validation ==========

VALID_TERM_CATEGORIES = [
    TermCategory.REQUEST_TYPE, TermCategory.LOCATION, TermCategory.DEPARTMENT
]
VALID_OPERATORS = [ConditionOperator.EQUALS, ConditionOperator.CONTAINS]

# Extracted field -> synonym table category
FIELD_CATEGORIES = {
    RequestField.REQUEST_TYPE: TermCategory.REQUEST_TYPE,
    RequestField.LOCATION: TermCategory.LOCATION,
    RequestField.DEPARTMENT: TermCategory.DEPARTMENT,
}

# Prefix reserved for employee-derived metadata keys
METADATA_PREFIX = "_"
