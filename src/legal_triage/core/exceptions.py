"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class LLMException(ExternalServiceException):
    """Exception for LLM API failures."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("LLM Service", message, details)


class DocumentSearchException(ExternalServiceException):
    """Exception for semantic search service failures."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Document Search", message, details)


# ========== Triage Failures ==========

class ClassificationFailure(DomainException):
    """
    Intent classification fallback could not reach the completion service.

    Recovered locally: the fast-path result is used instead.
    """


class ExtractionFailure(DomainException):
    """
    Field extraction returned nothing usable.

    Recovered locally as an empty extraction.
    """


class TriageStageFailure(ApplicationException):
    """
    Unexpected failure inside the triage orchestrator.

    Carries the name of the stage that failed so callers can log it
    without inspecting engine internals.
    """

    def __init__(
        self,
        stage: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.stage = stage
        super().__init__(
            f"Triage failed during {stage}: {message}",
            details or {"stage": stage}
        )


class TriageTimeoutError(TriageStageFailure):
    """Raised when a triage run exceeds the caller supplied timeout."""

    def __init__(self, stage: str, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            stage,
            f"timed out after {timeout_seconds}s",
            {"stage": stage, "timeout_seconds": timeout_seconds}
        )
