"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from legal_triage.core.exceptions import (
    ApplicationException,
    DomainException,
    ConfigurationException,
    ExternalServiceException,
    LLMException,
    DocumentSearchException,
    ClassificationFailure,
    ExtractionFailure,
    TriageStageFailure,
    TriageTimeoutError,
)

__all__ = [
    "ApplicationException",
    "DomainException",
    "ConfigurationException",
    "ExternalServiceException",
    "LLMException",
    "DocumentSearchException",
    "ClassificationFailure",
    "ExtractionFailure",
    "TriageStageFailure",
    "TriageTimeoutError",
]
