"""
Triage Application Layer
========================

Application layer for the triage module.

Contains:
- Services: IntentClassifier, FieldExtractor, DocumentAnswerService, TriageOrchestrator
- DTOs: Pydantic models for triage requests and decisions
- Interfaces: completion service and document search
"""

from legal_triage.triage.application.dto import (
    ConversationMessageIn,
    DocumentSourceInfo,
    EmployeeInfo,
    NormalizationMatchInfo,
    TriageDecisionResponse,
    TriageRequest,
)
from legal_triage.triage.application.services import (
    DocumentAnswerService,
    FieldExtractor,
    ICompletionService,
    IDocumentSearch,
    IntentClassifier,
    TriageOrchestrator,
    TriageRun,
)

__all__ = [
    # DTOs
    "ConversationMessageIn",
    "DocumentSourceInfo",
    "EmployeeInfo",
    "NormalizationMatchInfo",
    "TriageDecisionResponse",
    "TriageRequest",
    # Services
    "DocumentAnswerService",
    "FieldExtractor",
    "ICompletionService",
    "IDocumentSearch",
    "IntentClassifier",
    "TriageOrchestrator",
    "TriageRun",
]
