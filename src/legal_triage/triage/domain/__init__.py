"""
Triage Domain Layer
===================

Domain layer for the triage module.

Contains:
- Entities: ConversationMessage, DocumentHit, DocumentAnswer, TriageDecision
- Prompt builders: intent classification, field extraction and document answer prompts
- Intent heuristics: the fast path of intent classification

This layer is framework-agnostic and contains pure business logic.
"""

from legal_triage.triage.domain.entities import (
    ConversationMessage,
    DocumentAnswer,
    DocumentAnswerPromptBuilder,
    DocumentHit,
    DocumentSource,
    ExtractionPromptBuilder,
    IntentPromptBuilder,
    TriageDecision,
    latest_user_message,
)
from legal_triage.triage.domain.intent import (
    FastPathResult,
    classify_fast,
    classify_utterance,
)

__all__ = [
    "ConversationMessage",
    "DocumentAnswer",
    "DocumentAnswerPromptBuilder",
    "DocumentHit",
    "DocumentSource",
    "ExtractionPromptBuilder",
    "IntentPromptBuilder",
    "TriageDecision",
    "latest_user_message",
    "FastPathResult",
    "classify_fast",
    "classify_utterance",
]
