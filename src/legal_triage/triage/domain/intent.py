"""
Intent Heuristics
=================

Fast, local classification of the latest user utterance.

A message is a document question when it contains a question pattern
("what is", "explain", ...), or when it has both a WH-word and a
policy/procedure noun. "What is the NDA policy?" is a question; "I need
an NDA for a vendor" is a request.
"""

import re
from dataclasses import dataclass
from typing import Sequence

from legal_triage.triage.domain.entities import ConversationMessage, latest_user_message

GREETINGS = frozenset([
    "hi", "hello", "hey", "greetings",
    "good morning", "good afternoon", "good evening",
])

MIN_UTTERANCE_LENGTH = 5

QUESTION_PATTERNS = (
    "what is", "what are", "what's", "explain", "tell me about", "how does", "how do",
    "what do i need to know", "what should i know", "wondering what", "want to know about",
    "define", "definition of", "can you explain",
    "regarding the", "about the", "regarding our", "about our",
)

POLICY_TERMS = (
    "policy", "policies", "procedure", "guideline",
    "compliance", "regulation", "requirement",
)

QUESTION_WORD = re.compile(r"\b(what|how|why|when|where|which|who)\b")


@dataclass(frozen=True)
class FastPathResult:
    """
    Outcome of the heuristic.

    `conclusive` is False only when nothing matched and the decision
    should be handed to the completion service.
    """
    is_document_question: bool
    conclusive: bool
    utterance: str = ""


def classify_utterance(utterance: str) -> FastPathResult:
    """Apply the heuristic to one utterance."""
    content = utterance.lower().strip()

    if content in GREETINGS or len(content) < MIN_UTTERANCE_LENGTH:
        return FastPathResult(False, True, utterance)

    has_question_pattern = any(pattern in content for pattern in QUESTION_PATTERNS)
    has_policy_term = any(term in content for term in POLICY_TERMS)
    has_question_word = QUESTION_WORD.search(content) is not None

    if has_question_pattern or (has_question_word and has_policy_term):
        return FastPathResult(True, True, utterance)

    return FastPathResult(False, False, utterance)


def classify_fast(conversation: Sequence[ConversationMessage]) -> FastPathResult:
    """Heuristic classification of the latest user message."""
    message = latest_user_message(conversation)
    if message is None:
        return FastPathResult(False, True)
    return classify_utterance(message.content)
