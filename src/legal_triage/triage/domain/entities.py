"""
Triage Domain Entities
======================

Domain entities for the triage module.

Contains pure Python business objects for one triage run: the
conversation, document search hits and the final triage decision.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from legal_triage.config import TriageStage
from legal_triage.routing.domain import EmployeeContext, EmployeeMetadata, ExtractedInfo


@dataclass(frozen=True)
class ConversationMessage:
    """One chat or email message."""
    role: str  # user, assistant or system
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


def latest_user_message(conversation: Sequence[ConversationMessage]) -> Optional[ConversationMessage]:
    """Most recent message written by the user."""
    for message in reversed(conversation):
        if message.role == "user":
            return message
    return None


@dataclass(frozen=True)
class DocumentHit:
    """One chunk returned by the semantic search service."""
    title: str
    category: str
    content: str
    score: float


@dataclass(frozen=True)
class DocumentSource:
    """Citation attached to a document answer."""
    title: str
    category: str


@dataclass(frozen=True)
class DocumentAnswer:
    """Answer generated from the document library."""
    answer: str
    sources: Tuple[DocumentSource, ...] = ()


@dataclass(frozen=True)
class TriageDecision:
    """
    Terminal output of one triage run.

    Exactly one outcome holds: an assignment, a document answer, or a
    request for information (whose missing field list may be empty when
    there is nothing left to ask). `is_complete` is true iff one of the
    first two holds.
    """
    extracted_info: ExtractedInfo
    is_complete: bool
    needs_more_info: bool
    missing_fields: Tuple[str, ...] = ()
    assigned_to: Optional[str] = None
    match_reason: Optional[str] = None
    match_score: Optional[int] = None
    document_answer: Optional[str] = None
    document_sources: Tuple[DocumentSource, ...] = ()
    employee: Optional[EmployeeMetadata] = None

    def __post_init__(self):
        """Validate that the outcomes are mutually exclusive."""
        outcomes = [
            self.assigned_to is not None,
            self.document_answer is not None,
            bool(self.missing_fields),
        ]
        if sum(outcomes) > 1:
            raise ValueError("A triage decision can only have one outcome")
        if self.is_complete != (self.assigned_to is not None or self.document_answer is not None):
            raise ValueError("is_complete must be set exactly for assignments and document answers")
        if self.needs_more_info != bool(self.missing_fields):
            raise ValueError("needs_more_info must reflect missing_fields")

    @classmethod
    def assigned(
        cls,
        extracted_info: ExtractedInfo,
        assignee: str,
        match_reason: Optional[str] = None,
        match_score: Optional[int] = None,
        employee: Optional[EmployeeMetadata] = None
    ) -> "TriageDecision":
        return cls(
            extracted_info=extracted_info,
            is_complete=True,
            needs_more_info=False,
            assigned_to=assignee,
            match_reason=match_reason,
            match_score=match_score,
            employee=employee,
        )

    @classmethod
    def answered(
        cls,
        extracted_info: ExtractedInfo,
        answer: DocumentAnswer,
        employee: Optional[EmployeeMetadata] = None
    ) -> "TriageDecision":
        return cls(
            extracted_info=extracted_info,
            is_complete=True,
            needs_more_info=False,
            document_answer=answer.answer,
            document_sources=answer.sources,
            employee=employee,
        )

    @classmethod
    def needs_info(
        cls,
        extracted_info: ExtractedInfo,
        missing_fields: Sequence[str],
        employee: Optional[EmployeeMetadata] = None
    ) -> "TriageDecision":
        return cls(
            extracted_info=extracted_info,
            is_complete=False,
            needs_more_info=bool(missing_fields),
            missing_fields=tuple(missing_fields),
            employee=employee,
        )

    @property
    def outcome(self) -> str:
        """Terminal state this decision represents."""
        if self.assigned_to is not None:
            return TriageStage.ASSIGNED
        if self.document_answer is not None:
            return TriageStage.DOCUMENT_ANSWERED
        return TriageStage.NEEDS_INFO


# ========== Prompt Builders ==========

class IntentPromptBuilder:
    """
    Builds the few-shot prompt telling document questions apart from
    service requests and greetings.
    """

    SYSTEM_PROMPT = """You are a classifier. Determine if the user is asking a QUESTION ABOUT a policy/document/procedure
OR if they are REQUESTING legal help/service.

DOCUMENT QUESTIONS (asking to learn/understand):
- "What is the NDA policy?"
- "Tell me about data retention"
- "What do I need to know about NDAs?"
- "How does the patent process work?"
- "Explain the IP policy"

LEGAL REQUESTS (asking for help/action):
- "I need an NDA for a vendor"
- "Help me with a contract"
- "I need legal review"
- "Can you draft an agreement?"
- "Can someone help me with X?"

GREETINGS/SMALL TALK (also NOT document questions):
- "Hello"
- "Hi there"
- "Thanks"

Return ONLY one word: "document", "request" or "greeting"."""

    @classmethod
    def get_system_prompt(cls) -> str:
        return cls.SYSTEM_PROMPT

    @classmethod
    def build_messages(cls, utterance: str) -> List[dict]:
        return [{"role": "user", "content": utterance}]


class ExtractionPromptBuilder:
    """Builds the prompt pulling request fields out of a conversation."""

    SYSTEM_PROMPT = """You are a legal triage assistant. You extract the details needed to route
an employee's legal request to the right legal team member."""

    EXTRACTION_PROMPT = """Based on the conversation above, extract any information about the user's legal request.
Return ONLY a JSON object with these fields (use null for unknown fields):
{
  "requestType": "type of legal request",
  "location": "user's location",
  "department": "user's department"
}

Normalize the values:
- Request types: "Sales Contract", "Employment Contract", "NDA", "Marketing Review", "General Question"
- Locations: Full country names like "United States", "Australia", "United Kingdom"
- Departments: "Engineering", "Sales", "Marketing", "Finance", "HR", "Legal"

Return ONLY the JSON, no other text."""

    @classmethod
    def get_system_prompt(cls) -> str:
        return cls.SYSTEM_PROMPT

    @classmethod
    def build_messages(cls, conversation: Sequence[ConversationMessage]) -> List[dict]:
        return [m.to_dict() for m in conversation] + [
            {"role": "user", "content": cls.EXTRACTION_PROMPT}
        ]


class DocumentAnswerPromptBuilder:
    """Builds the grounded answer prompt for document questions."""

    NOT_FOUND_ANSWER = (
        "I couldn't find any relevant information in our document library. "
        "Could you please rephrase your question or contact the legal team directly?"
    )

    EMPTY_ANSWER = "I apologize, but I encountered an error generating a response."

    SYSTEM_PROMPT = """You are a helpful legal assistant. Use the following context from our legal document library to answer the user's question. If the context doesn't contain relevant information, say so clearly.

CONTEXT:
{context}{employee_context}

INSTRUCTIONS:
- Answer based on the context provided
- Be precise and cite which source you're using (e.g., "According to [Source 1]...")
- If the context doesn't fully answer the question, acknowledge what you can and can't answer
- IMPORTANT: Always end your response with a recommendation for who to talk to for further help
- Make the recommendation conversational and natural, not a separate section
- Infer the best legal specialty from the question context: {suggested_specialty}"""

    # Checked in order; the first group with a hit wins.
    SPECIALTY_KEYWORDS = (
        ("Employment Contract", re.compile(r"employment|contract.*\b(hire|employee)|\b(hire|employee)\b.*contract")),
        ("NDA", re.compile(r"\bnda\b|non-disclosure")),
        ("Sales Contract", re.compile(r"sales|vendor|customer contract")),
        ("Marketing Review", re.compile(r"marketing|\bip\b|intellectual property|trademark|patent")),
        ("Contract Review", re.compile(r"contract")),
    )

    DEFAULT_SPECIALTY = "General Legal"

    @classmethod
    def suggest_specialty(cls, question: str) -> str:
        """Guess which specialty the closing recommendation should point to."""
        lowered = question.lower()
        for specialty, pattern in cls.SPECIALTY_KEYWORDS:
            if pattern.search(lowered):
                return specialty
        return cls.DEFAULT_SPECIALTY

    @staticmethod
    def build_context(hits: Sequence[DocumentHit]) -> str:
        return "\n\n---\n\n".join(
            f"[Source {i}: {hit.title}]\n{hit.content}"
            for i, hit in enumerate(hits, start=1)
        )

    @staticmethod
    def build_employee_context(employee: Optional[EmployeeContext]) -> str:
        if employee is None:
            return ""
        return (
            "\n\nEMPLOYEE CONTEXT:\n"
            f"- Department: {employee.department or 'Unknown'}\n"
            f"- Location: {employee.location or 'Unknown'}\n"
            f"- Role: {employee.role or 'Unknown'}"
        )

    @classmethod
    def get_system_prompt(
        cls,
        question: str,
        hits: Sequence[DocumentHit],
        employee: Optional[EmployeeContext] = None
    ) -> str:
        return cls.SYSTEM_PROMPT.format(
            context=cls.build_context(hits),
            employee_context=cls.build_employee_context(employee),
            suggested_specialty=cls.suggest_specialty(question),
        )

    @classmethod
    def build_messages(
        cls,
        question: str,
        history: Sequence[ConversationMessage] = ()
    ) -> List[dict]:
        return [m.to_dict() for m in history] + [{"role": "user", "content": question}]
