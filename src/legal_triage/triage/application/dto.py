"""
Triage DTOs
===========

Data Transfer Objects for the triage output surface.

Uses Pydantic for validation and serialization. Field aliases follow
the camelCase names callers (chat and email layers) already consume.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from legal_triage.routing.domain import FieldMatch
from legal_triage.triage.domain import ConversationMessage, TriageDecision


class ConversationMessageIn(BaseModel):
    """One inbound conversation message."""
    role: str = Field(default="user")
    content: str = Field(..., min_length=1)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        """Validate message role."""
        allowed = {"user", "assistant", "system"}
        if v not in allowed:
            raise ValueError(f"Role must be one of {allowed}")
        return v

    def to_domain(self) -> ConversationMessage:
        return ConversationMessage(role=self.role, content=self.content)


class TriageRequest(BaseModel):
    """Inbound triage request."""
    model_config = ConfigDict(populate_by_name=True)

    messages: List[ConversationMessageIn] = Field(..., min_length=1)
    employee_email: Optional[str] = Field(default=None, alias="employeeEmail")

    def conversation(self) -> List[ConversationMessage]:
        return [m.to_domain() for m in self.messages]


class DocumentSourceInfo(BaseModel):
    """Citation of a document answer."""
    title: str
    category: str


class EmployeeInfo(BaseModel):
    """Employee metadata echoed back with a decision."""
    model_config = ConfigDict(populate_by_name=True)

    employee_id: str = Field(..., alias="employeeId")
    display_name: str = Field(..., alias="displayName")
    role: Optional[str] = None


class NormalizationMatchInfo(BaseModel):
    """Observability record of a normalized field."""
    original: str
    matched: str
    confidence: float = Field(..., ge=0.0, le=1.0)

    @classmethod
    def from_domain(cls, match: FieldMatch) -> "NormalizationMatchInfo":
        return cls(
            original=match.original,
            matched=match.matched,
            confidence=round(match.confidence, 4),
        )


class TriageDecisionResponse(BaseModel):
    """Serialized triage decision."""
    model_config = ConfigDict(populate_by_name=True)

    extracted_info: Dict[str, Any] = Field(default_factory=dict, alias="extractedInfo")
    is_complete: bool = Field(..., alias="isComplete")
    needs_more_info: bool = Field(..., alias="needsMoreInfo")
    missing_fields: List[str] = Field(default_factory=list, alias="missingFields")
    assigned_to: Optional[str] = Field(default=None, alias="assignedTo")
    match_reason: Optional[str] = Field(default=None, alias="matchReason")
    match_score: Optional[int] = Field(default=None, alias="matchScore")
    document_answer: Optional[str] = Field(default=None, alias="documentAnswer")
    document_sources: List[DocumentSourceInfo] = Field(
        default_factory=list,
        alias="documentSources"
    )
    employee: Optional[EmployeeInfo] = None
    outcome: str

    @classmethod
    def from_domain(cls, decision: TriageDecision) -> "TriageDecisionResponse":
        employee = None
        if decision.employee is not None:
            employee = EmployeeInfo(
                employee_id=decision.employee.employee_id,
                display_name=decision.employee.display_name,
                role=decision.employee.role,
            )

        return cls(
            extracted_info=decision.extracted_info.to_dict(),
            is_complete=decision.is_complete,
            needs_more_info=decision.needs_more_info,
            missing_fields=list(decision.missing_fields),
            assigned_to=decision.assigned_to,
            match_reason=decision.match_reason,
            match_score=decision.match_score,
            document_answer=decision.document_answer,
            document_sources=[
                DocumentSourceInfo(title=s.title, category=s.category)
                for s in decision.document_sources
            ],
            employee=employee,
            outcome=decision.outcome,
        )

    def to_payload(self) -> Dict[str, Any]:
        """camelCase JSON-compatible dict, without empty optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
