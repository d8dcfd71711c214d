"""Shared fixtures for the triage engine tests."""

import json
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

import pytest

from legal_triage.config import TermCategory
from legal_triage.routing.application import RoutingCatalog, StaticCatalogProvider
from legal_triage.routing.domain import (
    Availability, AvailabilityDay, Condition, EmployeeContext, LegalTerm,
    Specialist, TriageRule
)
from legal_triage.shared.infrastructure.observability import ITriageObserver
from legal_triage.triage.application import ICompletionService, IDocumentSearch
from legal_triage.triage.domain import ConversationMessage, DocumentHit

NOW = datetime(2026, 10, 16, 9, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


def fixed_clock() -> datetime:
    return NOW


SEED_TERMS = [
    ("Sales Contract", TermCategory.REQUEST_TYPE,
     ["sales agreement", "purchase agreement", "sales contract", "vendor agreement", "sales deal"]),
    ("Employment Contract", TermCategory.REQUEST_TYPE,
     ["employment agreement", "job contract", "job offer", "employment terms", "work agreement", "hire contract"]),
    ("NDA", TermCategory.REQUEST_TYPE,
     ["non-disclosure agreement", "nda", "confidentiality agreement", "secrecy agreement"]),
    ("Marketing Review", TermCategory.REQUEST_TYPE,
     ["marketing approval", "advertising review", "campaign review", "marketing legal", "promo review"]),
    ("United States", TermCategory.LOCATION, ["us", "usa", "united states", "america", "u.s.", "u.s.a"]),
    ("Australia", TermCategory.LOCATION, ["au", "aus", "australia", "aussie"]),
    ("United Kingdom", TermCategory.LOCATION, ["uk", "united kingdom", "britain", "great britain", "england", "u.k."]),
    ("Engineering", TermCategory.DEPARTMENT, ["engineering", "eng", "development", "dev", "tech", "technical"]),
    ("Sales", TermCategory.DEPARTMENT, ["sales", "business development", "bd", "account management"]),
    ("Marketing", TermCategory.DEPARTMENT, ["marketing", "mktg", "advertising", "comms", "communications"]),
]


@pytest.fixture
def legal_terms() -> List[LegalTerm]:
    return [
        LegalTerm(canonical_term=term, category=category, synonyms=tuple(synonyms))
        for term, category, synonyms in SEED_TERMS
    ]


def make_specialist(
    email: str,
    specialties=(),
    locations=(),
    departments=(),
    tags=(),
    slots: Optional[Dict[date, int]] = None,
    name: Optional[str] = None
) -> Specialist:
    return Specialist(
        id=email.split("@")[0],
        email=email,
        name=name or email.split("@")[0].title(),
        specialties=tuple(specialties),
        locations=tuple(locations),
        departments=tuple(departments),
        tags=tuple(tags),
        availability=Availability(
            upcoming=tuple(AvailabilityDay(day=d, slots=n) for d, n in (slots or {}).items())
        ),
    )


def make_rule(
    rule_id: str,
    assignee: str,
    conditions,
    priority: int = 0,
    enabled: bool = True
) -> TriageRule:
    return TriageRule(
        id=rule_id,
        name=rule_id,
        conditions=tuple(Condition(field=f, operator=op, value=v) for f, op, v in conditions),
        assignee=assignee,
        priority=priority,
        enabled=enabled,
    )


@pytest.fixture
def employee() -> EmployeeContext:
    return EmployeeContext(
        id="emp-bob",
        email="bob.jones@acme.corp",
        name="Bob Jones",
        department="Sales",
        location="Australia",
        role="Sales Manager",
        tags=("vip",),
    )


def user(content: str) -> ConversationMessage:
    return ConversationMessage(role="user", content=content)


class FakeCompletionService(ICompletionService):
    """Deterministic completion service keyed by operation."""

    def __init__(self, responses: Optional[Dict[str, object]] = None):
        self.responses = dict(responses or {})
        self.calls: List[dict] = []

    async def complete(self, system_prompt, messages, temperature, max_tokens, operation="completion"):
        self.calls.append({
            "system_prompt": system_prompt,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "operation": operation,
        })
        response = self.responses.get(operation, "")
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, dict):
            return json.dumps(response)
        return response

    def operations(self) -> List[str]:
        return [call["operation"] for call in self.calls]


class FakeDocumentSearch(IDocumentSearch):
    def __init__(self, hits: Optional[List[DocumentHit]] = None, error: Optional[Exception] = None):
        self.hits = hits or []
        self.error = error
        self.queries: List[tuple] = []

    async def search(self, query, top_k):
        self.queries.append((query, top_k))
        if self.error is not None:
            raise self.error
        return self.hits[:top_k]


class RecordingObserver(ITriageObserver):
    def __init__(self):
        self.events: List[tuple] = []

    def on_start(self, trace_id, message_count, employee_email):
        self.events.append(("start", message_count, employee_email))

    def on_stage(self, trace_id, stage):
        self.events.append(("stage", stage))

    def on_normalization(self, trace_id, matches):
        self.events.append(("normalization", matches))

    def on_rule_evaluation(self, trace_id, rules_evaluated, matched_rule_id):
        self.events.append(("rules", rules_evaluated, matched_rule_id))

    def on_routing(self, trace_id, assignee, score, reason):
        self.events.append(("routing", assignee, score, reason))

    def on_decision(self, trace_id, outcome, decision):
        self.events.append(("decision", outcome, decision))

    def on_error(self, trace_id, stage, error):
        self.events.append(("error", stage, error))

    def stages(self) -> List[str]:
        return [event[1] for event in self.events if event[0] == "stage"]


@pytest.fixture
def document_hits() -> List[DocumentHit]:
    return [
        DocumentHit(
            title="NDA Policy",
            category="policy",
            content="All vendors must sign the standard mutual NDA before receiving confidential data.",
            score=0.92,
        ),
        DocumentHit(
            title="Vendor Onboarding",
            category="procedure",
            content="Legal reviews every vendor NDA within two business days.",
            score=0.81,
        ),
    ]


@pytest.fixture
def catalog_factory(legal_terms):
    def build(rules=(), specialists=(), employees=(), terms=None) -> StaticCatalogProvider:
        return StaticCatalogProvider(RoutingCatalog(
            rules=tuple(rules),
            legal_terms=tuple(legal_terms if terms is None else terms),
            specialists=tuple(specialists),
            employees=tuple(employees),
        ))
    return build
