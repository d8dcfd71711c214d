"""
Routing Domain Entities
=======================

Domain entities for the routing module.

Contains pure Python business objects: the request information being
routed, the static triage rules, the synonym table entries, and the
specialists and employees taking part in routing. All entities are
immutable; a triage run only ever reads them.
"""

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from legal_triage.config import (
    RequestField, VALID_OPERATORS, METADATA_PREFIX
)


def normalize_text(value: str) -> str:
    """Lower-case and trim a value for comparison."""
    return value.strip().lower()


# ========== Request Information ==========

@dataclass(frozen=True)
class ExtractedInfo:
    """
    Request information pulled out of a conversation.

    Only the recognized fields and plain string extras are kept here;
    employee metadata never enters this structure (see EmployeeMetadata).
    """
    request_type: Optional[str] = None
    location: Optional[str] = None
    department: Optional[str] = None
    is_document_question: Optional[bool] = None
    extra: Dict[str, str] = field(default_factory=dict)

    _ATTRIBUTES = {
        RequestField.REQUEST_TYPE: "request_type",
        RequestField.LOCATION: "location",
        RequestField.DEPARTMENT: "department",
    }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ExtractedInfo":
        """
        Build from a loosely-typed mapping (e.g. parsed model output).

        Null-like and non-string values are dropped, as are keys that use
        the reserved metadata prefix.
        """
        values: Dict[str, str] = {}
        is_document_question = None

        for key, value in data.items():
            if not isinstance(key, str) or key.startswith(METADATA_PREFIX):
                continue
            if key == RequestField.IS_DOCUMENT_QUESTION:
                if isinstance(value, bool):
                    is_document_question = value
                continue
            if not isinstance(value, str):
                continue
            cleaned = value.strip()
            if not cleaned or cleaned.lower() == "null":
                continue
            values[key] = cleaned

        return cls(
            request_type=values.pop(RequestField.REQUEST_TYPE, None),
            location=values.pop(RequestField.LOCATION, None),
            department=values.pop(RequestField.DEPARTMENT, None),
            is_document_question=is_document_question,
            extra=values,
        )

    def get(self, field_name: str) -> Optional[str]:
        """Get a matchable string field by its canonical name."""
        attribute = self._ATTRIBUTES.get(field_name)
        if attribute is not None:
            return getattr(self, attribute)
        return self.extra.get(field_name)

    def has(self, field_name: str) -> bool:
        """Check whether a field carries a non-empty value."""
        value = self.get(field_name)
        return bool(value and value.strip())

    def with_field(self, field_name: str, value: str) -> "ExtractedInfo":
        """Return a copy with one field replaced."""
        attribute = self._ATTRIBUTES.get(field_name)
        if attribute is not None:
            return replace(self, **{attribute: value})
        return replace(self, extra={**self.extra, field_name: value})

    @property
    def is_empty(self) -> bool:
        return not self.to_dict()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize present fields using canonical (camelCase) names."""
        result: Dict[str, Any] = {}
        for field_name, attribute in self._ATTRIBUTES.items():
            value = getattr(self, attribute)
            if value:
                result[field_name] = value
        result.update(self.extra)
        if self.is_document_question is not None:
            result[RequestField.IS_DOCUMENT_QUESTION] = self.is_document_question
        return result


# ========== Static Rules ==========

@dataclass(frozen=True)
class Condition:
    """One condition of a triage rule, compared against a canonical field."""
    field: str
    operator: str
    value: str

    def __post_init__(self):
        """Validate the operator."""
        if self.operator not in VALID_OPERATORS:
            raise ValueError(
                f"Unsupported operator '{self.operator}', expected one of {VALID_OPERATORS}"
            )


@dataclass(frozen=True)
class TriageRule:
    """
    Static routing rule.

    Conditions are AND-combined. Lower priority numbers are evaluated first.
    """
    id: str
    name: str
    conditions: Tuple[Condition, ...]
    assignee: str
    priority: int = 0
    enabled: bool = True

    @property
    def fields(self) -> List[str]:
        """Condition fields in declaration order."""
        return [condition.field for condition in self.conditions]


# ========== Synonym Table ==========

@dataclass(frozen=True)
class LegalTerm:
    """Canonical term of a category together with its known synonyms."""
    canonical_term: str
    category: str
    synonyms: Tuple[str, ...] = ()


# ========== Specialists ==========

@dataclass(frozen=True)
class AvailabilityDay:
    """Open slots on one calendar day."""
    day: date
    slots: int


@dataclass(frozen=True)
class Availability:
    """Upcoming open calendar slots of a specialist."""
    upcoming: Tuple[AvailabilityDay, ...] = ()

    def slots_within(self, days: int, today: date) -> int:
        """Count open slots on the `days` dates after today (today excluded)."""
        horizon = today + timedelta(days=days)
        return sum(
            entry.slots
            for entry in self.upcoming
            if today < entry.day <= horizon and entry.slots > 0
        )


@dataclass(frozen=True)
class Specialist:
    """A routable legal specialist."""
    id: str
    email: str
    name: str
    specialties: Tuple[str, ...] = ()
    locations: Tuple[str, ...] = ()
    departments: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    availability: Availability = field(default_factory=Availability)


# ========== Employees ==========

@dataclass(frozen=True)
class EmployeeMetadata:
    """Internal employee details attached to a decision, never matched on."""
    employee_id: str
    display_name: str
    role: Optional[str] = None


@dataclass(frozen=True)
class EmployeeContext:
    """
    Profile of the employee making the request.

    Supplies default location/department and tag affinity for scoring.
    """
    id: str
    email: str
    name: str
    department: Optional[str] = None
    location: Optional[str] = None
    role: Optional[str] = None
    tags: Tuple[str, ...] = ()

    @property
    def metadata(self) -> EmployeeMetadata:
        return EmployeeMetadata(
            employee_id=self.id,
            display_name=self.name,
            role=self.role,
        )


def lowered_set(values: Iterable[str]) -> set:
    """Case-insensitive set of non-empty values."""
    return {normalize_text(value) for value in values if value and value.strip()}
