"""
Routing Catalog DTOs
====================

Pydantic models describing the routing catalog file.

The catalog is the read-only input of every triage run: triage rules,
the legal terminology (synonym) table, the specialist roster and the
employee directory. Models validate the YAML payload and convert it to
immutable domain entities.
"""

from datetime import date
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from legal_triage.config import VALID_OPERATORS, VALID_TERM_CATEGORIES
from legal_triage.routing.domain import (
    Availability, AvailabilityDay, Condition, EmployeeContext,
    LegalTerm, Specialist, TriageRule
)


# ========== Rules ==========

class ConditionSchema(BaseModel):
    """Rule condition as stored in the catalog."""
    field: str = Field(..., min_length=1, description="Canonical field name, e.g. requestType")
    operator: str = Field(default="equals", description="equals or contains")
    value: str = Field(..., description="Value compared case-insensitively")

    @field_validator("operator")
    @classmethod
    def validate_operator(cls, v: str) -> str:
        """Ensure operator is supported."""
        v = v.strip().lower()
        if v not in VALID_OPERATORS:
            raise ValueError(f"operator must be one of {VALID_OPERATORS}")
        return v

    def to_domain(self) -> Condition:
        return Condition(field=self.field, operator=self.operator, value=self.value)


class TriageRuleSchema(BaseModel):
    """Static routing rule."""
    id: str
    name: str
    conditions: List[ConditionSchema] = Field(default_factory=list)
    assignee: str = Field(..., min_length=1)
    priority: int = 0
    enabled: bool = True

    def to_domain(self) -> TriageRule:
        return TriageRule(
            id=self.id,
            name=self.name,
            conditions=tuple(c.to_domain() for c in self.conditions),
            assignee=self.assignee,
            priority=self.priority,
            enabled=self.enabled,
        )


# ========== Synonym Table ==========

class LegalTermSchema(BaseModel):
    """Canonical term with synonyms."""
    term: str = Field(..., min_length=1)
    category: str
    synonyms: List[str] = Field(default_factory=list)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        """Ensure category is known."""
        if v not in VALID_TERM_CATEGORIES:
            raise ValueError(f"category must be one of {VALID_TERM_CATEGORIES}")
        return v

    def to_domain(self) -> LegalTerm:
        return LegalTerm(
            canonical_term=self.term,
            category=self.category,
            synonyms=tuple(self.synonyms),
        )


# ========== Specialists ==========

class AvailabilityDaySchema(BaseModel):
    """Open slots on one day; `slots` is a count or a list of slot entries."""
    day: date = Field(..., alias="date")
    slots: int = Field(default=0, ge=0)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("slots", mode="before")
    @classmethod
    def count_slots(cls, v: Any) -> Any:
        """Accept calendar exports that list individual slots."""
        if isinstance(v, (list, tuple)):
            return len(v)
        if v is None:
            return 0
        return v


class AvailabilitySchema(BaseModel):
    """Calendar availability summary."""
    upcoming: List[AvailabilityDaySchema] = Field(default_factory=list)

    def to_domain(self) -> Availability:
        return Availability(
            upcoming=tuple(AvailabilityDay(day=d.day, slots=d.slots) for d in self.upcoming)
        )


class SpecialistSchema(BaseModel):
    """Specialist roster entry."""
    id: str
    email: str = Field(..., min_length=3)
    name: str
    specialties: List[str] = Field(default_factory=list)
    locations: List[str] = Field(default_factory=list)
    departments: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    availability: AvailabilitySchema = Field(default_factory=AvailabilitySchema)

    def to_domain(self) -> Specialist:
        return Specialist(
            id=self.id,
            email=self.email,
            name=self.name,
            specialties=tuple(self.specialties),
            locations=tuple(self.locations),
            departments=tuple(self.departments),
            tags=tuple(self.tags),
            availability=self.availability.to_domain(),
        )


# ========== Employees ==========

class EmployeeSchema(BaseModel):
    """Employee directory entry."""
    id: str
    email: str = Field(..., min_length=3)
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    department: Optional[str] = None
    location: Optional[str] = None
    role: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def fill_name(self) -> "EmployeeSchema":
        """Derive the display name from first/last name when absent."""
        if not self.name:
            parts = [p for p in (self.first_name, self.last_name) if p]
            self.name = " ".join(parts) if parts else self.email
        return self

    def to_domain(self) -> EmployeeContext:
        return EmployeeContext(
            id=self.id,
            email=self.email,
            name=self.name or self.email,
            department=self.department,
            location=self.location,
            role=self.role,
            tags=tuple(self.tags),
        )


# ========== Catalog ==========

class RoutingCatalogSchema(BaseModel):
    """Whole routing catalog file."""
    rules: List[TriageRuleSchema] = Field(default_factory=list)
    legal_terms: List[LegalTermSchema] = Field(default_factory=list)
    specialists: List[SpecialistSchema] = Field(default_factory=list)
    employees: List[EmployeeSchema] = Field(default_factory=list)
