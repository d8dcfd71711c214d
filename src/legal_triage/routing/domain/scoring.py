"""
Specialist Scorer
=================

Additive affinity score between a request and each candidate specialist.

Signals and points:
- availability: +25 with at least one open slot in the window, else -10;
  plus 2 per open slot, capped at +15
- specialty: +50 when the request type and a specialty contain each other
- location: +30 for an exact request location match
- department: +20 for an exact request department match
- VIP: +40 when employee and specialist are both tagged "vip";
  +10 for every other shared tag
- employee defaults: +15 / +10 when the employee's own location /
  department is covered by the specialist
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional, Sequence

from legal_triage.routing.domain.entities import (
    EmployeeContext, ExtractedInfo, Specialist, lowered_set, normalize_text
)
from legal_triage.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

AVAILABILITY_BONUS = 25
BUSY_PENALTY = -10
POINTS_PER_SLOT = 2
MAX_SLOT_BONUS = 15
SPECIALTY_POINTS = 50
LOCATION_POINTS = 30
DEPARTMENT_POINTS = 20
VIP_POINTS = 40
SHARED_TAG_POINTS = 10
EMPLOYEE_LOCATION_POINTS = 15
EMPLOYEE_DEPARTMENT_POINTS = 10

VIP_TAG = "vip"
DEFAULT_MIN_SCORE = 20
DEFAULT_WINDOW_DAYS = 7
FALLBACK_REASON = "best available match"


@dataclass(frozen=True)
class ScoredSpecialist:
    """A candidate together with its total score."""
    specialist: Specialist
    score: int


@dataclass(frozen=True)
class SpecialistMatch:
    """The selected specialist with its score and human-readable reason."""
    specialist: Specialist
    score: int
    reason: str


def matching_specialty(request_type: str, specialties: Sequence[str]) -> Optional[str]:
    """First specialty that contains, or is contained in, the request type."""
    wanted = normalize_text(request_type)
    if not wanted:
        return None
    for specialty in specialties:
        candidate = normalize_text(specialty)
        if candidate and (wanted in candidate or candidate in wanted):
            return specialty
    return None


def covers(value: Optional[str], options: Sequence[str]) -> bool:
    """Case-insensitive exact membership."""
    if not value or not value.strip():
        return False
    return normalize_text(value) in lowered_set(options)


class SpecialistScorer:
    """
    Scores and ranks specialists for a request.

    Stateless apart from its tunables; `today` is resolved once per call
    so every candidate is scored against the same date.
    """

    def __init__(
        self,
        min_score: int = DEFAULT_MIN_SCORE,
        window_days: int = DEFAULT_WINDOW_DAYS
    ):
        self._min_score = min_score
        self._window_days = window_days

    def score(
        self,
        specialist: Specialist,
        request: ExtractedInfo,
        employee: Optional[EmployeeContext],
        today: date
    ) -> int:
        """Total score of one specialist."""
        score = 0

        slots = specialist.availability.slots_within(self._window_days, today)
        if slots > 0:
            score += AVAILABILITY_BONUS
            score += min(slots * POINTS_PER_SLOT, MAX_SLOT_BONUS)
        else:
            score += BUSY_PENALTY

        if request.request_type and matching_specialty(request.request_type, specialist.specialties):
            score += SPECIALTY_POINTS

        if covers(request.location, specialist.locations):
            score += LOCATION_POINTS

        if covers(request.department, specialist.departments):
            score += DEPARTMENT_POINTS

        if employee is not None:
            employee_tags = lowered_set(employee.tags)
            specialist_tags = lowered_set(specialist.tags)
            shared = employee_tags & specialist_tags
            if VIP_TAG in shared:
                score += VIP_POINTS
                shared.discard(VIP_TAG)
            score += len(shared) * SHARED_TAG_POINTS

            if covers(employee.location, specialist.locations):
                score += EMPLOYEE_LOCATION_POINTS
            if covers(employee.department, specialist.departments):
                score += EMPLOYEE_DEPARTMENT_POINTS

        return score

    def score_and_rank(
        self,
        request: ExtractedInfo,
        employee: Optional[EmployeeContext],
        candidates: Sequence[Specialist],
        now: Optional[datetime] = None
    ) -> List[ScoredSpecialist]:
        """
        Score every candidate and sort by descending score.

        The sort is stable: equal scores keep roster order.
        """
        today = (now or datetime.now(timezone.utc)).date()
        scored = [
            ScoredSpecialist(specialist, self.score(specialist, request, employee, today))
            for specialist in candidates
        ]
        return sorted(scored, key=lambda entry: entry.score, reverse=True)

    def select_best(
        self,
        request: ExtractedInfo,
        employee: Optional[EmployeeContext],
        candidates: Sequence[Specialist],
        now: Optional[datetime] = None
    ) -> Optional[SpecialistMatch]:
        """
        Pick the best specialist for the request.

        Returns None when no request type is known, the roster is empty,
        or the best score is below the minimum; the caller then falls back
        to the static rules.
        """
        if not request.request_type:
            logger.info("No request type extracted yet, cannot route dynamically")
            return None

        if not candidates:
            logger.warning("Specialist roster is empty")
            return None

        now = now or datetime.now(timezone.utc)
        best = self.score_and_rank(request, employee, candidates, now)[0]

        if best.score < self._min_score:
            logger.info(
                "No specialist reached the minimum score",
                extra={"best_score": best.score, "min_score": self._min_score}
            )
            return None

        reason = self.build_reason(best.specialist, request, employee, now.date())
        logger.info(
            "Specialist selected",
            extra={
                "specialist": best.specialist.email,
                "score": best.score,
                "reason": reason,
            }
        )
        return SpecialistMatch(specialist=best.specialist, score=best.score, reason=reason)

    def build_reason(
        self,
        specialist: Specialist,
        request: ExtractedInfo,
        employee: Optional[EmployeeContext],
        today: date
    ) -> str:
        """Comma separated list of the signals that fired, in fixed order."""
        reasons: List[str] = []

        slots = specialist.availability.slots_within(self._window_days, today)
        if slots > 0:
            reasons.append(f"available soon ({slots} slots in next {self._window_days} days)")

        if request.request_type:
            specialty = matching_specialty(request.request_type, specialist.specialties)
            if specialty:
                reasons.append(f"specializes in {specialty}")

        if covers(request.location, specialist.locations):
            reasons.append(f"handles {request.location} region")

        if covers(request.department, specialist.departments):
            reasons.append(f"works with {request.department} department")

        if employee is not None and VIP_TAG in (lowered_set(employee.tags) & lowered_set(specialist.tags)):
            reasons.append("handles VIP clients")

        return ", ".join(reasons) if reasons else FALLBACK_REASON


def routing_explanation(
    request: ExtractedInfo,
    employee: Optional[EmployeeContext] = None,
    match: Optional[SpecialistMatch] = None
) -> str:
    """Render a debugging summary of a routing decision."""
    parts: List[str] = ["**Request Analysis:**"]
    if request.request_type:
        parts.append(f"- Request Type: {request.request_type}")
    if request.location:
        parts.append(f"- Location: {request.location}")
    if request.department:
        parts.append(f"- Department: {request.department}")

    if employee is not None:
        parts.append("\n**Employee Context:**")
        parts.append(f"- {employee.name} ({employee.email})")
        parts.append(f"- Department: {employee.department or 'Unknown'}")
        parts.append(f"- Location: {employee.location or 'Unknown'}")
        if employee.tags:
            parts.append(f"- Tags: {', '.join(employee.tags)}")

    if match is not None:
        specialist = match.specialist
        parts.append("\n**Matched Specialist:**")
        parts.append(f"- {specialist.name} ({specialist.email})")
        parts.append(f"- Match Score: {match.score}")
        parts.append(f"- Reason: {match.reason}")
        if specialist.specialties:
            parts.append(f"- Specialties: {', '.join(specialist.specialties)}")
        if specialist.locations:
            parts.append(f"- Locations: {', '.join(specialist.locations)}")

    return "\n".join(parts)
