"""Tests for specialist scoring and selection."""

from datetime import timedelta

import pytest

from legal_triage.routing.domain import (
    EmployeeContext, ExtractedInfo, SpecialistScorer, routing_explanation
)
from legal_triage.routing.domain.scoring import FALLBACK_REASON

from conftest import NOW, TODAY, make_specialist

TOMORROW = TODAY + timedelta(days=1)


@pytest.fixture
def scorer():
    return SpecialistScorer()


@pytest.fixture
def sales_au_request():
    return ExtractedInfo(request_type="Sales Contract", location="Australia")


@pytest.fixture
def available_specialist():
    return make_specialist(
        "john@acme.corp",
        specialties=["Sales Contract"],
        locations=["Australia"],
        slots={TOMORROW: 3},
    )


@pytest.fixture
def busy_specialist():
    return make_specialist("jane@acme.corp", specialties=["Sales Contract"])


class TestScore:
    def test_available_specialty_and_location(self, scorer, available_specialist, sales_au_request):
        assert scorer.score(available_specialist, sales_au_request, None, TODAY) == 111

    def test_busy_specialty_only(self, scorer, busy_specialist, sales_au_request):
        assert scorer.score(busy_specialist, sales_au_request, None, TODAY) == 40

    def test_slot_bonus_is_capped(self, scorer, sales_au_request):
        specialist = make_specialist("x@acme.corp", slots={TOMORROW: 10})
        assert scorer.score(specialist, sales_au_request, None, TODAY) == 25 + 15

    def test_slots_outside_window_ignored(self, scorer, sales_au_request):
        specialist = make_specialist(
            "x@acme.corp",
            slots={TODAY - timedelta(days=1): 4, TODAY + timedelta(days=8): 4},
        )
        assert scorer.score(specialist, sales_au_request, None, TODAY) == -10

    def test_window_excludes_today(self, scorer, sales_au_request):
        specialist = make_specialist("x@acme.corp", slots={TODAY: 1})
        assert scorer.score(specialist, sales_au_request, None, TODAY) == -10

    def test_window_includes_last_day(self, scorer, sales_au_request):
        specialist = make_specialist("x@acme.corp", slots={TODAY + timedelta(days=7): 1})
        assert scorer.score(specialist, sales_au_request, None, TODAY) == 25 + 2

    def test_window_spans_seven_dates(self):
        specialist = make_specialist(
            "x@acme.corp",
            slots={TODAY + timedelta(days=n): 1 for n in range(9)},
        )
        assert specialist.availability.slots_within(7, TODAY) == 7

    def test_specialty_substring_either_direction(self, scorer):
        specialist = make_specialist("x@acme.corp", specialties=["Contract"])
        request = ExtractedInfo(request_type="Sales Contract")
        assert scorer.score(specialist, request, None, TODAY) == -10 + 50

    def test_department_match(self, scorer):
        specialist = make_specialist("x@acme.corp", departments=["sales"])
        request = ExtractedInfo(request_type="NDA", department="Sales")
        assert scorer.score(specialist, request, None, TODAY) == -10 + 20

    def test_employee_bonuses(self, scorer, employee):
        specialist = make_specialist(
            "x@acme.corp",
            locations=["Australia"],
            departments=["Sales"],
            tags=["VIP", "enterprise"],
        )
        tagged_employee = EmployeeContext(
            id=employee.id,
            email=employee.email,
            name=employee.name,
            department="Sales",
            location="Australia",
            tags=("vip", "enterprise"),
        )
        request = ExtractedInfo(request_type="NDA")
        # -10 busy, +40 vip, +10 shared tag, +15 employee location, +10 employee department
        assert scorer.score(specialist, request, tagged_employee, TODAY) == 65

    def test_no_employee_no_employee_bonuses(self, scorer):
        specialist = make_specialist("x@acme.corp", locations=["Australia"], tags=["vip"])
        request = ExtractedInfo(request_type="NDA")
        assert scorer.score(specialist, request, None, TODAY) == -10


class TestSelectBest:
    def test_ranks_available_specialist_first(
        self, scorer, available_specialist, busy_specialist, sales_au_request
    ):
        ranked = scorer.score_and_rank(
            sales_au_request, None, [busy_specialist, available_specialist], NOW
        )
        assert [entry.score for entry in ranked] == [111, 40]
        assert ranked[0].specialist is available_specialist

    def test_selects_best(self, scorer, available_specialist, busy_specialist, sales_au_request):
        match = scorer.select_best(sales_au_request, None, [busy_specialist, available_specialist], NOW)
        assert match.specialist is available_specialist
        assert match.score == 111
        assert match.reason == (
            "available soon (3 slots in next 7 days), "
            "specializes in Sales Contract, handles Australia region"
        )

    def test_ties_keep_roster_order(self, scorer, sales_au_request):
        first = make_specialist("first@acme.corp", specialties=["Sales Contract"])
        second = make_specialist("second@acme.corp", specialties=["Sales Contract"])
        assert scorer.select_best(sales_au_request, None, [first, second], NOW).specialist is first
        assert scorer.select_best(sales_au_request, None, [second, first], NOW).specialist is second

    def test_requires_request_type(self, scorer, available_specialist):
        request = ExtractedInfo(location="Australia")
        assert scorer.select_best(request, None, [available_specialist], NOW) is None

    def test_empty_roster(self, scorer, sales_au_request):
        assert scorer.select_best(sales_au_request, None, [], NOW) is None

    def test_below_minimum_score(self, scorer):
        unrelated = make_specialist("x@acme.corp", specialties=["Tax"])
        request = ExtractedInfo(request_type="NDA")
        assert scorer.select_best(request, None, [unrelated], NOW) is None

    def test_custom_minimum_score(self, busy_specialist, sales_au_request):
        strict = SpecialistScorer(min_score=50)
        assert strict.select_best(sales_au_request, None, [busy_specialist], NOW) is None

    def test_vip_reason(self, scorer, employee):
        specialist = make_specialist(
            "x@acme.corp", specialties=["NDA"], departments=["Sales"], tags=["vip"]
        )
        request = ExtractedInfo(request_type="NDA", department="Sales")
        match = scorer.select_best(request, employee, [specialist], NOW)
        assert match.reason == "specializes in NDA, works with Sales department, handles VIP clients"

    def test_fallback_reason(self, scorer, employee):
        specialist = make_specialist("x@acme.corp", locations=["Australia"], departments=["Sales"])
        request = ExtractedInfo(request_type="Tax")
        # -10 busy, +15 employee location, +10 employee department
        assert scorer.score(specialist, request, employee, TODAY) == 15
        assert scorer.build_reason(specialist, request, employee, TODAY) == FALLBACK_REASON


class TestRoutingExplanation:
    def test_includes_request_employee_and_match(
        self, scorer, available_specialist, sales_au_request, employee
    ):
        match = scorer.select_best(sales_au_request, employee, [available_specialist], NOW)
        text = routing_explanation(sales_au_request, employee, match)
        assert "- Request Type: Sales Contract" in text
        assert "- Bob Jones (bob.jones@acme.corp)" in text
        assert f"- Match Score: {match.score}" in text

    def test_request_only(self, sales_au_request):
        text = routing_explanation(sales_au_request)
        assert "Employee Context" not in text
        assert "Matched Specialist" not in text
