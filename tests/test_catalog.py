"""Tests for loading the routing catalog."""

from datetime import date
from pathlib import Path

import pytest

from legal_triage.core import ConfigurationException
from legal_triage.routing.application import RoutingCatalogSchema, RoutingService
from legal_triage.routing.domain import ExtractedInfo
from legal_triage.routing.infrastructure import RoutingCatalogManager

SAMPLE_CATALOG = Path(__file__).resolve().parent.parent / "routing_catalog.yaml"

CATALOG_YAML = """
rules:
  - id: later
    name: Later rule
    assignee: later@acme.corp
    priority: 2
    conditions:
      - {field: requestType, value: NDA}
  - id: first
    name: First rule
    assignee: first@acme.corp
    priority: 1
    conditions:
      - {field: requestType, operator: contains, value: nda}
legal_terms:
  - term: Australia
    category: location
    synonyms: [aus, au]
specialists:
  - id: john
    email: john@acme.corp
    name: John Anderson
    specialties: [Sales Contract]
    locations: [Australia]
    availability:
      upcoming:
        - {date: 2026-10-19, slots: 2}
        - {date: 2026-10-20, slots: ["09:00", "10:00", "11:00"]}
        - {date: 2026-10-21, slots: null}
employees:
  - id: emp-1
    email: Alice.Smith@acme.corp
    first_name: Alice
    last_name: Smith
    location: United States
"""


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "routing_catalog.yaml"
    path.write_text(CATALOG_YAML, encoding="utf-8")
    return path


class TestRoutingCatalogManager:
    def test_load(self, catalog_file):
        manager = RoutingCatalogManager()
        catalog = manager.load(catalog_file)

        assert [rule.id for rule in catalog.rules] == ["first", "later"]
        assert catalog.rules[1].conditions[0].operator == "equals"
        assert catalog.legal_terms[0].canonical_term == "Australia"
        assert catalog.legal_terms[0].synonyms == ("aus", "au")
        assert manager.snapshot() is catalog

    def test_availability_slot_formats(self, catalog_file):
        catalog = RoutingCatalogManager().load(catalog_file)
        upcoming = catalog.specialists[0].availability.upcoming
        assert [(d.day, d.slots) for d in upcoming] == [
            (date(2026, 10, 19), 2),
            (date(2026, 10, 20), 3),
            (date(2026, 10, 21), 0),
        ]

    def test_employee_name_from_parts(self, catalog_file):
        catalog = RoutingCatalogManager().load(catalog_file)
        assert catalog.employees[0].name == "Alice Smith"

    def test_missing_file_gives_empty_catalog(self, tmp_path):
        catalog = RoutingCatalogManager().load(tmp_path / "absent.yaml")
        assert catalog.rules == ()
        assert catalog.specialists == ()

    def test_invalid_operator_fails_fast(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(
            "rules:\n  - {id: r, name: r, assignee: a@x, conditions: [{field: location, operator: like, value: x}]}\n",
            encoding="utf-8"
        )
        with pytest.raises(ConfigurationException):
            RoutingCatalogManager().load(path)

    def test_malformed_yaml_fails_fast(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("rules: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationException):
            RoutingCatalogManager().load(path)

    def test_failed_reload_keeps_previous_snapshot(self, catalog_file):
        manager = RoutingCatalogManager()
        original = manager.load(catalog_file)

        catalog_file.write_text("legal_terms: [{term: X, category: planet}]\n", encoding="utf-8")

        assert manager.reload() is False
        assert manager.snapshot() is original

    def test_undecodable_reload_keeps_previous_snapshot(self, catalog_file):
        manager = RoutingCatalogManager()
        original = manager.load(catalog_file)

        catalog_file.write_bytes(b'legal_terms:\n  - term: "\xff\xfe"\n')

        assert manager.reload() is False
        assert manager.snapshot() is original

    def test_reload_swaps_snapshot(self, catalog_file):
        manager = RoutingCatalogManager()
        original = manager.load(catalog_file)

        catalog_file.write_text("rules: []\n", encoding="utf-8")

        assert manager.reload() is True
        assert manager.snapshot() is not original
        assert manager.snapshot().rules == ()
        # snapshots already handed out are untouched
        assert len(original.rules) == 2

    def test_snapshot_before_load(self):
        with pytest.raises(RuntimeError):
            RoutingCatalogManager().snapshot()

    def test_sample_catalog_is_valid(self):
        catalog = RoutingCatalogManager().load(SAMPLE_CATALOG)
        assert len(catalog.rules) == 5
        assert len(catalog.legal_terms) == 11
        assert catalog.find_employee("bob.jones@acme.corp").tags == ("vip",)


class TestEmployeeLookup:
    def test_lookup_is_case_insensitive(self, catalog_file):
        catalog = RoutingCatalogManager().load(catalog_file)

        assert catalog.find_employee("alice.smith@ACME.corp").id == "emp-1"
        assert catalog.find_employee("nobody@acme.corp") is None
        assert catalog.find_employee("") is None


class TestRoutingService:
    def test_routes_over_snapshot(self, catalog_file):
        catalog = RoutingCatalogManager().load(catalog_file)
        service = RoutingService(catalog)

        normalized = service.normalize(ExtractedInfo(request_type="Mutual NDA", location="aus"))
        assert normalized.info.location == "Australia"

        evaluation = service.evaluate_rules(normalized.info)
        assert evaluation.rules_evaluated == 2
        assert evaluation.matched_rule.id == "first"
        assert service.summary() == {"rules": 2, "legal_terms": 1, "specialists": 1}

    def test_schema_defaults(self):
        schema = RoutingCatalogSchema()
        assert schema.rules == [] and schema.specialists == []
