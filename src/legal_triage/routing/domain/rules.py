"""
Rule Matcher
============

Evaluates static triage rules against canonical request fields.

Pure functions over an explicit rule list:
- sort_rules: stable ascending priority order
- find_matching_rule: first enabled rule whose conditions all hold
- missing_fields_for: the single next field worth asking the user for
"""

from typing import List, Optional, Sequence

from legal_triage.config import ConditionOperator
from legal_triage.routing.domain.entities import (
    Condition, ExtractedInfo, TriageRule, normalize_text
)


def sort_rules(rules: Sequence[TriageRule]) -> List[TriageRule]:
    """Order rules by ascending priority; equal priorities keep table order."""
    return sorted(rules, key=lambda rule: rule.priority)


def evaluate_condition(condition: Condition, info: ExtractedInfo) -> bool:
    """Compare one condition against the canonical field value."""
    value = info.get(condition.field)
    if not value:
        return False

    actual = normalize_text(value)
    expected = normalize_text(condition.value)

    if condition.operator == ConditionOperator.EQUALS:
        return actual == expected
    if condition.operator == ConditionOperator.CONTAINS:
        return expected in actual
    return False


def evaluate_rule(rule: TriageRule, info: ExtractedInfo) -> bool:
    """A rule matches when it is enabled and every condition holds."""
    # An empty rule is misconfigured, not a catch-all.
    if not rule.enabled or not rule.conditions:
        return False
    return all(evaluate_condition(condition, info) for condition in rule.conditions)


def find_matching_rule(
    info: ExtractedInfo,
    rules: Sequence[TriageRule]
) -> Optional[TriageRule]:
    """
    Find the highest priority rule that fully matches.

    Args:
        info: Normalized request information
        rules: Rule table (sorted here by priority, ties in table order)

    Returns:
        The matching rule, or None when no rule applies
    """
    for rule in sort_rules(rules):
        if evaluate_rule(rule, info):
            return rule
    return None


def referenced_fields(rules: Sequence[TriageRule]) -> List[str]:
    """Every condition field of enabled rules, deduplicated in rule order."""
    fields: List[str] = []
    for rule in rules:
        if not rule.enabled:
            continue
        for field_name in rule.fields:
            if field_name not in fields:
                fields.append(field_name)
    return fields


def missing_fields_for(
    info: ExtractedInfo,
    rules: Sequence[TriageRule]
) -> List[str]:
    """
    Determine the next field to ask the user for.

    Only one field is ever returned so the conversation asks for one
    thing at a time. Rules that are missing some but not all of their
    fields ("close" rules) are preferred; otherwise the first referenced
    field not yet supplied is used.

    Args:
        info: Normalized request information
        rules: Rule table, in the order used for tie-breaking

    Returns:
        A list with at most one field name
    """
    if find_matching_rule(info, rules) is not None:
        return []

    missing: List[str] = []
    for rule in rules:
        if not rule.enabled:
            continue
        rule_fields = rule.fields
        missing_for_rule = [name for name in rule_fields if not info.has(name)]
        if 0 < len(missing_for_rule) < len(rule_fields):
            for name in missing_for_rule:
                if name not in missing:
                    missing.append(name)

    if not missing:
        missing = [name for name in referenced_fields(rules) if not info.has(name)]

    return missing[:1]
