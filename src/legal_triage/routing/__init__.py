"""
Routing Module
==============

Bounded Context for deciding who handles a legal request.

Responsibilities:
- Normalize extracted terms against the legal terminology library
- Score specialists by specialty, coverage, tags and availability
- Fall back to static, priority ordered triage rules
- Load the routing catalog (rules, terms, roster, employees)
"""
