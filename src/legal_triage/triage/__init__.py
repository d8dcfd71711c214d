"""
Triage Module
=============

Bounded Context for deciding what happens to an employee's legal request.

Responsibilities:
- Tell document questions apart from requests for service
- Answer document questions from the document library with citations
- Extract request details and route them to a specialist
- Ask for the next missing detail when nothing can be routed yet
"""
