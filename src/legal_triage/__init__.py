"""
Legal Triage
============

Routes employee requests to the right legal specialist, or answers them
from the document library.

Bounded contexts:
- routing: term normalization, static rules and specialist scoring
- triage: intent classification, extraction and the triage state machine
"""

__version__ = "1.0.0"
