"""
Triage Infrastructure Layer
===========================

Adapters binding the triage application interfaces to the completion
and document search clients.
"""

from legal_triage.triage.infrastructure.external import (
    CompletionServiceAdapter,
    DocumentSearchAdapter,
    EmptyDocumentSearch,
)

__all__ = [
    "CompletionServiceAdapter",
    "DocumentSearchAdapter",
    "EmptyDocumentSearch",
]
