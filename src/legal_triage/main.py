"""
Legal Triage - Main Application
===============================

Decision engine routing employees' legal requests to specialists or
answering them from the document library.

Modules:
- Routing: term normalization, specialist scoring, static rules
- Triage: intent classification, extraction and the triage state machine

Clean Architecture Layers:
- Application: Services and DTOs
- Domain: Entities and value objects
- Infrastructure: Completion service, document search, routing catalog

Usage:
    legal-triage conversation.json --employee jane@acme.corp
"""

import argparse
import asyncio
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from legal_triage.config import Settings, get_settings
from legal_triage.core import ApplicationException, TriageStageFailure
from legal_triage.infrastructure.llm import create_llm_client
from legal_triage.infrastructure.search import HTTPDocumentSearchClient
from legal_triage.routing.infrastructure import RoutingCatalogManager
from legal_triage.shared.infrastructure.logging import get_logger, setup_logging
from legal_triage.shared.infrastructure.observability import (
    CompositeObserver, LoggingObserver, MetricsObserver, TraceRecorder
)
from legal_triage.triage.application import (
    TriageDecisionResponse, TriageOrchestrator, TriageRequest
)
from legal_triage.triage.infrastructure import (
    CompletionServiceAdapter, DocumentSearchAdapter, EmptyDocumentSearch
)

logger = get_logger(__name__)

APOLOGY = (
    "Sorry, something went wrong while processing your request. "
    "The legal team has been notified."
)


@dataclass
class TriageEngine:
    """Wired engine plus the resources it owns."""
    orchestrator: TriageOrchestrator
    catalog_manager: RoutingCatalogManager
    trace_recorder: TraceRecorder
    metrics: MetricsObserver
    search_client: Optional[HTTPDocumentSearchClient] = None

    async def aclose(self) -> None:
        """Stop the catalog watcher and close HTTP connections."""
        self.catalog_manager.stop_watching()
        if self.search_client is not None:
            await self.search_client.close()


def build_engine(settings: Optional[Settings] = None) -> TriageEngine:
    """
    Wire the triage engine from settings.

    Raises:
        ConfigurationException: Missing credentials or an invalid catalog
    """
    settings = settings or get_settings()

    catalog_manager = RoutingCatalogManager()
    catalog = catalog_manager.load(settings.catalog_path)
    if settings.watch_catalog:
        catalog_manager.start_watching()

    completion_service = CompletionServiceAdapter(create_llm_client(settings))

    search_client = None
    if settings.document_search_url:
        search_client = HTTPDocumentSearchClient(
            settings.document_search_url,
            api_key=settings.document_search_api_key,
            timeout_seconds=settings.document_search_timeout_seconds,
        )
        document_search = DocumentSearchAdapter(search_client)
    else:
        logger.warning("Document search not configured, document questions will find nothing")
        document_search = EmptyDocumentSearch()

    trace_recorder = TraceRecorder(max_traces=settings.trace_buffer_size)
    metrics = MetricsObserver()

    orchestrator = TriageOrchestrator(
        completion_service=completion_service,
        document_search=document_search,
        catalog_provider=catalog_manager,
        observer=CompositeObserver([LoggingObserver(), trace_recorder, metrics]),
        normalization_threshold=settings.normalization_threshold,
        min_match_score=settings.min_match_score,
        availability_window_days=settings.availability_window_days,
        document_top_k=settings.document_top_k,
        timeout_seconds=settings.triage_timeout_seconds,
    )

    logger.info(
        "Triage engine ready",
        extra={
            "llm_provider": settings.llm_provider,
            "rules": len(catalog.rules),
            "legal_terms": len(catalog.legal_terms),
            "specialists": len(catalog.specialists),
            "employees": len(catalog.employees),
        }
    )

    return TriageEngine(
        orchestrator=orchestrator,
        catalog_manager=catalog_manager,
        trace_recorder=trace_recorder,
        metrics=metrics,
        search_client=search_client,
    )


def load_request(path: Path, employee_email: Optional[str] = None) -> TriageRequest:
    """
    Read a triage request from a JSON file.

    The file holds either `{"messages": [...], "employeeEmail": ...}` or
    a bare list of messages.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, list):
        data = {"messages": data}
    request = TriageRequest.model_validate(data)
    if employee_email:
        request = request.model_copy(update={"employee_email": employee_email})
    return request


async def run_triage(
    engine: TriageEngine,
    request: TriageRequest,
    timeout: Optional[float] = None
) -> dict:
    try:
        decision = await engine.orchestrator.triage_for_email(
            request.conversation(),
            request.employee_email,
            timeout=timeout
        )
        return TriageDecisionResponse.from_domain(decision).to_payload()
    finally:
        await engine.aclose()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="legal-triage",
        description="Triage a conversation and print the decision as JSON."
    )
    parser.add_argument("conversation", type=Path, help="JSON file with the conversation")
    parser.add_argument("--employee", help="Email of the requesting employee")
    parser.add_argument("--catalog", type=Path, help="Routing catalog YAML (overrides CATALOG_PATH)")
    parser.add_argument("--timeout", type=float, help="Abort the run after this many seconds")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = parse_args(argv)
    settings = get_settings()
    if args.catalog:
        settings = settings.model_copy(update={"catalog_path": args.catalog})

    setup_logging(settings.log_level, settings.environment, stream=sys.stderr)

    try:
        request = load_request(args.conversation, args.employee)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error("Invalid conversation file", extra={"path": str(args.conversation), "error": str(e)})
        return 2

    try:
        engine = build_engine(settings)
        payload = asyncio.run(run_triage(engine, request, args.timeout))
    except TriageStageFailure as e:
        logger.error("Triage failed", extra={"stage": e.stage, "error": e.message})
        print(json.dumps({"error": APOLOGY, "stage": e.stage}))
        return 1
    except ApplicationException as e:
        logger.error("Triage engine error", extra={"error": e.message, "details": e.details})
        return 1

    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
