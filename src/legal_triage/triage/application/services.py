"""
Triage Application Services
============================

Application services for intent classification, field extraction,
document answers and the triage state machine.

Orchestrates the routing domain and the external collaborators
(completion service, document search) behind the interfaces below.
"""

import asyncio
import json
import re
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from legal_triage.config import IntentLabel, RequestField, TriageStage
from legal_triage.core import (
    ClassificationFailure, ExtractionFailure, LLMException,
    TriageStageFailure, TriageTimeoutError
)
from legal_triage.routing.application import (
    IEmployeeDirectory, IRoutingCatalogProvider, RoutingCatalog, RoutingService
)
from legal_triage.routing.domain import EmployeeContext, ExtractedInfo
from legal_triage.routing.domain.normalizer import DEFAULT_THRESHOLD
from legal_triage.routing.domain.scoring import (
    DEFAULT_MIN_SCORE, DEFAULT_WINDOW_DAYS, routing_explanation
)
from legal_triage.shared.infrastructure.logging import get_logger, log_latency
from legal_triage.shared.infrastructure.observability import ITriageObserver
from legal_triage.triage.application.dto import NormalizationMatchInfo, TriageDecisionResponse
from legal_triage.triage.domain import (
    ConversationMessage, DocumentAnswer, DocumentAnswerPromptBuilder, DocumentHit,
    DocumentSource, ExtractionPromptBuilder, IntentPromptBuilder, TriageDecision,
    classify_fast, latest_user_message
)

logger = get_logger(__name__)

DOCUMENT_QUESTION_TYPE = "Document Question"

JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
KNOWN_LABELS = (IntentLabel.DOCUMENT, IntentLabel.REQUEST, IntentLabel.GREETING)


# ========== Collaborator Interfaces ==========

class ICompletionService(ABC):
    """Interface for the external completion service."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        messages: List[dict],
        temperature: float,
        max_tokens: int,
        operation: str = "completion"
    ) -> str:
        """Generate a completion and return its text."""


class IDocumentSearch(ABC):
    """Interface for the external semantic search service."""

    @abstractmethod
    async def search(self, query: str, top_k: int) -> List[DocumentHit]:
        """Search the document library."""


# ========== Application Services ==========

class IntentClassifier:
    """
    Decides whether a conversation is a question about the document
    library or a request for service.

    The heuristic fast path runs first; the completion service is only
    consulted when the heuristic is inconclusive. Never raises.
    """

    def __init__(self, completion_service: ICompletionService):
        self._completion = completion_service

    async def is_document_question(self, conversation: Sequence[ConversationMessage]) -> bool:
        fast = classify_fast(conversation)
        if fast.conclusive:
            logger.debug(
                "Intent decided by heuristic",
                extra={"is_document_question": fast.is_document_question}
            )
            return fast.is_document_question

        try:
            text = await self._completion.complete(
                system_prompt=IntentPromptBuilder.get_system_prompt(),
                messages=IntentPromptBuilder.build_messages(fast.utterance),
                temperature=0.0,
                max_tokens=10,
                operation="intent_classification"
            )
        except Exception as e:
            failure = ClassificationFailure(
                "Intent classification fallback failed",
                {"error": str(e), "error_type": type(e).__name__}
            )
            logger.warning(failure.message, extra=failure.details)
            return fast.is_document_question

        label = self.parse_label(text)
        if label not in KNOWN_LABELS:
            logger.warning("Unrecognised intent label", extra={"label": label})
            return fast.is_document_question

        logger.info("Intent decided by completion service", extra={"label": label})
        return label == IntentLabel.DOCUMENT

    @staticmethod
    def parse_label(text: Optional[str]) -> str:
        """First word of the reply, lower-cased and stripped of punctuation."""
        words = (text or "").strip().lower().split()
        if not words:
            return ""
        return words[0].strip("\"'.,:;!")


class FieldExtractor:
    """Pulls request fields out of a conversation via the completion service."""

    def __init__(self, completion_service: ICompletionService):
        self._completion = completion_service

    async def extract(self, conversation: Sequence[ConversationMessage]) -> ExtractedInfo:
        """
        Best-effort extraction.

        Service errors and malformed replies yield an empty ExtractedInfo.
        """
        try:
            text = await self._completion.complete(
                system_prompt=ExtractionPromptBuilder.get_system_prompt(),
                messages=ExtractionPromptBuilder.build_messages(conversation),
                temperature=0.0,
                max_tokens=200,
                operation="field_extraction"
            )
            info = self.parse(text)
        except (LLMException, ExtractionFailure) as e:
            logger.warning(
                "Field extraction failed, continuing with empty extraction",
                extra={"error": str(e), "error_type": type(e).__name__}
            )
            return ExtractedInfo()

        logger.info("Fields extracted", extra={"extracted": info.to_dict()})
        return info

    @staticmethod
    def parse(text: Optional[str]) -> ExtractedInfo:
        """Parse the first-to-last brace span of a reply as a JSON object."""
        match = JSON_OBJECT.search(text or "")
        if match is None:
            raise ExtractionFailure("No JSON object in extraction reply", {"reply": (text or "")[:200]})

        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ExtractionFailure(f"Malformed extraction JSON: {e}", {"reply": match.group(0)[:200]})

        if not isinstance(data, dict):
            raise ExtractionFailure("Extraction JSON is not an object")

        return ExtractedInfo.from_mapping(data)


class DocumentAnswerService:
    """
    Answers questions from the document library.

    Searches once and hands the hits to the completion service as
    numbered sources.
    """

    def __init__(
        self,
        completion_service: ICompletionService,
        document_search: IDocumentSearch,
        top_k: int = 3
    ):
        self._completion = completion_service
        self._search = document_search
        self._top_k = top_k

    async def answer(
        self,
        question: str,
        history: Sequence[ConversationMessage] = (),
        employee: Optional[EmployeeContext] = None
    ) -> DocumentAnswer:
        """
        Search the library and generate a grounded answer.

        Args:
            question: The user's question
            history: Earlier conversation messages
            employee: Optional employee profile for the recommendation

        Returns:
            DocumentAnswer with the answer text and its sources
        """
        start_time = time.perf_counter()
        with log_latency(logger, "document_search", top_k=self._top_k):
            hits = await self._search.search(question, top_k=self._top_k)

        if not hits:
            logger.info("No documents found for question")
            return DocumentAnswer(answer=DocumentAnswerPromptBuilder.NOT_FOUND_ANSWER)

        text = await self._completion.complete(
            system_prompt=DocumentAnswerPromptBuilder.get_system_prompt(question, hits, employee),
            messages=DocumentAnswerPromptBuilder.build_messages(question, history),
            temperature=0.7,
            max_tokens=600,
            operation="document_answer"
        )

        logger.info(
            "Document answer generated",
            extra={
                "sources": len(hits),
                "latency_ms": int((time.perf_counter() - start_time) * 1000),
            }
        )

        return DocumentAnswer(
            answer=(text or "").strip() or DocumentAnswerPromptBuilder.EMPTY_ANSWER,
            sources=tuple(DocumentSource(title=h.title, category=h.category) for h in hits),
        )


# ========== Orchestrator ==========

@dataclass
class TriageRun:
    """Mutable state of one in-flight run."""
    trace_id: str
    stage: str = TriageStage.START
    employee_email: Optional[str] = None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TriageOrchestrator:
    """
    Runs the triage state machine over one conversation.

    START -> CLASSIFYING -> DOCUMENT_PATH | EXTRACTING -> NORMALIZING ->
    SCORING -> RULE_FALLBACK -> ASSIGNED | NEEDS_INFO -> DONE

    Every run reads one catalog snapshot, so concurrent runs share no
    mutable state. Unexpected errors surface as TriageStageFailure
    tagged with the failing stage; there are no retries here.
    """

    def __init__(
        self,
        completion_service: ICompletionService,
        document_search: IDocumentSearch,
        catalog_provider: IRoutingCatalogProvider,
        employee_directory: Optional[IEmployeeDirectory] = None,
        observer: Optional[ITriageObserver] = None,
        clock: Callable[[], datetime] = utc_now,
        normalization_threshold: float = DEFAULT_THRESHOLD,
        min_match_score: int = DEFAULT_MIN_SCORE,
        availability_window_days: int = DEFAULT_WINDOW_DAYS,
        document_top_k: int = 3,
        timeout_seconds: Optional[float] = None
    ):
        self._classifier = IntentClassifier(completion_service)
        self._extractor = FieldExtractor(completion_service)
        self._answerer = DocumentAnswerService(completion_service, document_search, document_top_k)
        self._catalog_provider = catalog_provider
        self._directory = employee_directory
        self._observer = observer or ITriageObserver()
        self._clock = clock
        self._normalization_threshold = normalization_threshold
        self._min_match_score = min_match_score
        self._availability_window_days = availability_window_days
        self._timeout_seconds = timeout_seconds

    async def triage(
        self,
        conversation: Sequence[ConversationMessage],
        employee: Optional[EmployeeContext] = None,
        *,
        employee_email: Optional[str] = None,
        timeout: Optional[float] = None,
        trace_id: Optional[str] = None
    ) -> TriageDecision:
        """
        Triage a conversation.

        Args:
            conversation: Messages, oldest first
            employee: Optional profile of the requesting employee
            employee_email: Looked up in the run's catalog snapshot when no
                profile is given (unknown emails are fine)
            timeout: Seconds before the run is aborted (defaults to the
                orchestrator's configured timeout, None for no limit)
            trace_id: Optional ID used in logs and observer events

        Returns:
            A well-formed TriageDecision

        Raises:
            TriageTimeoutError: If the timeout elapsed
            TriageStageFailure: If a stage failed unexpectedly
        """
        run = TriageRun(
            trace_id=trace_id or uuid.uuid4().hex,
            employee_email=employee.email if employee else employee_email
        )
        timeout = timeout if timeout is not None else self._timeout_seconds

        self._notify(
            "on_start", run.trace_id, len(conversation), run.employee_email
        )

        try:
            if timeout is None:
                decision = await self._run(conversation, employee, run)
            else:
                decision = await asyncio.wait_for(
                    self._run(conversation, employee, run),
                    timeout=timeout
                )
        except asyncio.TimeoutError:
            error = TriageTimeoutError(run.stage, timeout)
            logger.error(error.message, extra={"trace_id": run.trace_id, **error.details})
            self._notify("on_error", run.trace_id, run.stage, error)
            raise error from None
        except TriageStageFailure as e:
            logger.error(
                e.message,
                extra={"trace_id": run.trace_id, "stage": e.stage, "details": e.details}
            )
            self._notify("on_error", run.trace_id, e.stage, e)
            raise

        self._enter(run, TriageStage.DONE)
        self._notify(
            "on_decision", run.trace_id, decision.outcome,
            TriageDecisionResponse.from_domain(decision).to_payload()
        )
        return decision

    async def triage_for_email(
        self,
        conversation: Sequence[ConversationMessage],
        email: Optional[str],
        *,
        timeout: Optional[float] = None
    ) -> TriageDecision:
        """Triage with the employee looked up by email (unknown emails are fine)."""
        return await self.triage(conversation, employee_email=email, timeout=timeout)

    async def _run(
        self,
        conversation: Sequence[ConversationMessage],
        employee: Optional[EmployeeContext],
        run: TriageRun
    ) -> TriageDecision:
        try:
            return await self._execute(conversation, employee, run)
        except TriageStageFailure:
            raise
        except Exception as e:
            raise TriageStageFailure(
                run.stage,
                str(e) or type(e).__name__,
                {"stage": run.stage, "error_type": type(e).__name__}
            ) from e

    async def _execute(
        self,
        conversation: Sequence[ConversationMessage],
        employee: Optional[EmployeeContext],
        run: TriageRun
    ) -> TriageDecision:
        catalog = self._catalog_provider.snapshot()
        routing = RoutingService(
            catalog,
            normalization_threshold=self._normalization_threshold,
            min_match_score=self._min_match_score,
            availability_window_days=self._availability_window_days,
        )
        if employee is None and run.employee_email:
            employee = await self._lookup_employee(run.employee_email, catalog, run)
        metadata = employee.metadata if employee else None

        self._enter(run, TriageStage.CLASSIFYING)
        if await self._classifier.is_document_question(conversation):
            self._enter(run, TriageStage.DOCUMENT_PATH)
            latest = latest_user_message(conversation)
            question = latest.content if latest else ""
            history = [m for m in conversation if m is not latest]
            answer = await self._answerer.answer(question, history, employee)
            self._enter(run, TriageStage.DOCUMENT_ANSWERED)
            return TriageDecision.answered(
                ExtractedInfo(request_type=DOCUMENT_QUESTION_TYPE, is_document_question=True),
                answer,
                employee=metadata,
            )

        self._enter(run, TriageStage.EXTRACTING)
        info = await self._extractor.extract(conversation)
        info = self.apply_employee_defaults(info, employee, run.trace_id)

        self._enter(run, TriageStage.NORMALIZING)
        normalized = routing.normalize(info)
        info = normalized.info
        self._notify(
            "on_normalization", run.trace_id,
            {
                name: NormalizationMatchInfo.from_domain(match).model_dump()
                for name, match in normalized.matches.items()
            }
        )

        self._enter(run, TriageStage.SCORING)
        match = routing.select_specialist(info, employee, self._clock())
        logger.debug(
            "Routing explanation",
            extra={
                "trace_id": run.trace_id,
                "explanation": routing_explanation(info, employee, match),
            }
        )
        if match is not None:
            self._notify(
                "on_routing", run.trace_id, match.specialist.email, match.score, match.reason
            )
            self._enter(run, TriageStage.ASSIGNED)
            return TriageDecision.assigned(
                info,
                match.specialist.email,
                match_reason=match.reason,
                match_score=match.score,
                employee=metadata,
            )

        self._enter(run, TriageStage.RULE_FALLBACK)
        evaluation = routing.evaluate_rules(info)
        matched_rule = evaluation.matched_rule
        self._notify(
            "on_rule_evaluation", run.trace_id, evaluation.rules_evaluated,
            matched_rule.id if matched_rule else None
        )
        if matched_rule is not None:
            self._enter(run, TriageStage.ASSIGNED)
            return TriageDecision.assigned(info, matched_rule.assignee, employee=metadata)

        self._enter(run, TriageStage.NEEDS_INFO)
        return TriageDecision.needs_info(info, evaluation.missing_fields, employee=metadata)

    async def _lookup_employee(
        self,
        email: str,
        catalog: RoutingCatalog,
        run: TriageRun
    ) -> Optional[EmployeeContext]:
        if self._directory is not None:
            employee = await self._directory.get_by_email(email)
        else:
            employee = catalog.find_employee(email)
        if employee is None:
            logger.info(
                "Employee not found, triaging without context",
                extra={"trace_id": run.trace_id}
            )
        return employee

    @staticmethod
    def apply_employee_defaults(
        info: ExtractedInfo,
        employee: Optional[EmployeeContext],
        trace_id: Optional[str] = None
    ) -> ExtractedInfo:
        """Fill department/location from the profile where the user gave none."""
        if employee is None:
            return info

        defaults = {
            RequestField.DEPARTMENT: employee.department,
            RequestField.LOCATION: employee.location,
        }
        for field_name, value in defaults.items():
            if value and not info.has(field_name):
                info = info.with_field(field_name, value)
                logger.info(
                    "Auto-filled field from employee profile",
                    extra={"trace_id": trace_id, "field": field_name, "value": value}
                )
        return info

    def _enter(self, run: TriageRun, stage: str) -> None:
        run.stage = stage
        self._notify("on_stage", run.trace_id, stage)

    def _notify(self, hook: str, *args) -> None:
        try:
            getattr(self._observer, hook)(*args)
        except Exception as e:
            logger.warning(
                "Triage observer failed",
                extra={"hook": hook, "error": str(e)}
            )
