"""
Triage Observability
====================

Observers notified by the triage orchestrator at stage boundaries.

Observers are advisory: the orchestrator ignores their return values and
logs (never propagates) their errors, so nothing here can change a
triage decision.

Provides:
- ITriageObserver: hook interface (all hooks default to no-ops)
- LoggingObserver: structured log line per event
- TraceRecorder: in-memory ring buffer of recent run traces
- MetricsObserver: outcome counters
- CompositeObserver: fan-out to several observers
"""

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional, Sequence

from legal_triage.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ITriageObserver:
    """Hook interface; subclasses override what they need."""

    def on_start(self, trace_id: str, message_count: int, employee_email: Optional[str]) -> None:
        """A triage run started."""

    def on_stage(self, trace_id: str, stage: str) -> None:
        """The state machine entered a stage."""

    def on_normalization(self, trace_id: str, matches: Dict[str, Dict[str, Any]]) -> None:
        """Fields were normalized (field -> original/matched/confidence)."""

    def on_rule_evaluation(
        self,
        trace_id: str,
        rules_evaluated: int,
        matched_rule_id: Optional[str]
    ) -> None:
        """The static rule fallback ran."""

    def on_routing(self, trace_id: str, assignee: str, score: int, reason: str) -> None:
        """A specialist was selected dynamically."""

    def on_decision(self, trace_id: str, outcome: str, decision: Dict[str, Any]) -> None:
        """The run finished with a decision."""

    def on_error(self, trace_id: str, stage: str, error: BaseException) -> None:
        """The run failed in a stage."""


class LoggingObserver(ITriageObserver):
    """Writes each event as a structured log record."""

    def on_start(self, trace_id, message_count, employee_email):
        logger.info(
            "Triage run started",
            extra={"trace_id": trace_id, "messages": message_count, "employee_email": employee_email}
        )

    def on_stage(self, trace_id, stage):
        logger.debug("Triage stage", extra={"trace_id": trace_id, "stage": stage})

    def on_normalization(self, trace_id, matches):
        if matches:
            logger.info("Fields normalized", extra={"trace_id": trace_id, "matches": matches})

    def on_rule_evaluation(self, trace_id, rules_evaluated, matched_rule_id):
        logger.info(
            "Rules evaluated",
            extra={
                "trace_id": trace_id,
                "rules_evaluated": rules_evaluated,
                "matched_rule": matched_rule_id,
            }
        )

    def on_routing(self, trace_id, assignee, score, reason):
        logger.info(
            "Dynamic routing match",
            extra={"trace_id": trace_id, "assignee": assignee, "score": score, "reason": reason}
        )

    def on_decision(self, trace_id, outcome, decision):
        logger.info("Triage run completed", extra={"trace_id": trace_id, "outcome": outcome})

    def on_error(self, trace_id, stage, error):
        logger.error(
            "Triage run failed",
            extra={"trace_id": trace_id, "stage": stage, "error": str(error)}
        )


@dataclass
class TriageTrace:
    """Everything observed about one run."""
    trace_id: str
    started_at: str
    employee_email: Optional[str] = None
    message_count: int = 0
    stages: List[Dict[str, Any]] = field(default_factory=list)
    fuzzy_matches: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    rule_matching: Optional[Dict[str, Any]] = None
    routing: Optional[Dict[str, Any]] = None
    outcome: Optional[str] = None
    decision: Optional[Dict[str, Any]] = None
    errors: List[Dict[str, str]] = field(default_factory=list)
    total_duration_ms: Optional[float] = None
    _started: float = field(default_factory=time.perf_counter, repr=False)

    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self._started) * 1000, 2)


class TraceRecorder(ITriageObserver):
    """Keeps the most recent traces in memory, newest first."""

    def __init__(self, max_traces: int = 100):
        self._traces: Deque[TriageTrace] = deque(maxlen=max_traces)
        self._index: Dict[str, TriageTrace] = {}
        self._lock = threading.Lock()

    def _get(self, trace_id: str) -> Optional[TriageTrace]:
        with self._lock:
            return self._index.get(trace_id)

    def on_start(self, trace_id, message_count, employee_email):
        trace = TriageTrace(
            trace_id=trace_id,
            started_at=datetime.now(timezone.utc).isoformat(),
            employee_email=employee_email,
            message_count=message_count,
        )
        with self._lock:
            if len(self._traces) == self._traces.maxlen:
                evicted = self._traces.pop()
                self._index.pop(evicted.trace_id, None)
            self._traces.appendleft(trace)
            self._index[trace_id] = trace

    def on_stage(self, trace_id, stage):
        trace = self._get(trace_id)
        if trace:
            trace.stages.append({"stage": stage, "at_ms": trace.elapsed_ms()})

    def on_normalization(self, trace_id, matches):
        trace = self._get(trace_id)
        if trace:
            trace.fuzzy_matches = dict(matches)

    def on_rule_evaluation(self, trace_id, rules_evaluated, matched_rule_id):
        trace = self._get(trace_id)
        if trace:
            trace.rule_matching = {
                "rules_evaluated": rules_evaluated,
                "matched_rule": matched_rule_id,
            }

    def on_routing(self, trace_id, assignee, score, reason):
        trace = self._get(trace_id)
        if trace:
            trace.routing = {"assignee": assignee, "score": score, "reason": reason}

    def on_decision(self, trace_id, outcome, decision):
        trace = self._get(trace_id)
        if trace:
            trace.outcome = outcome
            trace.decision = decision
            trace.total_duration_ms = trace.elapsed_ms()

    def on_error(self, trace_id, stage, error):
        trace = self._get(trace_id)
        if trace:
            trace.errors.append({"stage": stage, "error": str(error)})
            trace.total_duration_ms = trace.elapsed_ms()

    def get_trace(self, trace_id: str) -> Optional[TriageTrace]:
        """Get one trace by ID."""
        return self._get(trace_id)

    def recent(self, limit: int = 20) -> List[TriageTrace]:
        """Most recent traces first."""
        with self._lock:
            return list(self._traces)[:limit]

    def clear(self) -> None:
        with self._lock:
            self._traces.clear()
            self._index.clear()


class MetricsObserver(ITriageObserver):
    """Outcome counters."""

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: Dict[str, int] = {
            "runs_total": 0,
            "assignments_total": 0,
            "dynamic_assignments_total": 0,
            "rule_assignments_total": 0,
            "document_answers_total": 0,
            "info_requests_total": 0,
            "failures_total": 0,
        }

    def _increment(self, name: str) -> None:
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + 1

    def on_start(self, trace_id, message_count, employee_email):
        self._increment("runs_total")

    def on_routing(self, trace_id, assignee, score, reason):
        self._increment("dynamic_assignments_total")

    def on_rule_evaluation(self, trace_id, rules_evaluated, matched_rule_id):
        if matched_rule_id is not None:
            self._increment("rule_assignments_total")

    def on_decision(self, trace_id, outcome, decision):
        if outcome == "assigned":
            self._increment("assignments_total")
        elif outcome == "document_answered":
            self._increment("document_answers_total")
        else:
            self._increment("info_requests_total")

    def on_error(self, trace_id, stage, error):
        self._increment("failures_total")

    def snapshot(self) -> Dict[str, int]:
        """Copy of the current counter values."""
        with self._lock:
            return dict(self._counters)


class CompositeObserver(ITriageObserver):
    """Forwards every event to each wrapped observer in order."""

    def __init__(self, observers: Sequence[ITriageObserver]):
        self._observers = list(observers)

    def _dispatch(self, hook: str, *args: Any) -> None:
        for observer in self._observers:
            try:
                getattr(observer, hook)(*args)
            except Exception as e:
                logger.warning(
                    "Observer hook failed",
                    extra={"observer": type(observer).__name__, "hook": hook, "error": str(e)}
                )

    def on_start(self, *args):
        self._dispatch("on_start", *args)

    def on_stage(self, *args):
        self._dispatch("on_stage", *args)

    def on_normalization(self, *args):
        self._dispatch("on_normalization", *args)

    def on_rule_evaluation(self, *args):
        self._dispatch("on_rule_evaluation", *args)

    def on_routing(self, *args):
        self._dispatch("on_routing", *args)

    def on_decision(self, *args):
        self._dispatch("on_decision", *args)

    def on_error(self, *args):
        self._dispatch("on_error", *args)
