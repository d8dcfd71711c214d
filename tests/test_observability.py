"""Tests for triage observers."""

import logging

from legal_triage.shared.infrastructure.observability import (
    CompositeObserver, ITriageObserver, LoggingObserver, MetricsObserver, TraceRecorder
)


def run_events(observer, trace_id="t1", outcome="assigned"):
    observer.on_start(trace_id, 2, "bob.jones@acme.corp")
    observer.on_stage(trace_id, "classifying")
    observer.on_normalization(trace_id, {"location": {"original": "Aus", "matched": "Australia", "confidence": 1.0}})
    observer.on_stage(trace_id, "scoring")
    observer.on_routing(trace_id, "john@acme.corp", 109, "specializes in Sales Contract")
    observer.on_decision(trace_id, outcome, {"assignedTo": "john@acme.corp"})


class TestTraceRecorder:
    def test_records_a_run(self):
        recorder = TraceRecorder()
        run_events(recorder)

        trace = recorder.get_trace("t1")
        assert trace.employee_email == "bob.jones@acme.corp"
        assert [s["stage"] for s in trace.stages] == ["classifying", "scoring"]
        assert trace.fuzzy_matches["location"]["matched"] == "Australia"
        assert trace.routing == {
            "assignee": "john@acme.corp",
            "score": 109,
            "reason": "specializes in Sales Contract",
        }
        assert trace.outcome == "assigned"
        assert trace.total_duration_ms is not None

    def test_ring_buffer_evicts_oldest(self):
        recorder = TraceRecorder(max_traces=2)
        for trace_id in ("a", "b", "c"):
            recorder.on_start(trace_id, 1, None)

        assert [t.trace_id for t in recorder.recent()] == ["c", "b"]
        assert recorder.get_trace("a") is None

    def test_recent_limit(self):
        recorder = TraceRecorder()
        for trace_id in ("a", "b", "c"):
            recorder.on_start(trace_id, 1, None)
        assert [t.trace_id for t in recorder.recent(limit=1)] == ["c"]

    def test_errors(self):
        recorder = TraceRecorder()
        recorder.on_start("t1", 1, None)
        recorder.on_error("t1", "extracting", RuntimeError("boom"))
        assert recorder.get_trace("t1").errors == [{"stage": "extracting", "error": "boom"}]

    def test_events_for_unknown_trace_are_ignored(self):
        recorder = TraceRecorder()
        recorder.on_stage("missing", "scoring")
        assert recorder.recent() == []

    def test_clear(self):
        recorder = TraceRecorder()
        run_events(recorder)
        recorder.clear()
        assert recorder.get_trace("t1") is None


class TestMetricsObserver:
    def test_counts_outcomes(self):
        metrics = MetricsObserver()
        run_events(metrics, "t1", "assigned")
        metrics.on_start("t2", 1, None)
        metrics.on_rule_evaluation("t2", 3, "sales-au")
        metrics.on_decision("t2", "assigned", {})
        metrics.on_start("t3", 1, None)
        metrics.on_decision("t3", "document_answered", {})
        metrics.on_start("t4", 1, None)
        metrics.on_rule_evaluation("t4", 3, None)
        metrics.on_decision("t4", "needs_info", {})
        metrics.on_start("t5", 1, None)
        metrics.on_error("t5", "scoring", RuntimeError("boom"))

        assert metrics.snapshot() == {
            "runs_total": 5,
            "assignments_total": 2,
            "dynamic_assignments_total": 1,
            "rule_assignments_total": 1,
            "document_answers_total": 1,
            "info_requests_total": 1,
            "failures_total": 1,
        }


class TestCompositeObserver:
    def test_fans_out_and_isolates_failures(self):
        class Broken(ITriageObserver):
            def on_start(self, trace_id, message_count, employee_email):
                raise RuntimeError("broken")

        recorder = TraceRecorder()
        metrics = MetricsObserver()
        composite = CompositeObserver([Broken(), recorder, metrics])

        run_events(composite)

        assert recorder.get_trace("t1").outcome == "assigned"
        assert metrics.snapshot()["runs_total"] == 1

    def test_base_observer_is_a_no_op(self):
        run_events(ITriageObserver())


class TestLoggingObserver:
    def test_logs_decision(self, caplog):
        with caplog.at_level(logging.INFO, logger="legal_triage.shared.infrastructure.observability"):
            run_events(LoggingObserver())

        messages = [record.getMessage() for record in caplog.records]
        assert "Triage run started" in messages
        assert "Triage run completed" in messages
        completed = next(r for r in caplog.records if r.getMessage() == "Triage run completed")
        assert completed.outcome == "assigned"
