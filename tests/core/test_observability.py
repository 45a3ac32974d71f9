"""Tests for StructuredLogger and the tracer implementations."""

import logging

from gomind_ai.observability import (
    NoOpSpan,
    NoOpTracer,
    RecordingTracer,
    Span,
    StructuredLogger,
    Tracer,
)


class TestStructuredLogger:
    def test_fields_attached_to_record(self, caplog):
        logger = StructuredLogger("gomind_ai.test")
        with caplog.at_level(logging.INFO, logger="gomind_ai.test"):
            logger.info("AI request", {"operation": "ai_request", "prompt_length": 5})
        record = caplog.records[0]
        assert record.fields == {"operation": "ai_request", "prompt_length": 5}
        assert record.getMessage() == "AI request operation=ai_request prompt_length=5"

    def test_bind_returns_new_logger(self):
        base = StructuredLogger("gomind_ai.test")
        bound = base.bind(provider="anthropic")
        assert bound.fields == {"provider": "anthropic"}
        assert base.fields == {}
        assert bound.name == base.name

    def test_call_fields_override_bound_fields(self, caplog):
        logger = StructuredLogger("gomind_ai.test").bind(provider="anthropic", model="x")
        with caplog.at_level(logging.INFO, logger="gomind_ai.test"):
            logger.info("msg", {"model": "y"})
        assert caplog.records[0].fields == {"provider": "anthropic", "model": "y"}

    def test_values_with_spaces_are_quoted(self, caplog):
        logger = StructuredLogger("gomind_ai.test")
        with caplog.at_level(logging.INFO, logger="gomind_ai.test"):
            logger.info("msg", {"error": "connection reset"})
        assert "error='connection reset'" in caplog.records[0].getMessage()

    def test_levels(self, caplog):
        logger = StructuredLogger("gomind_ai.test")
        with caplog.at_level(logging.DEBUG, logger="gomind_ai.test"):
            logger.debug("d")
            logger.info("i")
            logger.warn("w")
            logger.error("e")
        assert [r.levelno for r in caplog.records] == [
            logging.DEBUG,
            logging.INFO,
            logging.WARNING,
            logging.ERROR,
        ]

    def test_disabled_level_is_skipped(self, caplog):
        logger = StructuredLogger("gomind_ai.test")
        with caplog.at_level(logging.WARNING, logger="gomind_ai.test"):
            logger.info("hidden")
        assert caplog.records == []


class TestTracers:
    def test_noop_satisfies_protocols(self):
        tracer = NoOpTracer()
        assert isinstance(tracer, Tracer)
        span = tracer.start_span("x")
        assert isinstance(span, NoOpSpan)
        assert isinstance(span, Span)
        span.set_attribute("k", 1)
        span.record_error(ValueError("e"))
        span.end()

    def test_recording_tracer_keeps_finished_spans(self):
        tracer = RecordingTracer()
        span = tracer.start_span("ai.generate_response")
        span.set_attribute("ai.provider", "anthropic")
        assert tracer.finished == []
        span.end()
        span.end()
        assert len(tracer.finished) == 1
        assert tracer.finished[0].ended
        assert tracer.finished[0].status == "ok"
        assert tracer.spans_named("ai.generate_response")[0].attributes == {"ai.provider": "anthropic"}

    def test_child_span_inherits_trace(self):
        tracer = RecordingTracer()
        parent = tracer.start_span("parent")
        child = tracer.start_span("child", parent=parent)
        assert child.trace_id == parent.trace_id
        assert child.parent_span_id == parent.span_id

    def test_record_error_marks_status(self):
        tracer = RecordingTracer()
        span = tracer.start_span("x")
        span.record_error(RuntimeError("boom"))
        span.end()
        data = span.to_dict()
        assert data["status"] == "error"
        assert data["errors"] == ["RuntimeError: boom"]

    def test_clear(self):
        tracer = RecordingTracer()
        tracer.start_span("x").end()
        tracer.clear()
        assert tracer.finished == []
