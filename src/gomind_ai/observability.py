"""
Structured logging and tracing hooks used by the provider clients.

The clients only depend on the small Logger and Tracer surfaces defined here.
StructuredLogger sits on top of the standard `logging` module; tracing is
optional and falls back to a no-op tracer when none is configured.

Example:
    >>> from gomind_ai.observability import RecordingTracer, StructuredLogger
    >>> tracer = RecordingTracer()
    >>> provider = AnthropicProvider(api_key, tracer=tracer)
    >>> provider.generate("hello")
    >>> tracer.finished[0].attributes["ai.total_tokens"]
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

Fields = Mapping[str, Any]


def _render(value: Any) -> str:
    text = str(value)
    if not text or any(ch.isspace() for ch in text) or "=" in text:
        return repr(text)
    return text


class StructuredLogger:
    """
    Logger that attaches a flat map of fields to every record.

    Fields bound with `bind()` are merged under per-call fields; binding
    returns a new logger and never changes the parent. Records expose the
    merged map as `record.fields` for handlers and formatters.
    """

    def __init__(
        self,
        name: str = "gomind_ai",
        fields: Optional[Fields] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._logger = logger if logger is not None else logging.getLogger(name)
        self._fields: Dict[str, Any] = dict(fields or {})

    @property
    def name(self) -> str:
        return self._logger.name

    @property
    def fields(self) -> Dict[str, Any]:
        return dict(self._fields)

    def bind(self, **fields: Any) -> "StructuredLogger":
        return StructuredLogger(fields={**self._fields, **fields}, logger=self._logger)

    def is_enabled_for(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def debug(self, message: str, fields: Optional[Fields] = None) -> None:
        self._log(logging.DEBUG, message, fields)

    def info(self, message: str, fields: Optional[Fields] = None) -> None:
        self._log(logging.INFO, message, fields)

    def warning(self, message: str, fields: Optional[Fields] = None) -> None:
        self._log(logging.WARNING, message, fields)

    warn = warning

    def error(self, message: str, fields: Optional[Fields] = None) -> None:
        self._log(logging.ERROR, message, fields)

    def _log(self, level: int, message: str, fields: Optional[Fields]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        merged = {**self._fields, **(fields or {})}
        rendered = " ".join(f"{key}={_render(merged[key])}" for key in sorted(merged))
        self._logger.log(
            level,
            "%s %s" if rendered else "%s%s",
            message,
            rendered,
            extra={"fields": merged},
        )


# =============================================================================
# Tracing
# =============================================================================


@runtime_checkable
class Span(Protocol):
    """Handle for one traced unit of work."""

    def set_attribute(self, key: str, value: Any) -> None: ...

    def record_error(self, error: BaseException) -> None: ...

    def end(self) -> None: ...


@runtime_checkable
class Tracer(Protocol):
    """Creates spans. Spans are strictly nested inside the call that made them."""

    def start_span(self, name: str, parent: Optional[Span] = None) -> Span: ...


class NoOpSpan:
    """Span that discards everything."""

    def set_attribute(self, key: str, value: Any) -> None:
        pass

    def record_error(self, error: BaseException) -> None:
        pass

    def end(self) -> None:
        pass


class NoOpTracer:
    """Tracer used when tracing is disabled."""

    def start_span(self, name: str, parent: Optional[Span] = None) -> Span:
        return NoOpSpan()


@dataclass
class RecordedSpan:
    """
    In-memory span kept by RecordingTracer.

    Attributes:
        name: Span name.
        span_id: Unique span ID.
        trace_id: Trace ID shared with the parent span.
        parent_span_id: Parent span ID, if nested.
        attributes: Attributes set during the span.
        errors: Errors recorded on the span, in order.
        status: "ok" or "error".
        duration_ms: Wall-clock duration, set on end().
    """

    name: str
    span_id: str
    trace_id: str
    parent_span_id: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    status: str = "ok"
    duration_ms: Optional[float] = None
    _tracer: Optional["RecordingTracer"] = field(default=None, repr=False, compare=False)
    _started: float = field(default_factory=time.monotonic, repr=False, compare=False)

    @property
    def ended(self) -> bool:
        return self.duration_ms is not None

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def record_error(self, error: BaseException) -> None:
        self.status = "error"
        self.errors.append(f"{type(error).__name__}: {error}")

    def end(self) -> None:
        if self.ended:
            return
        self.duration_ms = (time.monotonic() - self._started) * 1000
        if self._tracer is not None:
            self._tracer._finish(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "span_id": self.span_id,
            "trace_id": self.trace_id,
            "parent_span_id": self.parent_span_id,
            "attributes": dict(self.attributes),
            "errors": list(self.errors),
            "status": self.status,
            "duration_ms": self.duration_ms,
        }


class RecordingTracer:
    """Tracer that keeps finished spans in memory."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.finished: List[RecordedSpan] = []

    def start_span(self, name: str, parent: Optional[Span] = None) -> RecordedSpan:
        if isinstance(parent, RecordedSpan):
            trace_id, parent_id = parent.trace_id, parent.span_id
        else:
            trace_id, parent_id = uuid.uuid4().hex, None
        return RecordedSpan(
            name=name,
            span_id=uuid.uuid4().hex[:16],
            trace_id=trace_id,
            parent_span_id=parent_id,
            _tracer=self,
        )

    def _finish(self, span: RecordedSpan) -> None:
        with self._lock:
            self.finished.append(span)

    def spans_named(self, name: str) -> List[RecordedSpan]:
        with self._lock:
            return [span for span in self.finished if span.name == name]

    def clear(self) -> None:
        with self._lock:
            self.finished.clear()


__all__ = [
    "StructuredLogger",
    "Span",
    "Tracer",
    "NoOpSpan",
    "NoOpTracer",
    "RecordedSpan",
    "RecordingTracer",
]
