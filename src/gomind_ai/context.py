"""
Per-call deadline and cancellation.

A RequestContext travels with one generate() call. It carries an absolute
monotonic deadline, a cancellation flag the caller may set from another
thread, and the span the call is currently running under.
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .observability import Span


class RequestContext:
    """
    Deadline, cancellation signal and current span for one call.

    Cancellation and the deadline are exact during retry waits and are
    checked before every attempt and between response-body chunks. While an
    HTTP exchange is in flight they are approximate: connecting and waiting
    for the first byte cannot be interrupted, and the per-attempt timeout
    bounds each socket operation rather than the whole exchange.

    Example:
        >>> ctx = RequestContext(timeout=5.0)
        >>> threading.Timer(1.0, ctx.cancel).start()
        >>> provider.generate("hello", ctx=ctx)  # raises RequestCanceledError
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
        *,
        deadline: Optional[float] = None,
        span: Optional["Span"] = None,
    ):
        """
        Args:
            timeout: Seconds from now until the deadline. None means no deadline.
            cancel_event: Event to share with other contexts; a fresh one is
                created when omitted.
            deadline: Absolute time.monotonic() deadline; overrides `timeout`.
            span: Span the call is running under.
        """
        if deadline is None and timeout is not None:
            deadline = time.monotonic() + timeout
        self.deadline = deadline
        self.span = span
        self._cancel_event = cancel_event if cancel_event is not None else threading.Event()

    @classmethod
    def background(cls) -> "RequestContext":
        """Context with no deadline and no external cancellation."""
        return cls()

    def with_span(self, span: "Span") -> "RequestContext":
        """Child context sharing this deadline and cancellation signal."""
        return RequestContext(deadline=self.deadline, cancel_event=self._cancel_event, span=span)

    def cancel(self) -> None:
        self._cancel_event.set()

    @property
    def canceled(self) -> bool:
        return self._cancel_event.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline (never negative), or None."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def wait(self, seconds: float) -> bool:
        """
        Sleep for `seconds`, waking early on cancellation.

        The sleep never extends past the deadline.

        Returns:
            True if the context was cancelled before or during the wait.
        """
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        if seconds <= 0:
            return self.canceled
        return self._cancel_event.wait(seconds)


__all__ = ["RequestContext"]
