"""OpenTelemetry spans for hook dispatch and summarization.

Spans are no-ops unless the host application installs a tracer provider.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from opentelemetry import trace as otel_trace
from opentelemetry.trace import Status, StatusCode, format_trace_id

if TYPE_CHECKING:
    from collections.abc import Iterator

    from opentelemetry.trace import Span

TRACER_NAME = "agent_session"


@contextmanager
def traced(name: str, attributes: dict[str, Any] | None = None) -> Iterator[Span]:
    """Run the block inside a span, recording any exception that escapes it."""
    tracer = otel_trace.get_tracer(TRACER_NAME)
    with tracer.start_as_current_span(
        name, attributes=attributes or {}, record_exception=False, set_status_on_exception=False
    ) as span:
        try:
            yield span
        except BaseException as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            span.record_exception(exc)
            raise


def get_current_trace_id() -> str | None:
    """Get the current OpenTelemetry trace ID if available."""
    ctx = otel_trace.get_current_span().get_span_context()
    if ctx.trace_id == 0:
        return None
    return format_trace_id(ctx.trace_id)
