"""Log record enrichment for hook dispatch.

Records get two extra attributes usable in format strings: ``trace_id`` (the
active OpenTelemetry trace) and ``hook_path`` (the hook whose handler is
running). Both are ``-`` when unset.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING

from agent_session.telemetry.tracing import get_current_trace_id

if TYPE_CHECKING:
    from collections.abc import Iterator

_active_hook: ContextVar[str | None] = ContextVar("agent_session_active_hook", default=None)


@contextmanager
def active_hook(path: str) -> Iterator[None]:
    """Mark ``path`` as the running hook for code (and tasks) started in the block."""
    token = _active_hook.set(path)
    try:
        yield
    finally:
        _active_hook.reset(token)


def get_active_hook() -> str | None:
    return _active_hook.get()


class HookLogContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = get_current_trace_id() or "-"
        record.hook_path = _active_hook.get() or "-"
        return True


def install_log_context_filter(*targets: logging.Filterer) -> list[logging.Filterer]:
    """Attach ``HookLogContextFilter`` once to each handler or logger.

    Logger filters only see records created on that logger, so handlers are
    the usual target. With no arguments the root logger's handlers are used.
    Returns the objects that were processed.
    """
    chosen: list[logging.Filterer] = list(targets) or list(logging.getLogger().handlers)
    for target in chosen:
        if not any(isinstance(existing, HookLogContextFilter) for existing in target.filters):
            target.addFilter(HookLogContextFilter())
    return chosen
