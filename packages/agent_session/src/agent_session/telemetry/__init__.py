"""Tracing and log correlation."""

from agent_session.telemetry.logging_utils import (
    HookLogContextFilter,
    active_hook,
    get_active_hook,
    install_log_context_filter,
)
from agent_session.telemetry.tracing import get_current_trace_id, traced

__all__ = [
    "HookLogContextFilter",
    "active_hook",
    "get_active_hook",
    "get_current_trace_id",
    "install_log_context_filter",
    "traced",
]
