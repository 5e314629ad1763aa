"""Runtime configuration."""

from agent_session.config.settings import (
    DEFAULT_CONTEXT_WINDOW,
    DEFAULT_HOOK_TIMEOUT_SECONDS,
    DEFAULT_RESERVE_TOKENS,
    DEFAULT_SUMMARY_MAX_TOKENS,
    Settings,
    load_settings,
)

__all__ = [
    "DEFAULT_CONTEXT_WINDOW",
    "DEFAULT_HOOK_TIMEOUT_SECONDS",
    "DEFAULT_RESERVE_TOKENS",
    "DEFAULT_SUMMARY_MAX_TOKENS",
    "Settings",
    "load_settings",
]
