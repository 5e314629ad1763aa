"""Pydantic model for runtime settings."""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_HOOK_TIMEOUT_SECONDS = 30.0
DEFAULT_RESERVE_TOKENS = 16384
DEFAULT_SUMMARY_MAX_TOKENS = 2048
DEFAULT_CONTEXT_WINDOW = 128000


class Settings(BaseModel, frozen=True):
    """Runtime configuration loaded from environment variables."""

    hook_timeout_seconds: float = Field(default=DEFAULT_HOOK_TIMEOUT_SECONDS, gt=0)
    branch_summary_reserve_tokens: int = Field(default=DEFAULT_RESERVE_TOKENS, ge=0)
    branch_summary_max_tokens: int = Field(default=DEFAULT_SUMMARY_MAX_TOKENS, gt=0)
    default_context_window: int = Field(default=DEFAULT_CONTEXT_WINDOW, gt=0)
    session_storage_dir: str = ".data/sessions"


def _env_number(name: str, default: str, cast: type[int] | type[float]) -> int | float:
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError:
        msg = f"{name} must be a number, got {raw!r}"
        raise ValueError(msg) from None


def load_settings() -> Settings:
    """Load settings from environment variables with defaults."""
    load_dotenv()

    return Settings(
        hook_timeout_seconds=_env_number(
            "HOOK_TIMEOUT_SECONDS", str(DEFAULT_HOOK_TIMEOUT_SECONDS), float
        ),
        branch_summary_reserve_tokens=_env_number(
            "BRANCH_SUMMARY_RESERVE_TOKENS", str(DEFAULT_RESERVE_TOKENS), int
        ),
        branch_summary_max_tokens=_env_number(
            "BRANCH_SUMMARY_MAX_TOKENS", str(DEFAULT_SUMMARY_MAX_TOKENS), int
        ),
        default_context_window=_env_number(
            "DEFAULT_CONTEXT_WINDOW", str(DEFAULT_CONTEXT_WINDOW), int
        ),
        session_storage_dir=os.getenv("SESSION_STORAGE_DIR", ".data/sessions"),
    )
