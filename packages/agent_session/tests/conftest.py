from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from agent_session.completion import CompletionResponse
from agent_session.session import SessionManager

if TYPE_CHECKING:
    from pathlib import Path

_SETTINGS_ENV = (
    "HOOK_TIMEOUT_SECONDS",
    "BRANCH_SUMMARY_RESERVE_TOKENS",
    "BRANCH_SUMMARY_MAX_TOKENS",
    "DEFAULT_CONTEXT_WINDOW",
    "SESSION_STORAGE_DIR",
)


@pytest.fixture(autouse=True)
def _clear_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def session(tmp_path: Path) -> SessionManager:
    return SessionManager.create(tmp_path / "session.jsonl", cwd=str(tmp_path))


class StubCompletion:
    """Completion function that records calls and returns a canned response."""

    def __init__(self) -> None:
        self.response = CompletionResponse(
            stop_reason="ok", content=[{"type": "text", "text": "Summary text"}]
        )
        self.error: Exception | None = None
        self.calls: list[tuple[Any, Any, Any]] = []

    async def __call__(self, model, request, options) -> CompletionResponse:
        self.calls.append((model, request, options))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def completion() -> StubCompletion:
    return StubCompletion()
