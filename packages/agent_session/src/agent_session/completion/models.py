"""Types for the one-shot completion call used by summarization."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Protocol

from pydantic import BaseModel

if TYPE_CHECKING:
    from agent_session.cancellation import CancellationToken

StopReason = Literal["ok", "aborted", "error"]


class ModelInfo(BaseModel, frozen=True):
    """Model metadata needed to budget a summarization prompt."""

    provider: str
    model_id: str
    context_window: int | None = None
    max_tokens: int | None = None


@dataclass(frozen=True)
class CompletionRequest:
    """Messages sent to the model, in LLM roles (user/assistant/toolResult)."""

    messages: list[dict[str, Any]]
    system_prompt: str | None = None


@dataclass(frozen=True)
class CompletionOptions:
    api_key: str | None = None
    signal: CancellationToken | None = None
    max_tokens: int | None = None


@dataclass(frozen=True)
class CompletionResponse:
    """Outcome of a completion call. ``content`` holds typed content blocks."""

    stop_reason: StopReason
    content: list[dict[str, Any]] = field(default_factory=list)
    error_message: str | None = None

    @property
    def text(self) -> str:
        """Text blocks joined with newlines."""
        return "\n".join(
            str(block.get("text", "")) for block in self.content if block.get("type") == "text"
        )


class CompletionFn(Protocol):
    """Async completion call: model + request + options -> response."""

    async def __call__(
        self,
        model: ModelInfo,
        request: CompletionRequest,
        options: CompletionOptions,
    ) -> CompletionResponse: ...
