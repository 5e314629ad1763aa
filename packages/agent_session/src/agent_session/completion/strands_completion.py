"""Completion function backed by a Strands model's event stream."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from strands.types.content import ContentBlock, Message, Messages

from agent_session.completion.models import (
    CompletionOptions,
    CompletionRequest,
    CompletionResponse,
    ModelInfo,
)
from agent_session.messages import get_text_content

if TYPE_CHECKING:
    from strands.models.model import Model

logger = logging.getLogger(__name__)


def to_strands_messages(messages: list[dict[str, Any]]) -> Messages:
    """Convert user/assistant messages to Strands ``Messages`` (text blocks only)."""
    converted: Messages = []
    for message in messages:
        role = message.get("role")
        if role not in ("user", "assistant"):
            continue
        text = get_text_content(message.get("content"))
        if text:
            converted.append(Message(role=role, content=[ContentBlock(text=text)]))
    return converted


class StrandsCompletion:
    """Adapt a Strands ``Model`` to the completion protocol.

    The adapter owns its model instance: ``max_tokens`` is applied through
    ``update_config`` before each call. Credentials are part of the Strands
    model configuration, so ``options.api_key`` is not used.
    """

    def __init__(self, model: Model) -> None:
        self._model = model

    async def __call__(
        self,
        model: ModelInfo,
        request: CompletionRequest,
        options: CompletionOptions,
    ) -> CompletionResponse:
        if options.max_tokens is not None:
            self._model.update_config(max_tokens=options.max_tokens)
        messages = to_strands_messages(request.messages)
        signal = options.signal
        if signal is not None and signal.cancelled:
            return CompletionResponse(stop_reason="aborted")

        consume = asyncio.ensure_future(self._collect(messages, request.system_prompt))
        if signal is None:
            return await self._finish(consume, model)

        waiter = asyncio.ensure_future(signal.wait())
        try:
            await asyncio.wait({consume, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            consume.cancel()
            raise
        finally:
            waiter.cancel()
        if not consume.done():
            consume.cancel()
            logger.debug("Completion for %s aborted", model.model_id)
            return CompletionResponse(stop_reason="aborted")
        return await self._finish(consume, model)

    async def _finish(self, consume: asyncio.Future[str], model: ModelInfo) -> CompletionResponse:
        try:
            text = await consume
        except Exception as exc:  # noqa: BLE001 - provider failures become error responses
            logger.warning("Completion with %s failed: %s", model.model_id, exc)
            return CompletionResponse(stop_reason="error", error_message=str(exc))
        return CompletionResponse(stop_reason="ok", content=[{"type": "text", "text": text}])

    async def _collect(self, messages: Messages, system_prompt: str | None) -> str:
        chunks: list[str] = []
        async for event in self._model.stream(messages, None, system_prompt):
            delta = event.get("contentBlockDelta", {}).get("delta", {})
            text = delta.get("text")
            if text:
                chunks.append(text)
        return "".join(chunks)
