from __future__ import annotations

import asyncio
from typing import Any

import pytest
from agent_session.cancellation import CancellationToken
from agent_session.completion import (
    CompletionOptions,
    CompletionRequest,
    ModelInfo,
    StrandsCompletion,
)
from agent_session.completion.strands_completion import to_strands_messages
from strands.types.content import ContentBlock, Message

MODEL = ModelInfo(provider="bedrock", model_id="test-model")


class _FakeModel:
    """Minimal stand-in exposing the parts of strands Model the adapter uses."""

    def __init__(self, chunks: list[str] | None = None, error: Exception | None = None):
        self.chunks = chunks or []
        self.error = error
        self.config: dict[str, Any] = {}
        self.streamed: list[tuple[Any, Any, Any]] = []
        self.release = asyncio.Event()
        self.hang = False
        self.cancelled = False

    def update_config(self, **model_config: Any) -> None:
        self.config.update(model_config)

    async def stream(self, messages, tool_specs=None, system_prompt=None, **kwargs):
        self.streamed.append((messages, tool_specs, system_prompt))
        yield {"messageStart": {"role": "assistant"}}
        if self.hang:
            try:
                await self.release.wait()
            except asyncio.CancelledError:
                self.cancelled = True
                raise
        if self.error is not None:
            raise self.error
        for chunk in self.chunks:
            yield {"contentBlockDelta": {"delta": {"text": chunk}}}
        yield {"messageStop": {"stopReason": "end_turn"}}


def _request() -> CompletionRequest:
    return CompletionRequest(
        messages=[{"role": "user", "content": [{"type": "text", "text": "Summarize"}]}],
        system_prompt="Be brief.",
    )


def test_to_strands_messages_keeps_text_of_chat_roles() -> None:
    converted = to_strands_messages(
        [
            {"role": "user", "content": "plain"},
            {"role": "assistant", "content": [{"type": "text", "text": "reply"}]},
            {"role": "toolResult", "content": [{"type": "text", "text": "skipped"}]},
            {"role": "user", "content": []},
        ]
    )

    assert converted == [
        {"role": "user", "content": [{"text": "plain"}]},
        {"role": "assistant", "content": [{"text": "reply"}]},
    ]
    assert converted[0] == Message(role="user", content=[ContentBlock(text="plain")])


@pytest.mark.asyncio
async def test_completion_collects_streamed_text() -> None:
    model = _FakeModel(chunks=["Key ", "decisions"])
    complete = StrandsCompletion(model)

    response = await complete(MODEL, _request(), CompletionOptions(max_tokens=256))

    assert response.stop_reason == "ok"
    assert response.text == "Key decisions"
    assert model.config == {"max_tokens": 256}
    messages, tool_specs, system_prompt = model.streamed[0]
    assert messages == [{"role": "user", "content": [{"text": "Summarize"}]}]
    assert tool_specs is None
    assert system_prompt == "Be brief."


@pytest.mark.asyncio
async def test_provider_failure_becomes_error_response() -> None:
    complete = StrandsCompletion(_FakeModel(error=RuntimeError("throttled")))

    response = await complete(MODEL, _request(), CompletionOptions(signal=CancellationToken()))

    assert response.stop_reason == "error"
    assert response.error_message == "throttled"


@pytest.mark.asyncio
async def test_already_cancelled_signal_skips_call() -> None:
    model = _FakeModel(chunks=["never"])
    signal = CancellationToken()
    signal.cancel("user")

    response = await StrandsCompletion(model)(MODEL, _request(), CompletionOptions(signal=signal))

    assert response.stop_reason == "aborted"
    assert model.streamed == []


@pytest.mark.asyncio
async def test_cancel_during_stream_aborts() -> None:
    model = _FakeModel(chunks=["late"])
    model.hang = True
    signal = CancellationToken()
    complete = StrandsCompletion(model)

    task = asyncio.ensure_future(complete(MODEL, _request(), CompletionOptions(signal=signal)))
    await asyncio.sleep(0.01)
    signal.cancel("escape")
    response = await task

    assert response.stop_reason == "aborted"
    assert response.content == []


@pytest.mark.asyncio
async def test_caller_cancellation_stops_stream() -> None:
    model = _FakeModel(chunks=["late"])
    model.hang = True
    complete = StrandsCompletion(model)

    task = asyncio.ensure_future(
        complete(MODEL, _request(), CompletionOptions(signal=CancellationToken()))
    )
    await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    await asyncio.sleep(0.01)

    assert model.cancelled is True
