"""Completion call interface and the Strands-backed implementation."""

from agent_session.completion.models import (
    CompletionFn,
    CompletionOptions,
    CompletionRequest,
    CompletionResponse,
    ModelInfo,
    StopReason,
)
from agent_session.completion.strands_completion import StrandsCompletion, to_strands_messages

__all__ = [
    "CompletionFn",
    "CompletionOptions",
    "CompletionRequest",
    "CompletionResponse",
    "ModelInfo",
    "StopReason",
    "StrandsCompletion",
    "to_strands_messages",
]
