"""Conversational message types and the transformer to LLM-compatible messages.

Messages are plain dicts carrying a ``role`` discriminant. The set of roles is
closed (``MessageRole``); roles the model does not understand natively are
converted by transformers registered per role.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal, NotRequired, TypedDict

MessageRole = Literal[
    "user",
    "assistant",
    "toolResult",
    "branchSummary",
    "compactionSummary",
    "hookMessage",
    "bashExecution",
]

LLM_ROLES: frozenset[str] = frozenset({"user", "assistant", "toolResult"})

COMPACTION_SUMMARY_PREFIX = (
    "The conversation history before this point was compacted into the following summary:\n\n"
    "<summary>\n"
)
COMPACTION_SUMMARY_SUFFIX = "\n</summary>"
BRANCH_SUMMARY_PREFIX = (
    "The following is a summary of a branch that this conversation came back from:\n\n"
    "<summary>\n"
)
BRANCH_SUMMARY_SUFFIX = "\n</summary>"


class TextContent(TypedDict):
    type: Literal["text"]
    text: str


class ImageContent(TypedDict):
    type: Literal["image"]
    data: str
    mimeType: str


class ToolCallContent(TypedDict):
    type: Literal["toolCall"]
    id: str
    name: str
    arguments: dict[str, Any]


class ThinkingContent(TypedDict):
    type: Literal["thinking"]
    thinking: str


class HookMessage(TypedDict):
    """Message injected by a hook via ``send_message`` or a custom_message entry."""

    role: Literal["hookMessage"]
    customType: str
    content: str | list[TextContent | ImageContent]
    display: bool
    details: NotRequired[Any]
    timestamp: str


class BranchSummaryMessage(TypedDict):
    role: Literal["branchSummary"]
    summary: str
    fromId: str
    timestamp: str


class CompactionSummaryMessage(TypedDict):
    role: Literal["compactionSummary"]
    summary: str
    tokensBefore: int
    timestamp: str


class BashExecutionMessage(TypedDict):
    """Result of a shell command run directly by the user."""

    role: Literal["bashExecution"]
    command: str
    output: str
    exitCode: int | None
    cancelled: bool
    truncated: bool
    fullOutputPath: NotRequired[str]
    timestamp: str


MessageTransformer = Callable[[dict[str, Any]], dict[str, Any] | None]

_TRANSFORMERS: dict[str, MessageTransformer] = {}


def create_hook_message(
    custom_type: str,
    content: str | list[Any],
    display: bool,
    details: Any,
    timestamp: str,
) -> dict[str, Any]:
    """Build a hookMessage message."""
    message: dict[str, Any] = {
        "role": "hookMessage",
        "customType": custom_type,
        "content": content,
        "display": display,
        "timestamp": timestamp,
    }
    if details is not None:
        message["details"] = details
    return message


def create_branch_summary_message(summary: str, from_id: str, timestamp: str) -> dict[str, Any]:
    """Build a branchSummary message."""
    return {"role": "branchSummary", "summary": summary, "fromId": from_id, "timestamp": timestamp}


def create_compaction_summary_message(
    summary: str, tokens_before: int, timestamp: str
) -> dict[str, Any]:
    """Build a compactionSummary message."""
    return {
        "role": "compactionSummary",
        "summary": summary,
        "tokensBefore": tokens_before,
        "timestamp": timestamp,
    }


def is_hook_message(message: dict[str, Any]) -> bool:
    return message.get("role") == "hookMessage"


def is_bash_execution_message(message: dict[str, Any]) -> bool:
    return message.get("role") == "bashExecution"


def get_text_content(content: Any, separator: str = "") -> str:
    """Join the text blocks of a message content value.

    String content is returned as-is; non-text blocks are ignored.
    """
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""
    return separator.join(
        str(block.get("text", ""))
        for block in content
        if isinstance(block, dict) and block.get("type") == "text"
    )


def bash_execution_to_text(message: dict[str, Any]) -> str:
    """Render a bashExecution message as user-visible text for the model."""
    text = f"Ran `{message.get('command', '')}`\n"
    output = message.get("output")
    text += f"```\n{output}\n```" if output else "(no output)"
    exit_code = message.get("exitCode")
    if message.get("cancelled"):
        text += "\n\n(command cancelled)"
    elif exit_code is not None and exit_code != 0:
        text += f"\n\nCommand exited with code {exit_code}"
    if message.get("truncated") and message.get("fullOutputPath"):
        text += f"\n\n[Output truncated. Full output: {message['fullOutputPath']}]"
    return text


def register_message_transformer(role: str, transformer: MessageTransformer) -> None:
    """Register the LLM transformer for a non-native message role."""
    if role in LLM_ROLES:
        msg = f"Role {role!r} is passed to the model unchanged and cannot be transformed"
        raise ValueError(msg)
    _TRANSFORMERS[role] = transformer


def _user_text(text: str, timestamp: Any) -> dict[str, Any]:
    return {"role": "user", "content": [{"type": "text", "text": text}], "timestamp": timestamp}


def _transform_hook_message(message: dict[str, Any]) -> dict[str, Any]:
    content = message.get("content")
    if isinstance(content, str):
        content = [{"type": "text", "text": content}]
    return {"role": "user", "content": content or [], "timestamp": message.get("timestamp")}


def _transform_bash_execution(message: dict[str, Any]) -> dict[str, Any]:
    return _user_text(bash_execution_to_text(message), message.get("timestamp"))


def _transform_branch_summary(message: dict[str, Any]) -> dict[str, Any]:
    text = BRANCH_SUMMARY_PREFIX + message.get("summary", "") + BRANCH_SUMMARY_SUFFIX
    return _user_text(text, message.get("timestamp"))


def _transform_compaction_summary(message: dict[str, Any]) -> dict[str, Any]:
    text = COMPACTION_SUMMARY_PREFIX + message.get("summary", "") + COMPACTION_SUMMARY_SUFFIX
    return _user_text(text, message.get("timestamp"))


register_message_transformer("hookMessage", _transform_hook_message)
register_message_transformer("bashExecution", _transform_bash_execution)
register_message_transformer("branchSummary", _transform_branch_summary)
register_message_transformer("compactionSummary", _transform_compaction_summary)


def convert_to_llm(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert conversational messages to the roles a model accepts.

    user/assistant/toolResult pass through; other roles go through their
    registered transformer; roles with no transformer are dropped.
    """
    converted: list[dict[str, Any]] = []
    for message in messages:
        role = message.get("role")
        if role in LLM_ROLES:
            converted.append(message)
            continue
        transformer = _TRANSFORMERS.get(role or "")
        if transformer is None:
            continue
        result = transformer(message)
        if result is not None:
            converted.append(result)
    return converted
