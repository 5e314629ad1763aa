"""Utilities for branch summarization."""

from __future__ import annotations

import json
import math
from typing import Any

from agent_session.compaction.models import FileOperations
from agent_session.messages import get_text_content

# Images are counted as a fixed number of characters.
IMAGE_CHARS = 4800

_FILE_TOOLS = {"read": "read", "write": "written", "edit": "edited"}


def estimate_tokens(text: str) -> int:
    """Rough token estimate using 4 chars per token heuristic."""
    if not text:
        return 0
    return math.ceil(len(text) / 4)


def _content_chars(content: Any) -> int:
    if isinstance(content, str):
        return len(content)
    if not isinstance(content, list):
        return 0
    chars = 0
    for block in content:
        if not isinstance(block, dict):
            continue
        block_type = block.get("type")
        if block_type == "text":
            chars += len(str(block.get("text", "")))
        elif block_type == "thinking":
            chars += len(str(block.get("thinking", "")))
        elif block_type == "toolCall":
            chars += len(str(block.get("name", "")))
            chars += len(json.dumps(block.get("arguments") or {}))
        elif block_type == "image":
            chars += IMAGE_CHARS
    return chars


def estimate_message_tokens(message: dict[str, Any]) -> int:
    """Estimate token usage for a single conversational message."""
    role = message.get("role")
    if role in ("branchSummary", "compactionSummary"):
        chars = len(message.get("summary", ""))
    elif role == "bashExecution":
        chars = len(message.get("command", "")) + len(message.get("output", ""))
    else:
        chars = _content_chars(message.get("content"))
    return math.ceil(chars / 4)


def extract_file_ops_from_message(message: dict[str, Any], file_ops: FileOperations) -> None:
    """Record read/write/edit tool calls of an assistant message into ``file_ops``."""
    if message.get("role") != "assistant":
        return
    content = message.get("content")
    if not isinstance(content, list):
        return
    for block in content:
        if not isinstance(block, dict) or block.get("type") != "toolCall":
            continue
        target = _FILE_TOOLS.get(block.get("name", ""))
        args = block.get("arguments")
        if target is None or not isinstance(args, dict):
            continue
        path = args.get("path")
        if isinstance(path, str) and path:
            getattr(file_ops, target).add(path)


def format_file_operations(file_ops: FileOperations) -> str:
    """Format file operations as the section appended to a summary.

    Returns an empty string when no files were touched.
    """
    sections: list[str] = []
    read_only = file_ops.read_files
    if read_only:
        sections.append("<read-files>\n" + "\n".join(read_only) + "\n</read-files>")
    modified = file_ops.modified_files
    if modified:
        sections.append("<modified-files>\n" + "\n".join(modified) + "\n</modified-files>")
    if not sections:
        return ""
    return "\n\n" + "\n\n".join(sections)


def messages_to_text(messages: list[dict[str, Any]]) -> str:
    """Serialize messages to a ``role: text`` transcript for the summarization prompt."""
    parts: list[str] = []
    for message in messages:
        role = message.get("role")
        if role in ("user", "assistant", "hookMessage"):
            text = get_text_content(message.get("content"))
        elif role == "branchSummary":
            text = f"[Branch summary: {message.get('summary', '')}]"
        elif role == "compactionSummary":
            text = f"[Session summary: {message.get('summary', '')}]"
        else:
            text = ""
        if text:
            parts.append(f"{role}: {text}")
    return "\n\n".join(parts)
