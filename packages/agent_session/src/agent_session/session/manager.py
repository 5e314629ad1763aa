"""Append-only JSONL session store with a movable leaf pointer."""

from __future__ import annotations

import json
import logging
import secrets
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING, Any

from agent_session.session.models import (
    BranchSummaryEntry,
    CompactionEntry,
    CustomEntry,
    CustomMessageEntry,
    LabelEntry,
    ModelChangeEntry,
    SessionEntryBase,
    SessionHeader,
    SessionMessageEntry,
    ThinkingLevelChangeEntry,
)
from agent_session.utils import utc_timestamp

if TYPE_CHECKING:
    from agent_session.config import Settings

logger = logging.getLogger(__name__)

SESSION_VERSION = 3
SESSION_FILE_EMPTY = "Session file is empty"
UNKNOWN_ENTRY_ID = "Unknown entry id"
DUPLICATE_ENTRY_ID = "Duplicate entry id"

ENTRY_TYPE_MAP: dict[str, type[SessionEntryBase]] = {
    "message": SessionMessageEntry,
    "custom_message": CustomMessageEntry,
    "branch_summary": BranchSummaryEntry,
    "compaction": CompactionEntry,
    "thinking_level_change": ThinkingLevelChangeEntry,
    "model_change": ModelChangeEntry,
    "custom": CustomEntry,
    "label": LabelEntry,
}

# snake_case field -> camelCase key on disk
_FIELD_ALIASES: dict[str, str] = {
    "parent_id": "parentId",
    "custom_type": "customType",
    "from_id": "fromId",
    "from_hook": "fromHook",
    "first_kept_entry_id": "firstKeptEntryId",
    "tokens_before": "tokensBefore",
    "model_id": "modelId",
    "thinking_level": "thinkingLevel",
    "target_id": "targetId",
    "parent_session": "parentSession",
}
_KEY_ALIASES = {value: key for key, value in _FIELD_ALIASES.items()}


def _new_id() -> str:
    return secrets.token_hex(4)


def _to_disk(data: dict[str, Any]) -> dict[str, Any]:
    renamed = {_FIELD_ALIASES.get(key, key): value for key, value in data.items()}
    return {k: v for k, v in renamed.items() if v is not None or k == "parentId"}


def _from_disk(raw: dict[str, Any]) -> dict[str, Any]:
    return {_KEY_ALIASES.get(key, key): value for key, value in raw.items()}


def _deserialize_entry(raw: dict[str, Any]) -> SessionEntryBase:
    normalized = _from_disk(raw)
    normalized.setdefault("parent_id", None)
    entry_type = normalized.get("type")
    entry_cls = ENTRY_TYPE_MAP.get(entry_type or "")
    if entry_cls is None:
        msg = f"Unknown session entry type: {entry_type!r}"
        raise ValueError(msg)
    return entry_cls(**normalized)


class SessionManager:
    """Tree-structured session persisted as one JSON object per line.

    Entries are never rewritten; branching moves the leaf pointer and the next
    append becomes a child of the new leaf.
    """

    def __init__(self, path: Path, header: SessionHeader) -> None:
        self._path = path
        self._header = header
        self._entries: dict[str, SessionEntryBase] = {}
        self._order: list[str] = []
        self._leaf_id: str | None = None

    @classmethod
    def create(
        cls, path: str | Path, cwd: str | None = None, parent_session: str | None = None
    ) -> SessionManager:
        """Create a new session file and manager."""
        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        header = SessionHeader(
            type="session",
            version=SESSION_VERSION,
            id=_new_id(),
            timestamp=utc_timestamp(),
            cwd=cwd,
            parent_session=parent_session,
        )
        file_path.write_text(json.dumps(_to_disk(header.to_dict())) + "\n", encoding="utf-8")
        return cls(file_path, header)

    @classmethod
    def from_settings(cls, settings: Settings, cwd: str | None = None) -> SessionManager:
        """Create a new session file under the configured storage directory."""
        directory = Path(settings.session_storage_dir)
        stamp = utc_timestamp().replace(":", "-")
        return cls.create(directory / f"{stamp}_{_new_id()}.jsonl", cwd=cwd)

    @classmethod
    def open(cls, path: str | Path) -> SessionManager:
        """Open an existing session file; the last entry becomes the leaf."""
        file_path = Path(path)
        lines = file_path.read_text(encoding="utf-8").splitlines()
        if not lines:
            raise ValueError(SESSION_FILE_EMPTY)
        header = SessionHeader(**_from_disk(json.loads(lines[0])))
        manager = cls(file_path, header)
        for line in lines[1:]:
            if not line.strip():
                continue
            entry = _deserialize_entry(json.loads(line))
            manager._entries[entry.id] = entry
            manager._order.append(entry.id)
            manager._leaf_id = entry.id
        logger.debug("Opened session %s with %d entries", file_path, len(manager._order))
        return manager

    @property
    def header(self) -> SessionHeader:
        return self._header

    @property
    def path(self) -> Path:
        return self._path

    def get_entries(self) -> list[SessionEntryBase]:
        """Return entries in insertion order."""
        return [self._entries[entry_id] for entry_id in self._order]

    def get_entry(self, entry_id: str) -> SessionEntryBase | None:
        return self._entries.get(entry_id)

    def get_leaf_id(self) -> str | None:
        return self._leaf_id

    def get_children(self, parent_id: str | None) -> list[SessionEntryBase]:
        """Return child entries of ``parent_id`` in insertion order."""
        return [entry for entry in self.get_entries() if entry.parent_id == parent_id]

    def get_path(self, entry_id: str | None = None) -> list[SessionEntryBase]:
        """Return entries from ``entry_id`` (default: the leaf) up to the root."""
        current_id = entry_id or self._leaf_id
        path: list[SessionEntryBase] = []
        while current_id is not None:
            entry = self._entries.get(current_id)
            if entry is None:
                break
            path.append(entry)
            current_id = entry.parent_id
        return path

    def branch(self, entry_id: str) -> None:
        """Move the leaf pointer to an existing entry."""
        if entry_id not in self._entries:
            raise ValueError(UNKNOWN_ENTRY_ID)
        self._leaf_id = entry_id

    def branch_with_summary(
        self,
        entry_id: str,
        summary: str,
        details: dict[str, Any] | None = None,
        from_hook: bool | None = None,
    ) -> str:
        """Move the leaf to ``entry_id`` and record a summary of the branch left behind."""
        from_id = self._leaf_id
        if from_id is None:
            raise ValueError(UNKNOWN_ENTRY_ID)
        self.branch(entry_id)
        return self.append_branch_summary(summary, from_id, details=details, from_hook=from_hook)

    def append_message(
        self,
        message: dict[str, Any],
        *,
        entry_id: str | None = None,
        parent_id: str | None = None,
    ) -> str:
        """Append a message entry and return its id."""
        entry = SessionMessageEntry(
            type="message",
            id=entry_id or _new_id(),
            parent_id=parent_id if parent_id is not None else self._leaf_id,
            timestamp=utc_timestamp(),
            message=message,
        )
        return self._append_entry(entry)

    def append_custom_message(
        self, custom_type: str, content: Any, display: bool, details: Any = None
    ) -> str:
        entry = CustomMessageEntry(
            type="custom_message",
            id=_new_id(),
            parent_id=self._leaf_id,
            timestamp=utc_timestamp(),
            custom_type=custom_type,
            content=content,
            display=display,
            details=details,
        )
        return self._append_entry(entry)

    def append_branch_summary(
        self,
        summary: str,
        from_id: str,
        details: dict[str, Any] | None = None,
        from_hook: bool | None = None,
    ) -> str:
        entry = BranchSummaryEntry(
            type="branch_summary",
            id=_new_id(),
            parent_id=self._leaf_id,
            timestamp=utc_timestamp(),
            summary=summary,
            from_id=from_id,
            details=details,
            from_hook=from_hook,
        )
        return self._append_entry(entry)

    def append_compaction(
        self,
        summary: str,
        first_kept_entry_id: str,
        tokens_before: int,
        details: dict[str, Any] | None = None,
        from_hook: bool | None = None,
    ) -> str:
        entry = CompactionEntry(
            type="compaction",
            id=_new_id(),
            parent_id=self._leaf_id,
            timestamp=utc_timestamp(),
            summary=summary,
            first_kept_entry_id=first_kept_entry_id,
            tokens_before=tokens_before,
            details=details,
            from_hook=from_hook,
        )
        return self._append_entry(entry)

    def append_thinking_level_change(self, thinking_level: str) -> str:
        entry = ThinkingLevelChangeEntry(
            type="thinking_level_change",
            id=_new_id(),
            parent_id=self._leaf_id,
            timestamp=utc_timestamp(),
            thinking_level=thinking_level,
        )
        return self._append_entry(entry)

    def append_model_change(self, provider: str, model_id: str) -> str:
        entry = ModelChangeEntry(
            type="model_change",
            id=_new_id(),
            parent_id=self._leaf_id,
            timestamp=utc_timestamp(),
            provider=provider,
            model_id=model_id,
        )
        return self._append_entry(entry)

    def append_custom_entry(self, custom_type: str, data: dict[str, Any] | None = None) -> str:
        entry = CustomEntry(
            type="custom",
            id=_new_id(),
            parent_id=self._leaf_id,
            timestamp=utc_timestamp(),
            custom_type=custom_type,
            data=data,
        )
        return self._append_entry(entry)

    def append_label_change(self, target_id: str, label: str | None) -> str:
        if target_id not in self._entries:
            raise ValueError(UNKNOWN_ENTRY_ID)
        entry = LabelEntry(
            type="label",
            id=_new_id(),
            parent_id=self._leaf_id,
            timestamp=utc_timestamp(),
            target_id=target_id,
            label=label,
        )
        return self._append_entry(entry)

    def _append_entry(self, entry: SessionEntryBase) -> str:
        if entry.id in self._entries:
            raise ValueError(DUPLICATE_ENTRY_ID)
        # Disk first: a failed write must leave the tree unchanged.
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(_to_disk(asdict(entry))) + "\n")
        self._entries[entry.id] = entry
        self._order.append(entry.id)
        self._leaf_id = entry.id
        return entry.id
