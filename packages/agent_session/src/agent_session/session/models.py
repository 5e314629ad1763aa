"""Session tree entries and the read-only accessor protocol."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Protocol

EntryType = Literal[
    "message",
    "custom_message",
    "branch_summary",
    "compaction",
    "thinking_level_change",
    "model_change",
    "custom",
    "label",
]


@dataclass(frozen=True)
class SessionHeader:
    """Header line of a session JSONL file."""

    type: Literal["session"]
    version: int
    id: str
    timestamp: str
    cwd: str | None = None
    parent_session: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize the header to a JSON-compatible dict."""
        data = asdict(self)
        if data.get("cwd") is None:
            data.pop("cwd")
        if data.get("parent_session") is None:
            data.pop("parent_session")
        return data


@dataclass(frozen=True)
class SessionEntryBase:
    """A node in the session tree. ``parent_id`` is None only at the root."""

    type: EntryType
    id: str
    parent_id: str | None
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize the entry to a JSON-compatible dict."""
        return asdict(self)


@dataclass(frozen=True)
class SessionMessageEntry(SessionEntryBase):
    """Entry holding a role-tagged conversational message."""

    message: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CustomMessageEntry(SessionEntryBase):
    """Entry holding a hook-injected message."""

    custom_type: str
    content: Any
    display: bool
    details: Any = None


@dataclass(frozen=True)
class BranchSummaryEntry(SessionEntryBase):
    """Entry holding the synopsis of a branch the user navigated away from."""

    summary: str
    from_id: str
    details: dict[str, Any] | None = None
    from_hook: bool | None = None


@dataclass(frozen=True)
class CompactionEntry(SessionEntryBase):
    """Entry holding the synopsis of an earlier, compacted part of the branch."""

    summary: str
    first_kept_entry_id: str
    tokens_before: int
    details: dict[str, Any] | None = None
    from_hook: bool | None = None


@dataclass(frozen=True)
class ThinkingLevelChangeEntry(SessionEntryBase):
    thinking_level: str


@dataclass(frozen=True)
class ModelChangeEntry(SessionEntryBase):
    provider: str
    model_id: str


@dataclass(frozen=True)
class CustomEntry(SessionEntryBase):
    """Hook-private state; never sent to the model."""

    custom_type: str
    data: dict[str, Any] | None = None


@dataclass(frozen=True)
class LabelEntry(SessionEntryBase):
    target_id: str
    label: str | None = None


class ReadonlySessionTree(Protocol):
    """Read-only view of a session tree consumed by summarization and hooks."""

    def get_entry(self, entry_id: str) -> SessionEntryBase | None:
        """Return an entry by id, or None if unknown."""
        ...

    def get_path(self, entry_id: str) -> list[SessionEntryBase]:
        """Return the entries from ``entry_id`` up to the root, leaf first."""
        ...

    def get_leaf_id(self) -> str | None:
        """Return the id of the current leaf."""
        ...
