"""Tree-based session persistence."""

from agent_session.session.manager import SessionManager
from agent_session.session.models import (
    BranchSummaryEntry,
    CompactionEntry,
    CustomEntry,
    CustomMessageEntry,
    EntryType,
    LabelEntry,
    ModelChangeEntry,
    ReadonlySessionTree,
    SessionEntryBase,
    SessionHeader,
    SessionMessageEntry,
    ThinkingLevelChangeEntry,
)

__all__ = [
    "BranchSummaryEntry",
    "CompactionEntry",
    "CustomEntry",
    "CustomMessageEntry",
    "EntryType",
    "LabelEntry",
    "ModelChangeEntry",
    "ReadonlySessionTree",
    "SessionEntryBase",
    "SessionHeader",
    "SessionManager",
    "SessionMessageEntry",
    "ThinkingLevelChangeEntry",
]
