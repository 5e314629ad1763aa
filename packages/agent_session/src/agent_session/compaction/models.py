"""Models for branch summarization."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from agent_session.config.settings import (
    DEFAULT_CONTEXT_WINDOW,
    DEFAULT_RESERVE_TOKENS,
    DEFAULT_SUMMARY_MAX_TOKENS,
)

if TYPE_CHECKING:
    from agent_session.cancellation import CancellationToken
    from agent_session.completion import ModelInfo
    from agent_session.config import Settings
    from agent_session.session import SessionEntryBase

TokenEstimator = Callable[[dict[str, Any]], int]


@dataclass
class FileOperations:
    """File paths touched by read/write/edit tool calls."""

    read: set[str] = field(default_factory=set)
    written: set[str] = field(default_factory=set)
    edited: set[str] = field(default_factory=set)

    @property
    def modified(self) -> set[str]:
        return self.written | self.edited

    @property
    def read_files(self) -> list[str]:
        """Files read but never written or edited, sorted."""
        return sorted(self.read - self.modified)

    @property
    def modified_files(self) -> list[str]:
        return sorted(self.modified)


@dataclass(frozen=True)
class BranchPreparation:
    """Messages selected for a branch summary.

    Attributes:
        messages: Admitted messages in chronological order.
        file_ops: File operations seen while walking the branch.
        total_tokens: Estimated tokens of the admitted messages.
    """

    messages: list[dict[str, Any]]
    file_ops: FileOperations
    total_tokens: int


@dataclass(frozen=True)
class CollectEntriesResult:
    """Entries abandoned by a navigation, in chronological order."""

    entries: list[SessionEntryBase]
    common_ancestor_id: str | None


@dataclass(frozen=True)
class BranchSummaryResult:
    """Outcome of summarizing a branch. Exactly one of the three outcomes is set."""

    summary: str | None = None
    aborted: bool = False
    error: str | None = None
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class BranchSummaryOptions:
    """Options for ``generate_branch_summary``."""

    model: ModelInfo
    api_key: str | None = None
    signal: CancellationToken | None = None
    custom_instructions: str | None = None
    reserve_tokens: int = DEFAULT_RESERVE_TOKENS
    max_tokens: int = DEFAULT_SUMMARY_MAX_TOKENS
    default_context_window: int = DEFAULT_CONTEXT_WINDOW
    estimator: TokenEstimator | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        model: ModelInfo,
        *,
        api_key: str | None = None,
        signal: CancellationToken | None = None,
        custom_instructions: str | None = None,
    ) -> BranchSummaryOptions:
        """Build options from runtime settings."""
        return cls(
            model=model,
            api_key=api_key,
            signal=signal,
            custom_instructions=custom_instructions,
            reserve_tokens=settings.branch_summary_reserve_tokens,
            max_tokens=settings.branch_summary_max_tokens,
            default_context_window=settings.default_context_window,
        )

    @property
    def token_budget(self) -> int:
        """Context window minus the reserve for prompt and response.

        Never below 1: a budget of 0 would mean "unlimited" to the preparer.
        """
        window = self.model.context_window or self.default_context_window
        return max(window - self.reserve_tokens, 1)
