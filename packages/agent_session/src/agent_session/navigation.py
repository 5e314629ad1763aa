"""Move the session leaf to another entry, summarizing the branch left behind."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from agent_session.compaction import collect_entries_for_branch_summary, generate_branch_summary
from agent_session.hooks.types import SessionEvent, SessionEventResult
from agent_session.session.manager import UNKNOWN_ENTRY_ID

if TYPE_CHECKING:
    from agent_session.compaction import BranchSummaryOptions
    from agent_session.completion import CompletionFn
    from agent_session.hooks import HookRunner
    from agent_session.session import SessionManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NavigationResult:
    """Outcome of ``navigate_tree``.

    Attributes:
        cancelled: A ``before_tree`` hook cancelled the navigation; the leaf did not move.
        aborted: Summarization was cancelled; the leaf did not move.
        summary_entry_id: Id of the branch-summary entry appended, if any.
        warning: Non-fatal problem to surface to the user (e.g. a failed summary).
    """

    cancelled: bool = False
    aborted: bool = False
    summary_entry_id: str | None = None
    warning: str | None = None


async def navigate_tree(
    session: SessionManager,
    target_id: str,
    *,
    hook_runner: HookRunner | None = None,
    summarize: bool = False,
    summary_options: BranchSummaryOptions | None = None,
    complete: CompletionFn | None = None,
) -> NavigationResult:
    """Move the session leaf to ``target_id``.

    Hooks see a cancellable ``before_tree`` event (and may supply the summary
    themselves) and a ``tree`` event once the leaf has moved. A failed summary
    does not block navigation; it is returned as ``warning``.
    """
    old_leaf_id = session.get_leaf_id()
    if old_leaf_id == target_id:
        return NavigationResult()
    if session.get_entry(target_id) is None:
        raise ValueError(UNKNOWN_ENTRY_ID)
    if summarize and (summary_options is None or complete is None):
        msg = "summarize=True requires summary_options and complete"
        raise ValueError(msg)

    collected = collect_entries_for_branch_summary(session, old_leaf_id, target_id)
    session_file = str(session.path)

    hook_result: SessionEventResult | None = None
    if hook_runner is not None:
        before = SessionEvent(
            reason="before_tree",
            session_file=session_file,
            target_id=target_id,
            old_leaf_id=old_leaf_id,
            entries=collected.entries,
        )
        emitted = await hook_runner.emit(before)
        if isinstance(emitted, SessionEventResult):
            hook_result = emitted
        if hook_result is not None and hook_result.cancel:
            return NavigationResult(cancelled=True)

    summary: str | None = None
    details = None
    from_hook: bool | None = None
    warning: str | None = None
    if hook_result is not None and hook_result.summary:
        summary, details, from_hook = hook_result.summary, hook_result.details, True
    elif summarize and collected.entries:
        generated = await generate_branch_summary(collected.entries, summary_options, complete)
        if generated.aborted:
            return NavigationResult(aborted=True)
        if generated.error:
            warning = f"Branch summary failed: {generated.error}"
            logger.warning("Navigating without branch summary: %s", generated.error)
        else:
            summary, details = generated.summary, generated.details

    summary_entry_id: str | None = None
    if summary:
        summary_entry_id = session.branch_with_summary(
            target_id, summary, details=details, from_hook=from_hook
        )
    else:
        session.branch(target_id)

    if hook_runner is not None:
        after = SessionEvent(
            reason="tree",
            session_file=session_file,
            target_id=target_id,
            old_leaf_id=old_leaf_id,
        )
        await hook_runner.emit(after)

    return NavigationResult(summary_entry_id=summary_entry_id, warning=warning)
