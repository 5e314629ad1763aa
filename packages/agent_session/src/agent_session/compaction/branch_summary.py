"""Branch summarization for tree navigation.

When the user moves the session leaf to another point in the tree, the
entries left behind are summarized so their context survives on the new
branch.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from agent_session.compaction.models import (
    BranchPreparation,
    BranchSummaryOptions,
    BranchSummaryResult,
    CollectEntriesResult,
    FileOperations,
    TokenEstimator,
)
from agent_session.compaction.utils import (
    estimate_message_tokens,
    extract_file_ops_from_message,
    format_file_operations,
    messages_to_text,
)
from agent_session.completion import CompletionOptions, CompletionRequest
from agent_session.errors import ProviderAbortedError, ProviderError
from agent_session.messages import (
    create_branch_summary_message,
    create_compaction_summary_message,
    create_hook_message,
)
from agent_session.session import (
    BranchSummaryEntry,
    CompactionEntry,
    CustomMessageEntry,
    SessionMessageEntry,
)
from agent_session.telemetry import traced
from agent_session.utils import utc_timestamp

if TYPE_CHECKING:
    from agent_session.completion import CompletionFn
    from agent_session.session import ReadonlySessionTree, SessionEntryBase

logger = logging.getLogger(__name__)

NO_CONTENT_SUMMARY = "No content to summarize"
NO_SUMMARY_GENERATED = "No summary generated"
SUMMARIZATION_FAILED = "Summarization failed"

# Summaries may still be admitted while the running total is under this share of the budget.
SUMMARY_ADMISSION_RATIO = 0.9

BRANCH_SUMMARY_PROMPT = """\
Summarize this conversation branch concisely for context when returning later:
- Key decisions made and actions taken
- Important context, constraints, or preferences discovered
- Current state and any pending work
- Critical information needed to continue from a different point

Be brief and focused on what matters for future reference."""


def collect_entries_for_branch_summary(
    session: ReadonlySessionTree,
    old_leaf_id: str | None,
    target_id: str,
) -> CollectEntriesResult:
    """Collect the entries left behind when navigating from ``old_leaf_id`` to ``target_id``.

    Walks from the old leaf back to the common ancestor of both positions.
    Compaction and branch-summary entries are collected like any other entry;
    their synopses are context for the new summary.
    """
    if not old_leaf_id:
        return CollectEntriesResult(entries=[], common_ancestor_id=None)

    old_path = {entry.id for entry in session.get_path(old_leaf_id)}
    common_ancestor_id = next(
        (entry.id for entry in session.get_path(target_id) if entry.id in old_path), None
    )

    entries: list[SessionEntryBase] = []
    current: str | None = old_leaf_id
    while current and current != common_ancestor_id:
        entry = session.get_entry(current)
        if entry is None:
            logger.debug("Branch collection stopped at missing entry %s", current)
            break
        entries.append(entry)
        current = entry.parent_id

    entries.reverse()
    return CollectEntriesResult(entries=entries, common_ancestor_id=common_ancestor_id)


def get_message_from_entry(entry: SessionEntryBase) -> dict[str, Any] | None:
    """Return the conversational message carried by an entry, if any."""
    if isinstance(entry, SessionMessageEntry):
        # Tool results are represented by the assistant's tool call.
        if entry.message.get("role") == "toolResult":
            return None
        return entry.message
    if isinstance(entry, CustomMessageEntry):
        return create_hook_message(
            entry.custom_type, entry.content, entry.display, entry.details, entry.timestamp
        )
    if isinstance(entry, BranchSummaryEntry):
        return create_branch_summary_message(entry.summary, entry.from_id, entry.timestamp)
    if isinstance(entry, CompactionEntry):
        return create_compaction_summary_message(
            entry.summary, entry.tokens_before, entry.timestamp
        )
    return None


def prepare_branch_entries(
    entries: list[SessionEntryBase],
    token_budget: int = 0,
    estimator: TokenEstimator | None = None,
) -> BranchPreparation:
    """Select the newest messages that fit in ``token_budget`` (0 = no limit).

    Entries are walked newest to oldest. When the next message would overflow
    the budget, a compaction or branch-summary entry is still admitted if the
    running total is below 90% of the budget; either way the walk stops there.
    """
    estimate = estimator or estimate_message_tokens
    messages: list[dict[str, Any]] = []
    file_ops = FileOperations()
    total_tokens = 0

    for entry in reversed(entries):
        message = get_message_from_entry(entry)
        if message is None:
            continue

        extract_file_ops_from_message(message, file_ops)
        tokens = estimate(message)

        if token_budget > 0 and total_tokens + tokens > token_budget:
            is_summary = isinstance(entry, CompactionEntry | BranchSummaryEntry)
            if is_summary and total_tokens < token_budget * SUMMARY_ADMISSION_RATIO:
                messages.insert(0, message)
                total_tokens += tokens
            break

        messages.insert(0, message)
        total_tokens += tokens

    return BranchPreparation(messages=messages, file_ops=file_ops, total_tokens=total_tokens)


def _file_ops_details(file_ops: FileOperations) -> dict[str, list[str]]:
    return {"read_files": file_ops.read_files, "modified_files": file_ops.modified_files}


async def generate_branch_summary(
    entries: list[SessionEntryBase],
    options: BranchSummaryOptions,
    complete: CompletionFn,
) -> BranchSummaryResult:
    """Summarize abandoned branch entries (chronological) with one completion call.

    Never raises for completion failures: cancellation comes back as
    ``aborted=True`` and failures as ``error``.
    """
    budget = options.token_budget
    preparation = prepare_branch_entries(entries, budget, estimator=options.estimator)
    details = _file_ops_details(preparation.file_ops)

    if not preparation.messages:
        return BranchSummaryResult(summary=NO_CONTENT_SUMMARY, details=details)

    instructions = options.custom_instructions or BRANCH_SUMMARY_PROMPT
    prompt = f"{instructions}\n\nConversation:\n{messages_to_text(preparation.messages)}"
    request = CompletionRequest(
        messages=[
            {
                "role": "user",
                "content": [{"type": "text", "text": prompt}],
                "timestamp": utc_timestamp(),
            }
        ]
    )
    completion_options = CompletionOptions(
        api_key=options.api_key, signal=options.signal, max_tokens=options.max_tokens
    )

    attributes = {
        "model.id": options.model.model_id,
        "branch_summary.messages": len(preparation.messages),
        "branch_summary.tokens": preparation.total_tokens,
        "branch_summary.budget": budget,
    }
    with traced("branch_summary.generate", attributes):
        try:
            response = await complete(options.model, request, completion_options)
        except ProviderAbortedError:
            return BranchSummaryResult(aborted=True)
        except ProviderError as exc:
            logger.warning("Branch summarization failed: %s", exc)
            return BranchSummaryResult(error=str(exc) or SUMMARIZATION_FAILED)
        except Exception as exc:  # noqa: BLE001 - completion functions are external code
            logger.warning("Branch summarization failed: %s", exc, exc_info=True)
            return BranchSummaryResult(error=str(exc) or SUMMARIZATION_FAILED)

    if response.stop_reason == "aborted":
        return BranchSummaryResult(aborted=True)
    if response.stop_reason == "error":
        logger.warning("Branch summarization failed: %s", response.error_message)
        return BranchSummaryResult(error=response.error_message or SUMMARIZATION_FAILED)

    summary = response.text + format_file_operations(preparation.file_ops)
    return BranchSummaryResult(summary=summary or NO_SUMMARY_GENERATED, details=details)
