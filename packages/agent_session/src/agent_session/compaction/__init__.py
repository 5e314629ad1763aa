"""Branch summarization: entry collection, budgeting, and summary generation."""

from agent_session.compaction.branch_summary import (
    BRANCH_SUMMARY_PROMPT,
    NO_CONTENT_SUMMARY,
    collect_entries_for_branch_summary,
    generate_branch_summary,
    get_message_from_entry,
    prepare_branch_entries,
)
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
    estimate_tokens,
    extract_file_ops_from_message,
    format_file_operations,
    messages_to_text,
)

__all__ = [
    "BRANCH_SUMMARY_PROMPT",
    "NO_CONTENT_SUMMARY",
    "BranchPreparation",
    "BranchSummaryOptions",
    "BranchSummaryResult",
    "CollectEntriesResult",
    "FileOperations",
    "TokenEstimator",
    "collect_entries_for_branch_summary",
    "estimate_message_tokens",
    "estimate_tokens",
    "extract_file_ops_from_message",
    "format_file_operations",
    "generate_branch_summary",
    "get_message_from_entry",
    "messages_to_text",
    "prepare_branch_entries",
]
