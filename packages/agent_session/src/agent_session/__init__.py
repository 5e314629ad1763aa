"""Session hook dispatch and branch summarization for conversational agents."""

from agent_session.cancellation import CancellationToken
from agent_session.compaction import (
    BranchPreparation,
    BranchSummaryOptions,
    BranchSummaryResult,
    CollectEntriesResult,
    FileOperations,
    collect_entries_for_branch_summary,
    generate_branch_summary,
    get_message_from_entry,
    prepare_branch_entries,
)
from agent_session.completion import (
    CompletionOptions,
    CompletionRequest,
    CompletionResponse,
    ModelInfo,
    StrandsCompletion,
)
from agent_session.config import Settings, load_settings
from agent_session.errors import (
    AgentSessionError,
    HookHandlerError,
    HookTimeoutError,
    ProviderAbortedError,
    ProviderError,
)
from agent_session.hooks import HookAPI, HookRunner, LoadedHook, load_hooks
from agent_session.messages import convert_to_llm
from agent_session.navigation import NavigationResult, navigate_tree
from agent_session.session import SessionManager

__all__ = [
    "AgentSessionError",
    "BranchPreparation",
    "BranchSummaryOptions",
    "BranchSummaryResult",
    "CancellationToken",
    "CollectEntriesResult",
    "CompletionOptions",
    "CompletionRequest",
    "CompletionResponse",
    "FileOperations",
    "HookAPI",
    "HookHandlerError",
    "HookRunner",
    "HookTimeoutError",
    "LoadedHook",
    "ModelInfo",
    "NavigationResult",
    "ProviderAbortedError",
    "ProviderError",
    "SessionManager",
    "Settings",
    "StrandsCompletion",
    "collect_entries_for_branch_summary",
    "convert_to_llm",
    "generate_branch_summary",
    "get_message_from_entry",
    "load_hooks",
    "load_settings",
    "navigate_tree",
    "prepare_branch_entries",
]
