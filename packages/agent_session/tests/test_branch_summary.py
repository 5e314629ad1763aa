from __future__ import annotations

from typing import Any

import pytest
from agent_session.compaction import (
    BranchSummaryOptions,
    FileOperations,
    generate_branch_summary,
    prepare_branch_entries,
)
from agent_session.compaction.branch_summary import (
    BRANCH_SUMMARY_PROMPT,
    NO_CONTENT_SUMMARY,
    NO_SUMMARY_GENERATED,
    SUMMARIZATION_FAILED,
)
from agent_session.compaction.utils import (
    estimate_message_tokens,
    extract_file_ops_from_message,
    format_file_operations,
    messages_to_text,
)
from agent_session.completion import CompletionResponse, ModelInfo
from agent_session.config import Settings
from agent_session.errors import ProviderAbortedError, ProviderError
from agent_session.session import (
    BranchSummaryEntry,
    CompactionEntry,
    CustomEntry,
    SessionEntryBase,
    SessionManager,
    SessionMessageEntry,
)


def _entry(entry_id: str, tokens: int, role: str = "user") -> SessionMessageEntry:
    return SessionMessageEntry(
        type="message",
        id=entry_id,
        parent_id=None,
        timestamp="t",
        message={"role": role, "content": entry_id, "tokens": tokens},
    )


def _branch_summary(entry_id: str, tokens: int) -> BranchSummaryEntry:
    return BranchSummaryEntry(
        type="branch_summary",
        id=entry_id,
        parent_id=None,
        timestamp="t",
        summary="s" * tokens,
        from_id="x",
    )


def _compaction(entry_id: str, tokens: int) -> CompactionEntry:
    return CompactionEntry(
        type="compaction",
        id=entry_id,
        parent_id=None,
        timestamp="t",
        summary="c" * tokens,
        first_kept_entry_id="x",
        tokens_before=1000,
    )


def _estimate(message: dict[str, Any]) -> int:
    if "tokens" in message:
        return message["tokens"]
    return len(message.get("summary", ""))


def _contents(messages: list[dict[str, Any]]) -> list[str]:
    return [message.get("content") or message.get("summary") for message in messages]


def _tool_call(name: str, path: str) -> dict[str, Any]:
    return {"type": "toolCall", "id": f"{name}-{path}", "name": name, "arguments": {"path": path}}


def _model(context_window: int | None = 1000) -> ModelInfo:
    return ModelInfo(provider="test", model_id="test-model", context_window=context_window)


def test_unlimited_budget_keeps_everything_in_order() -> None:
    entries = [_entry("a", 500), _entry("b", 700), _entry("c", 900)]

    preparation = prepare_branch_entries(entries, 0, estimator=_estimate)

    assert _contents(preparation.messages) == ["a", "b", "c"]
    assert preparation.total_tokens == 2100


def test_budget_keeps_newest_and_stops_at_first_overflow() -> None:
    entries = [_entry("a", 10), _entry("b", 60), _entry("c", 50)]

    preparation = prepare_branch_entries(entries, 100, estimator=_estimate)

    # "a" would fit on its own but the walk stops at "b".
    assert _contents(preparation.messages) == ["c"]
    assert preparation.total_tokens == 50


def test_summary_admitted_once_under_ninety_percent() -> None:
    entries = [
        _branch_summary("older", 30),
        _compaction("newer", 30),
        _entry("m1", 40),
        _entry("m2", 45),
    ]

    preparation = prepare_branch_entries(entries, 100, estimator=_estimate)

    assert [message["role"] for message in preparation.messages] == [
        "compactionSummary",
        "user",
        "user",
    ]
    assert preparation.total_tokens == 115


def test_summary_not_admitted_above_ninety_percent() -> None:
    entries = [_branch_summary("old", 30), _entry("m1", 50), _entry("m2", 45)]

    preparation = prepare_branch_entries(entries, 100, estimator=_estimate)

    assert _contents(preparation.messages) == ["m1", "m2"]
    assert preparation.total_tokens == 95


def test_entries_without_messages_are_skipped() -> None:
    tool_result = _entry("result", 10, role="toolResult")
    custom = CustomEntry(type="custom", id="state", parent_id=None, timestamp="t", custom_type="s")

    preparation = prepare_branch_entries([_entry("a", 5), tool_result, custom], 0, _estimate)

    assert _contents(preparation.messages) == ["a"]


def _assistant_calls(*calls: tuple[str, str]) -> dict[str, Any]:
    return {"role": "assistant", "content": [_tool_call(name, path) for name, path in calls]}


def test_file_ops_written_and_read_file_is_only_modified() -> None:
    file_ops = FileOperations()
    extract_file_ops_from_message(_assistant_calls(("read", "a.txt"), ("read", "b.txt")), file_ops)
    extract_file_ops_from_message(_assistant_calls(("write", "a.txt"), ("edit", "c.txt")), file_ops)
    extract_file_ops_from_message(_assistant_calls(("bash", "ignored.txt")), file_ops)
    user_message = {"role": "user", "content": [_tool_call("read", "u.txt")]}
    extract_file_ops_from_message(user_message, file_ops)

    assert file_ops.read_files == ["b.txt"]
    assert file_ops.modified_files == ["a.txt", "c.txt"]
    assert format_file_operations(file_ops) == (
        "\n\n<read-files>\nb.txt\n</read-files>"
        "\n\n<modified-files>\na.txt\nc.txt\n</modified-files>"
    )


def test_format_file_operations_empty() -> None:
    assert format_file_operations(FileOperations()) == ""


def test_file_ops_recorded_for_messages_beyond_budget() -> None:
    entry = SessionMessageEntry(
        type="message",
        id="big",
        parent_id=None,
        timestamp="t",
        message={"role": "assistant", "content": [_tool_call("edit", "big.py")]},
    )

    preparation = prepare_branch_entries([entry], 1, estimator=lambda _message: 10)

    assert preparation.messages == []
    assert preparation.file_ops.modified_files == ["big.py"]


def test_estimate_message_tokens() -> None:
    assert estimate_message_tokens({"role": "user", "content": "abcdefgh"}) == 2
    assert estimate_message_tokens({"role": "user", "content": "abcde"}) == 2
    assert estimate_message_tokens({"role": "branchSummary", "summary": "abcd"}) == 1
    image = {"role": "user", "content": [{"type": "image", "data": "", "mimeType": "image/png"}]}
    assert estimate_message_tokens(image) == 1200
    call = {"role": "assistant", "content": [_tool_call("read", "a.txt")]}
    # "read" + '{"path": "a.txt"}'
    assert estimate_message_tokens(call) == 6


def test_messages_to_text_transcript() -> None:
    text = messages_to_text(
        [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": [{"type": "text", "text": "hello"}]},
            {"role": "branchSummary", "summary": "explored X"},
            {"role": "compactionSummary", "summary": "earlier"},
            {"role": "assistant", "content": [_tool_call("read", "a.txt")]},
        ]
    )

    assert text == (
        "user: hi\n\nassistant: hello\n\n"
        "branchSummary: [Branch summary: explored X]\n\n"
        "compactionSummary: [Session summary: earlier]"
    )


def test_token_budget_from_model_window() -> None:
    assert BranchSummaryOptions(model=_model(1000), reserve_tokens=900).token_budget == 100
    assert BranchSummaryOptions(model=_model(1000), reserve_tokens=5000).token_budget == 1
    options = BranchSummaryOptions(
        model=_model(None), reserve_tokens=100, default_context_window=600
    )
    assert options.token_budget == 500


def test_options_from_settings() -> None:
    settings = Settings(branch_summary_reserve_tokens=10, branch_summary_max_tokens=20)

    options = BranchSummaryOptions.from_settings(settings, _model(), custom_instructions="Focus")

    assert options.reserve_tokens == 10
    assert options.max_tokens == 20
    assert options.custom_instructions == "Focus"


def _conversation(session: SessionManager) -> list[SessionEntryBase]:
    session.append_message({"role": "user", "content": "Please create a.txt"})
    session.append_message(
        {
            "role": "assistant",
            "content": [{"type": "text", "text": "Writing it"}, _tool_call("write", "a.txt")],
        }
    )
    session.append_message(
        {"role": "toolResult", "toolCallId": "write-a.txt", "content": "ok", "isError": False}
    )
    session.append_message({"role": "assistant", "content": [{"type": "text", "text": "Done"}]})
    return session.get_entries()


@pytest.mark.asyncio
async def test_generate_summary_end_to_end(session: SessionManager, completion) -> None:
    entries = _conversation(session)
    options = BranchSummaryOptions(model=_model(1000), reserve_tokens=900)

    result = await generate_branch_summary(entries, options, completion)

    assert result.summary == "Summary text\n\n<modified-files>\na.txt\n</modified-files>"
    assert result.details == {"read_files": [], "modified_files": ["a.txt"]}
    assert not result.aborted
    assert result.error is None

    assert len(completion.calls) == 1
    model, request, call_options = completion.calls[0]
    assert model.model_id == "test-model"
    assert call_options.max_tokens == 2048
    prompt = request.messages[0]["content"][0]["text"]
    assert prompt.startswith(BRANCH_SUMMARY_PROMPT)
    assert "user: Please create a.txt" in prompt
    assert "assistant: Done" in prompt
    assert "toolResult" not in prompt


@pytest.mark.asyncio
async def test_generate_without_admitted_messages_skips_completion(
    session: SessionManager, completion
) -> None:
    session.append_message({"role": "user", "content": "x" * 1000})
    options = BranchSummaryOptions(model=_model(1000), reserve_tokens=900)

    result = await generate_branch_summary(session.get_entries(), options, completion)

    assert result.summary == NO_CONTENT_SUMMARY
    assert completion.calls == []


@pytest.mark.asyncio
async def test_generate_with_no_entries(completion) -> None:
    result = await generate_branch_summary([], BranchSummaryOptions(model=_model()), completion)

    assert result.summary == NO_CONTENT_SUMMARY
    assert completion.calls == []


@pytest.mark.asyncio
async def test_custom_instructions_replace_default_prompt(
    session: SessionManager, completion
) -> None:
    entries = _conversation(session)
    options = BranchSummaryOptions(
        model=_model(None), custom_instructions="Only list decisions."
    )

    await generate_branch_summary(entries, options, completion)

    prompt = completion.calls[0][1].messages[0]["content"][0]["text"]
    assert prompt.startswith("Only list decisions.\n\nConversation:\n")
    assert BRANCH_SUMMARY_PROMPT not in prompt


@pytest.mark.asyncio
async def test_aborted_response_reports_aborted(session: SessionManager, completion) -> None:
    completion.response = CompletionResponse(stop_reason="aborted")

    result = await generate_branch_summary(
        _conversation(session), BranchSummaryOptions(model=_model(None)), completion
    )

    assert result.aborted is True
    assert result.summary is None


@pytest.mark.asyncio
async def test_error_response_reports_error(session: SessionManager, completion) -> None:
    completion.response = CompletionResponse(stop_reason="error", error_message="rate limited")

    result = await generate_branch_summary(
        _conversation(session), BranchSummaryOptions(model=_model(None)), completion
    )

    assert result.error == "rate limited"
    assert result.summary is None


@pytest.mark.asyncio
async def test_error_response_without_message(session: SessionManager, completion) -> None:
    completion.response = CompletionResponse(stop_reason="error")

    result = await generate_branch_summary(
        _conversation(session), BranchSummaryOptions(model=_model(None)), completion
    )

    assert result.error == "Summarization failed"


@pytest.mark.asyncio
async def test_provider_exceptions_become_results(session: SessionManager, completion) -> None:
    entries = _conversation(session)
    options = BranchSummaryOptions(model=_model(None))

    completion.error = ProviderAbortedError("stop")
    aborted = await generate_branch_summary(entries, options, completion)
    completion.error = ProviderError("boom")
    failed = await generate_branch_summary(entries, options, completion)

    assert aborted.aborted is True
    assert failed.error == "boom"


@pytest.mark.asyncio
async def test_unexpected_completion_exceptions_become_results(
    session: SessionManager, completion
) -> None:
    entries = _conversation(session)
    options = BranchSummaryOptions(model=_model(None))

    completion.error = ConnectionError("network down")
    failed = await generate_branch_summary(entries, options, completion)
    completion.error = RuntimeError()
    blank = await generate_branch_summary(entries, options, completion)

    assert failed.error == "network down"
    assert failed.summary is None
    assert blank.error == SUMMARIZATION_FAILED


@pytest.mark.asyncio
async def test_empty_response_text(session: SessionManager, completion) -> None:
    session.append_message({"role": "user", "content": "hello"})
    completion.response = CompletionResponse(stop_reason="ok", content=[])

    result = await generate_branch_summary(
        session.get_entries(), BranchSummaryOptions(model=_model(None)), completion
    )

    assert result.summary == NO_SUMMARY_GENERATED
