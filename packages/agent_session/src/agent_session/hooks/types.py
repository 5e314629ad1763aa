"""Hook events, results, and the context handed to handlers."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar, Literal, Protocol

if TYPE_CHECKING:
    from agent_session.cancellation import CancellationToken
    from agent_session.session import ReadonlySessionTree


class HookEventType(StrEnum):
    """Event kinds a hook can subscribe to."""

    SESSION = "session"
    AGENT_START = "agent_start"
    AGENT_END = "agent_end"
    TURN_START = "turn_start"
    TURN_END = "turn_end"
    TOOL_CALL = "tool_call"
    TOOL_RESULT = "tool_result"
    CONTEXT = "context"


SessionReason = Literal[
    "start",
    "before_switch",
    "switch",
    "before_new",
    "new",
    "before_branch",
    "branch",
    "before_compact",
    "compact",
    "before_tree",
    "tree",
    "shutdown",
]


@dataclass(frozen=True)
class SessionEvent:
    """Session lifecycle event. ``before_*`` reasons can be cancelled."""

    type: ClassVar[HookEventType] = HookEventType.SESSION

    reason: SessionReason
    session_file: str | None = None
    previous_session_file: str | None = None
    target_id: str | None = None
    old_leaf_id: str | None = None
    entries: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class AgentStartEvent:
    type: ClassVar[HookEventType] = HookEventType.AGENT_START


@dataclass(frozen=True)
class AgentEndEvent:
    type: ClassVar[HookEventType] = HookEventType.AGENT_END

    messages: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class TurnStartEvent:
    type: ClassVar[HookEventType] = HookEventType.TURN_START

    turn_index: int
    timestamp: str


@dataclass(frozen=True)
class TurnEndEvent:
    type: ClassVar[HookEventType] = HookEventType.TURN_END

    turn_index: int
    message: dict[str, Any]
    tool_results: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class ToolCallEvent:
    """Fired before a tool runs; a handler may block it."""

    type: ClassVar[HookEventType] = HookEventType.TOOL_CALL

    tool_name: str
    tool_call_id: str
    input: dict[str, Any]


@dataclass(frozen=True)
class ToolResultEvent:
    """Fired after a tool runs; a handler may replace its output."""

    type: ClassVar[HookEventType] = HookEventType.TOOL_RESULT

    tool_name: str
    tool_call_id: str
    input: dict[str, Any]
    content: list[dict[str, Any]]
    details: Any = None
    is_error: bool = False


@dataclass(frozen=True)
class ContextEvent:
    """Fired before each model call with the messages about to be sent."""

    type: ClassVar[HookEventType] = HookEventType.CONTEXT

    messages: list[dict[str, Any]]


HookEvent = (
    SessionEvent
    | AgentStartEvent
    | AgentEndEvent
    | TurnStartEvent
    | TurnEndEvent
    | ToolCallEvent
    | ToolResultEvent
    | ContextEvent
)


@dataclass(frozen=True)
class SessionEventResult:
    """Result of a session handler.

    ``summary`` lets a ``before_tree`` handler supply the branch summary itself.
    """

    cancel: bool = False
    summary: str | None = None
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class ToolCallEventResult:
    block: bool = False
    reason: str | None = None


@dataclass(frozen=True)
class ToolResultEventResult:
    content: list[dict[str, Any]] | None = None
    details: Any = None
    is_error: bool | None = None


@dataclass(frozen=True)
class ContextEventResult:
    messages: list[dict[str, Any]] | None = None


@dataclass(frozen=True)
class HookError:
    """Failure reported to error listeners."""

    hook_path: str
    event: str
    error: str
    timed_out: bool = False


class CustomUIHandle(Protocol):
    def close(self) -> None: ...

    def request_render(self) -> None: ...


class HookUIContext(Protocol):
    """Interactive surface offered to hooks by the host UI."""

    async def select(self, title: str, options: list[str]) -> str | None: ...

    async def confirm(self, title: str, message: str) -> bool: ...

    async def input(self, title: str, placeholder: str | None = None) -> str | None: ...

    def notify(self, message: str, level: str = "info") -> None: ...

    def custom(self, component: Any) -> CustomUIHandle: ...


class _InertHandle:
    def close(self) -> None:
        return None

    def request_render(self) -> None:
        return None


class NoOpUIContext:
    """UI context used when no UI is attached; every prompt gets a negative answer."""

    async def select(self, title: str, options: list[str]) -> str | None:
        return None

    async def confirm(self, title: str, message: str) -> bool:
        return False

    async def input(self, title: str, placeholder: str | None = None) -> str | None:
        return None

    def notify(self, message: str, level: str = "info") -> None:
        return None

    def custom(self, component: Any) -> CustomUIHandle:
        return _InertHandle()


@dataclass(frozen=True)
class HookEventContext:
    """Host state passed to every handler call. Valid only for that call."""

    ui: HookUIContext
    has_ui: bool
    cwd: str
    session: ReadonlySessionTree | None
    model_registry: Any
    signal: CancellationToken


@dataclass(frozen=True)
class RenderOptions:
    expanded: bool = False


HookHandler = Callable[[Any, HookEventContext], Any | Awaitable[Any]]
HookMessageRenderer = Callable[[dict[str, Any], RenderOptions, Any], Any]
HookErrorListener = Callable[[HookError], None]
SendMessageHandler = Callable[[dict[str, Any], bool], None]
AppendEntryHandler = Callable[[str, Any], None]
CommandHandler = Callable[[str, HookEventContext], Any | Awaitable[Any]]


@dataclass(frozen=True)
class RegisteredCommand:
    """Command registered by a hook."""

    name: str
    description: str
    handler: CommandHandler
    hook_path: str
