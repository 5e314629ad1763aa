"""Exception types raised by hook dispatch and summarization."""

from __future__ import annotations


class AgentSessionError(Exception):
    """Base class for agent_session errors."""


class HookTimeoutError(AgentSessionError):
    """A hook handler did not settle within its allotted time."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Hook timed out after {round(timeout * 1000)}ms")


class HookHandlerError(AgentSessionError):
    """A hook handler raised while handling an event."""

    def __init__(self, hook_path: str, event: str, cause: BaseException) -> None:
        self.hook_path = hook_path
        self.event = event
        self.cause = cause
        super().__init__(str(cause) or type(cause).__name__)


class ProviderAbortedError(AgentSessionError):
    """The completion call was cancelled before it produced a response."""


class ProviderError(AgentSessionError):
    """The completion provider failed."""
