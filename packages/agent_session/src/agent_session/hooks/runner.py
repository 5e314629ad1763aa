"""Hook runner: dispatches events to loaded hooks.

Three dispatch protocols:

- ``emit``: session, agent, turn and tool_result events. Each handler is
  timed out and isolated; errors go to error listeners. A session result with
  ``cancel`` stops dispatch.
- ``emit_tool_call``: no timeout (a handler may wait on the user) and no
  isolation; a result with ``block`` stops dispatch.
- ``emit_context``: timed out and isolated; handlers are chained, each
  receiving the messages produced by the previous one.

Handlers return a result dataclass (``SessionEventResult`` and friends), a
mapping with the same field names, or None.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import fields, replace
from typing import TYPE_CHECKING, Any, TypeVar

from agent_session.cancellation import CancellationToken
from agent_session.config.settings import DEFAULT_HOOK_TIMEOUT_SECONDS
from agent_session.errors import HookHandlerError, HookTimeoutError
from agent_session.hooks.types import (
    ContextEvent,
    ContextEventResult,
    HookError,
    HookEventContext,
    HookEventType,
    NoOpUIContext,
    SessionEvent,
    SessionEventResult,
    ToolCallEventResult,
    ToolResultEventResult,
)
from agent_session.telemetry import active_hook, traced
from agent_session.utils import maybe_await

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from agent_session.config import Settings
    from agent_session.hooks.loader import LoadedHook
    from agent_session.hooks.types import (
        AppendEntryHandler,
        HookErrorListener,
        HookEvent,
        HookHandler,
        HookMessageRenderer,
        HookUIContext,
        RegisteredCommand,
        SendMessageHandler,
        ToolCallEvent,
    )
    from agent_session.session import ReadonlySessionTree

logger = logging.getLogger(__name__)

_DEDICATED_PROTOCOLS = {
    HookEventType.TOOL_CALL: "emit_tool_call",
    HookEventType.CONTEXT: "emit_context",
}

# Event kinds whose handler results are returned by ``emit``.
_RESULT_TYPES: dict[HookEventType, type] = {
    HookEventType.SESSION: SessionEventResult,
    HookEventType.TOOL_RESULT: ToolResultEventResult,
}

_ResultT = TypeVar("_ResultT")


def _coerce_result(
    hook: LoadedHook, event_type: HookEventType, value: Any, result_type: type[_ResultT]
) -> _ResultT | None:
    """Normalize a handler's return value to ``result_type``.

    Handlers may return the result dataclass or a plain mapping with the same
    field names; unknown keys are dropped. Anything else is ignored.
    """
    if value is None or isinstance(value, result_type):
        return value
    if isinstance(value, Mapping):
        names = {item.name for item in fields(result_type)}
        return result_type(**{key: item for key, item in value.items() if key in names})
    logger.warning(
        "Hook %s returned unsupported %s result of type %s",
        hook.path,
        event_type.value,
        type(value).__name__,
    )
    return None


def _discard_outcome(task: asyncio.Future[Any]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Timed-out hook handler later failed: %s", exc)


class HookRunner:
    """Long-lived dispatcher for a fixed, ordered set of loaded hooks."""

    def __init__(
        self,
        hooks: list[LoadedHook],
        cwd: str,
        session: ReadonlySessionTree | None = None,
        model_registry: Any = None,
        timeout: float = DEFAULT_HOOK_TIMEOUT_SECONDS,
    ) -> None:
        self._hooks = list(hooks)
        self._cwd = cwd
        self._session = session
        self._model_registry = model_registry
        self._timeout = timeout
        self._ui: HookUIContext = NoOpUIContext()
        self._has_ui = False
        self._error_listeners: list[HookErrorListener] = []
        # Handlers still running after their timeout fired.
        self._abandoned: set[asyncio.Future[Any]] = set()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        hooks: list[LoadedHook],
        cwd: str,
        session: ReadonlySessionTree | None = None,
        model_registry: Any = None,
    ) -> HookRunner:
        """Build a runner using the configured handler timeout."""
        return cls(hooks, cwd, session, model_registry, timeout=settings.hook_timeout_seconds)

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def ui_context(self) -> HookUIContext:
        return self._ui

    @property
    def has_ui(self) -> bool:
        return self._has_ui

    @property
    def hook_paths(self) -> list[str]:
        return [hook.path for hook in self._hooks]

    def set_ui_context(self, ui: HookUIContext, has_ui: bool) -> None:
        """Attach the host UI. Call once the UI mode is initialized."""
        self._ui = ui
        self._has_ui = has_ui

    def set_send_message_handler(self, handler: SendMessageHandler) -> None:
        """Route every hook's ``send_message`` to ``handler``."""
        for hook in self._hooks:
            hook.set_send_message_handler(handler)

    def set_append_entry_handler(self, handler: AppendEntryHandler) -> None:
        """Route every hook's ``append_entry`` to ``handler``."""
        for hook in self._hooks:
            hook.set_append_entry_handler(handler)

    def on_error(self, listener: HookErrorListener) -> Callable[[], None]:
        """Subscribe to hook errors. Returns a function that unsubscribes."""
        self._error_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._error_listeners:
                self._error_listeners.remove(listener)

        return unsubscribe

    def emit_error(self, error: HookError) -> None:
        for listener in list(self._error_listeners):
            listener(error)

    def has_handlers(self, event_type: HookEventType | str) -> bool:
        event_type = HookEventType(event_type)
        return any(hook.handlers.get(event_type) for hook in self._hooks)

    def get_message_renderer(self, custom_type: str) -> HookMessageRenderer | None:
        """Return the first renderer for ``custom_type`` in hook load order."""
        for hook in self._hooks:
            renderer = hook.message_renderers.get(custom_type)
            if renderer is not None:
                return renderer
        return None

    def get_registered_commands(self) -> list[RegisteredCommand]:
        return [command for hook in self._hooks for command in hook.commands.values()]

    def get_command(self, name: str) -> RegisteredCommand | None:
        """Return the first command named ``name`` in hook load order."""
        for hook in self._hooks:
            command = hook.commands.get(name)
            if command is not None:
                return command
        return None

    def _create_context(self, signal: CancellationToken | None = None) -> HookEventContext:
        return HookEventContext(
            ui=self._ui,
            has_ui=self._has_ui,
            cwd=self._cwd,
            session=self._session,
            model_registry=self._model_registry,
            signal=signal or CancellationToken(),
        )

    def _iter_handlers(self, event_type: HookEventType) -> Iterator[tuple[LoadedHook, HookHandler]]:
        """Yield handlers in dispatch order: hook load order, then registration order."""
        for hook in self._hooks:
            for handler in list(hook.handlers.get(event_type, ())):
                yield hook, handler

    async def _run_with_timeout(
        self, handler: HookHandler, event: Any, ctx: HookEventContext
    ) -> Any:
        """Await a handler, giving up after the runner timeout.

        On timeout the handler's signal is cancelled and the handler is left to
        finish on its own; its outcome is discarded.
        """
        signal = CancellationToken()
        task = asyncio.ensure_future(maybe_await(handler(event, replace(ctx, signal=signal))))
        try:
            done, _ = await asyncio.wait({task}, timeout=self._timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if task in done:
            return task.result()
        signal.cancel("timeout")
        self._abandoned.add(task)
        task.add_done_callback(self._abandoned.discard)
        task.add_done_callback(_discard_outcome)
        raise HookTimeoutError(self._timeout)

    def _report(self, hook: LoadedHook, event_type: HookEventType, exc: Exception) -> None:
        timed_out = isinstance(exc, HookTimeoutError)
        message = str(exc) or type(exc).__name__
        if timed_out:
            logger.debug("Hook %s timed out on %s", hook.path, event_type.value)
        else:
            logger.warning("Hook %s failed on %s: %s", hook.path, event_type.value, message)
        error = HookError(
            hook_path=hook.path, event=event_type.value, error=message, timed_out=timed_out
        )
        self.emit_error(error)

    async def emit(self, event: HookEvent) -> SessionEventResult | ToolResultEventResult | None:
        """Emit an event to all hooks.

        Returns the last result returned for a session or tool_result event,
        or the first session result that cancels.
        """
        event_type = event.type
        if event_type in _DEDICATED_PROTOCOLS:
            protocol = _DEDICATED_PROTOCOLS[event_type]
            msg = f"{event_type.value} events must be emitted with {protocol}"
            raise ValueError(msg)

        no_timeout = isinstance(event, SessionEvent) and event.reason == "before_compact"
        result_type = _RESULT_TYPES.get(event_type)
        ctx = self._create_context()
        result: SessionEventResult | ToolResultEventResult | None = None

        with traced("hooks.emit", {"hook.event": event_type.value}):
            for hook, handler in self._iter_handlers(event_type):
                try:
                    with active_hook(hook.path):
                        if no_timeout:
                            handler_result = await maybe_await(handler(event, ctx))
                        else:
                            handler_result = await self._run_with_timeout(handler, event, ctx)
                except Exception as exc:  # noqa: BLE001 - isolate misbehaving hooks
                    self._report(hook, event_type, exc)
                    continue

                if result_type is None:
                    continue
                coerced = _coerce_result(hook, event_type, handler_result, result_type)
                if coerced is None:
                    continue
                result = coerced
                if isinstance(coerced, SessionEventResult) and coerced.cancel:
                    logger.debug("Hook %s cancelled session %s", hook.path, event.reason)
                    return result

        return result

    async def emit_tool_call(
        self, event: ToolCallEvent, signal: CancellationToken | None = None
    ) -> ToolCallEventResult | None:
        """Emit a tool_call event.

        Handler errors are not isolated: they propagate as HookHandlerError so the
        caller can block the tool.
        """
        ctx = self._create_context(signal)
        result: ToolCallEventResult | None = None

        attributes = {"hook.event": "tool_call", "tool.name": event.tool_name}
        with traced("hooks.emit_tool_call", attributes):
            for hook, handler in self._iter_handlers(HookEventType.TOOL_CALL):
                try:
                    with active_hook(hook.path):
                        handler_result = await maybe_await(handler(event, ctx))
                except Exception as exc:
                    raise HookHandlerError(hook.path, HookEventType.TOOL_CALL.value, exc) from exc
                coerced = _coerce_result(
                    hook, HookEventType.TOOL_CALL, handler_result, ToolCallEventResult
                )
                if coerced is None:
                    continue
                result = coerced
                if result.block:
                    logger.debug("Hook %s blocked tool %s", hook.path, event.tool_name)
                    return result

        return result

    async def emit_context(self, messages: list[dict[str, Any]]) -> list[dict[str, Any]] | None:
        """Let hooks rewrite the messages sent to the model.

        Returns the final messages if any handler replaced them, else None.
        """
        ctx = self._create_context()
        current = messages
        modified = False

        with traced("hooks.emit_context", {"hook.event": "context", "messages": len(messages)}):
            for hook, handler in self._iter_handlers(HookEventType.CONTEXT):
                event = ContextEvent(messages=current)
                try:
                    with active_hook(hook.path):
                        handler_result = await self._run_with_timeout(handler, event, ctx)
                except Exception as exc:  # noqa: BLE001 - isolate misbehaving hooks
                    self._report(hook, HookEventType.CONTEXT, exc)
                    continue
                coerced = _coerce_result(
                    hook, HookEventType.CONTEXT, handler_result, ContextEventResult
                )
                if coerced is not None and coerced.messages is not None:
                    current = coerced.messages
                    modified = True

        return current if modified else None
