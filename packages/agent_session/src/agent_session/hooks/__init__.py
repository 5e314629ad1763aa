"""Hook loading and event dispatch.

Hooks are factories that receive a ``HookAPI`` and register handlers for
session, agent, turn, tool and context events. ``HookRunner`` dispatches
events to them in load order.
"""

from agent_session.hooks.api import HookAPI
from agent_session.hooks.loader import (
    HookFactory,
    HookLoadError,
    LoadedHook,
    LoadHooksResult,
    load_hook,
    load_hooks,
)
from agent_session.hooks.rendering import default_hook_message_text, render_hook_message
from agent_session.hooks.runner import HookRunner
from agent_session.hooks.types import (
    AgentEndEvent,
    AgentStartEvent,
    ContextEvent,
    ContextEventResult,
    HookError,
    HookEvent,
    HookEventContext,
    HookEventType,
    HookHandler,
    HookMessageRenderer,
    HookUIContext,
    NoOpUIContext,
    RegisteredCommand,
    RenderOptions,
    SessionEvent,
    SessionEventResult,
    ToolCallEvent,
    ToolCallEventResult,
    ToolResultEvent,
    ToolResultEventResult,
    TurnEndEvent,
    TurnStartEvent,
)

__all__ = [
    "AgentEndEvent",
    "AgentStartEvent",
    "ContextEvent",
    "ContextEventResult",
    "HookAPI",
    "HookError",
    "HookEvent",
    "HookEventContext",
    "HookEventType",
    "HookFactory",
    "HookHandler",
    "HookLoadError",
    "HookMessageRenderer",
    "HookRunner",
    "HookUIContext",
    "LoadHooksResult",
    "LoadedHook",
    "NoOpUIContext",
    "RegisteredCommand",
    "RenderOptions",
    "SessionEvent",
    "SessionEventResult",
    "ToolCallEvent",
    "ToolCallEventResult",
    "ToolResultEvent",
    "ToolResultEventResult",
    "TurnEndEvent",
    "TurnStartEvent",
    "default_hook_message_text",
    "load_hook",
    "load_hooks",
    "render_hook_message",
]
