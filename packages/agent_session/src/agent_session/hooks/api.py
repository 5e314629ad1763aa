"""Registration API passed to hook factories."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from agent_session.hooks.types import HookEventType, RegisteredCommand

if TYPE_CHECKING:
    from agent_session.hooks.loader import LoadedHook
    from agent_session.hooks.types import CommandHandler, HookHandler, HookMessageRenderer


class HookAPI:
    """API a hook uses to subscribe to events and call back into the host."""

    def __init__(self, hook: LoadedHook) -> None:
        self._hook = hook

    @property
    def path(self) -> str:
        return self._hook.path

    def on(self, event_type: HookEventType | str, handler: HookHandler) -> None:
        """Register an event handler. Handlers run in registration order."""
        self._hook.handlers.setdefault(HookEventType(event_type), []).append(handler)

    def register_command(self, name: str, description: str, handler: CommandHandler) -> None:
        """Register a command callable by name."""
        self._hook.commands[name] = RegisteredCommand(
            name=name, description=description, handler=handler, hook_path=self._hook.path
        )

    def register_message_renderer(self, custom_type: str, renderer: HookMessageRenderer) -> None:
        """Register a renderer for hook messages of ``custom_type``."""
        self._hook.message_renderers[custom_type] = renderer

    def send_message(self, message: dict[str, Any], trigger_turn: bool = False) -> None:
        """Inject a hookMessage into the conversation through the host."""
        self._hook.send_message(message, trigger_turn)

    def append_entry(self, custom_type: str, data: Any = None) -> None:
        """Persist hook-private state as a custom session entry through the host."""
        self._hook.append_entry(custom_type, data)
