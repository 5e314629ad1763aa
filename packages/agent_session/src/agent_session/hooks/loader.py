"""Instantiate hooks from factories and hold what each one registered."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from agent_session.hooks.api import HookAPI

if TYPE_CHECKING:
    from agent_session.hooks.types import (
        AppendEntryHandler,
        HookEventType,
        HookHandler,
        HookMessageRenderer,
        RegisteredCommand,
        SendMessageHandler,
    )

logger = logging.getLogger(__name__)

HookFactory = Callable[[HookAPI], None]


@dataclass
class LoadedHook:
    """A hook after its factory ran.

    ``handlers`` maps each event kind to its handlers in registration order.
    """

    path: str
    handlers: dict[HookEventType, list[HookHandler]] = field(default_factory=dict)
    commands: dict[str, RegisteredCommand] = field(default_factory=dict)
    message_renderers: dict[str, HookMessageRenderer] = field(default_factory=dict)
    _send_message_handler: SendMessageHandler | None = field(default=None, repr=False)
    _append_entry_handler: AppendEntryHandler | None = field(default=None, repr=False)

    def set_send_message_handler(self, handler: SendMessageHandler) -> None:
        self._send_message_handler = handler

    def set_append_entry_handler(self, handler: AppendEntryHandler) -> None:
        self._append_entry_handler = handler

    def send_message(self, message: dict[str, Any], trigger_turn: bool) -> None:
        if self._send_message_handler is None:
            logger.warning("Hook %s sent a message before the host attached", self.path)
            return
        self._send_message_handler(message, trigger_turn)

    def append_entry(self, custom_type: str, data: Any) -> None:
        if self._append_entry_handler is None:
            logger.warning("Hook %s appended an entry before the host attached", self.path)
            return
        self._append_entry_handler(custom_type, data)


@dataclass(frozen=True)
class HookLoadError:
    path: str
    error: str


@dataclass(frozen=True)
class LoadHooksResult:
    hooks: list[LoadedHook]
    errors: list[HookLoadError]


def load_hook(path: str, factory: HookFactory) -> LoadedHook:
    """Run a hook factory against a fresh registration API."""
    hook = LoadedHook(path=path)
    factory(HookAPI(hook))
    return hook


def load_hooks(factories: Iterable[tuple[str, HookFactory]]) -> LoadHooksResult:
    """Load hooks in order; a failing factory is recorded and skipped."""
    hooks: list[LoadedHook] = []
    errors: list[HookLoadError] = []
    for path, factory in factories:
        try:
            hooks.append(load_hook(path, factory))
        except Exception as exc:  # noqa: BLE001 - one broken hook must not stop the rest
            logger.warning("Failed to load hook %s: %s", path, exc)
            errors.append(HookLoadError(path=path, error=str(exc)))
    return LoadHooksResult(hooks=hooks, errors=errors)
