"""Plain-text rendering of hook messages with fallback for failing renderers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from agent_session.hooks.types import RenderOptions
from agent_session.messages import get_text_content

if TYPE_CHECKING:
    from agent_session.hooks.types import HookMessageRenderer

logger = logging.getLogger(__name__)

COLLAPSED_LINES = 5


def default_hook_message_text(message: dict[str, Any], expanded: bool = False) -> str:
    """Render ``[custom_type]`` followed by the message text.

    Collapsed output keeps the first five lines and appends ``...``.
    """
    text = get_text_content(message.get("content"), separator="\n")
    if not expanded:
        lines = text.split("\n")
        if len(lines) > COLLAPSED_LINES:
            text = "\n".join(lines[:COLLAPSED_LINES]) + "\n..."
    return f"[{message.get('customType', '')}]\n\n{text}"


def render_hook_message(
    message: dict[str, Any],
    renderer: HookMessageRenderer | None = None,
    expanded: bool = False,
    theme: Any = None,
) -> Any:
    """Render a hook message, preferring the hook's own renderer.

    A renderer that raises or returns None falls back to the default text.
    """
    if renderer is not None:
        try:
            rendered = renderer(message, RenderOptions(expanded=expanded), theme)
        except Exception:  # noqa: BLE001 - renderer bugs must not break the transcript
            logger.warning("Renderer for %s failed", message.get("customType"), exc_info=True)
        else:
            if rendered is not None:
                return rendered
    return default_hook_message_text(message, expanded=expanded)
