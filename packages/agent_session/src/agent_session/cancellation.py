"""Cooperative cancellation token shared by hooks and completion calls."""

from __future__ import annotations

import asyncio

from agent_session.errors import ProviderAbortedError


class CancellationToken:
    """One-shot cancellation signal.

    Handlers and completion functions poll ``cancelled`` or await ``wait()``
    and stop their own work; nothing is interrupted forcibly.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        """Return True once ``cancel`` has been called."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        """Return the reason passed to ``cancel``, if any."""
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Signal cancellation. Later calls keep the first reason."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        """Raise ProviderAbortedError if the token is cancelled."""
        if self.cancelled:
            msg = self._reason or "Operation cancelled"
            raise ProviderAbortedError(msg)
