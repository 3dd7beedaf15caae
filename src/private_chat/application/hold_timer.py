"""Single-shot cancellable timer driven by the running event loop.

Nothing outside the process backs it: if the loop stops, the timer never
fires.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class HoldTimer:
    def __init__(self, delay: float, callback: Callable[[], Awaitable[None]]) -> None:
        self._delay = delay
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        """Arm the timer. An armed timer is restarted from zero."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def reset(self) -> None:
        self.start()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._task = asyncio.create_task(self._run(), name="hold-timer")

    async def _run(self) -> None:
        try:
            await self._callback()
        except Exception:
            logger.exception("Hold timer callback failed")
