"""Single-slot cancellation scope for superseding in-flight work."""
from __future__ import annotations

import asyncio
from typing import Any, Coroutine, Optional


class SupersedingScope:
    """Holds at most one running task; starting another cancels it first."""

    def __init__(self, name: str = "scope"):
        self.name = name
        self._task: Optional[asyncio.Task] = None

    @property
    def current(self) -> Optional[asyncio.Task]:
        return self._task

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        self.cancel()
        self._task = asyncio.ensure_future(coro)
        return self._task

    def cancel(self) -> bool:
        """Cancel the held task. Returns True when something was running."""
        task, self._task = self._task, None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def drain(self) -> None:
        """Cancel the held task and wait for it to unwind."""
        task = self._task
        self.cancel()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
