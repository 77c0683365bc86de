"""Periodic activity polling.

Each tick captures a snapshot and walks it through the gates::

    capture -> changed? -> ignored? -> resolve repository -> report

The poller owns every piece of mutable session state: the last reported
snapshot, the ignore cache, the repository cache and the in-flight pipeline.
A tick that passes the cheap gates cancels the previous tick's pipeline before
starting its own, so at most one report pipeline runs at a time.
"""
from __future__ import annotations

import asyncio
from enum import Enum
from typing import Optional, Set

from activity_tracker.cancellation import SupersedingScope
from activity_tracker.config import TrackerConfig
from activity_tracker.dispatcher import ReportDispatcher
from activity_tracker.editor import EditorContext
from activity_tracker.ignore_cache import IgnoreCache
from activity_tracker.logger import NoActiveDocumentError, get_logger
from activity_tracker.repository import RepositoryResolver
from activity_tracker.state import EMPTY_STATE, State, capture, changed
from activity_tracker.subprocess_manager import cleanup_all_processes

logger = get_logger(__name__)


class TickOutcome(Enum):
    SKIPPED = "skipped"
    UNCHANGED = "unchanged"
    IGNORED = "ignored"
    REPORTED = "reported"
    FAILED = "failed"
    SUPERSEDED = "superseded"


class Poller:
    """Drives the reporting pipeline on a fixed interval."""

    def __init__(
        self,
        editor: EditorContext,
        dispatcher: ReportDispatcher,
        ignore_cache: Optional[IgnoreCache] = None,
        resolver: Optional[RepositoryResolver] = None,
        interval: float = 2.0,
    ):
        self.editor = editor
        self.dispatcher = dispatcher
        self.ignore_cache = ignore_cache or IgnoreCache()
        self.resolver = resolver or RepositoryResolver()
        self.interval = interval
        self.last_state: State = EMPTY_STATE
        self._pipeline = SupersedingScope("pipeline")
        self._ticks: Set[asyncio.Task] = set()
        self._stop: Optional[asyncio.Event] = None

    @classmethod
    def from_config(cls, config: TrackerConfig, editor: EditorContext) -> "Poller":
        config.require_credentials()
        return cls(
            editor,
            ReportDispatcher(config.target, config.token, timeout=config.http_timeout),
            ignore_cache=IgnoreCache(timeout=config.git_timeout),
            resolver=RepositoryResolver(timeout=config.git_timeout),
            interval=config.interval,
        )

    async def tick(self) -> TickOutcome:
        """Run one polling cycle and report what happened."""
        try:
            self.editor.refresh()
            cur = capture(self.editor)
        except NoActiveDocumentError:
            return TickOutcome.SKIPPED

        if not changed(self.last_state, cur):
            return TickOutcome.UNCHANGED

        logger.debug(f"[poll] State changed: {cur.file_name} {cur.row}:{cur.col}")

        if self.ignore_cache.contains(cur.file_name):
            logger.info(f"[poll] {cur.file_name} is ignored (looked up from cache)")
            return TickOutcome.IGNORED

        task = self._pipeline.start(self._report(cur))
        await asyncio.wait({task})
        if task.cancelled():
            logger.debug(f"[poll] Superseded report for {cur.file_name}")
            return TickOutcome.SUPERSEDED
        return task.result()

    async def _report(self, cur: State) -> TickOutcome:
        file_changed = self.last_state.file_name != cur.file_name
        if await self.ignore_cache.is_ignored(cur.file_name, file_changed=file_changed):
            return TickOutcome.IGNORED

        repository = await self.resolver.resolve(cur.workspace, cur.file_name)

        # Committed before the send so a slow report is never repeated
        self.last_state = cur

        ok = await self.dispatcher.dispatch(cur, repository)
        return TickOutcome.REPORTED if ok else TickOutcome.FAILED

    async def _guarded_tick(self) -> Optional[TickOutcome]:
        try:
            return await self.tick()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[poll] Error in polling tick: {e}", exc_info=True)
            return None

    def _spawn_tick(self) -> asyncio.Task:
        task = asyncio.ensure_future(self._guarded_tick())
        self._ticks.add(task)
        task.add_done_callback(self._ticks.discard)
        return task

    async def run(self, max_ticks: Optional[int] = None) -> None:
        """Fire a tick every ``interval`` seconds until ``stop`` is called.

        Ticks are not awaited before the next one fires; overlapping ticks are
        resolved by pipeline cancellation.
        """
        self._stop = asyncio.Event()
        logger.info(f"[poll] Polling every {self.interval}s, reporting to {self.dispatcher.target}")
        fired = 0
        try:
            while not self._stop.is_set():
                self._spawn_tick()
                fired += 1
                if max_ticks is not None and fired >= max_ticks:
                    break
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
                except asyncio.TimeoutError:
                    pass
            if not self._stop.is_set() and self._ticks:
                # Bounded run: let the last ticks finish before shutting down
                await asyncio.gather(*self._ticks, return_exceptions=True)
        finally:
            await self.shutdown()

    def stop(self) -> None:
        if self._stop is not None:
            self._stop.set()

    async def shutdown(self) -> None:
        """Cancel in-flight work and release the HTTP session."""
        ticks = list(self._ticks)
        for task in ticks:
            task.cancel()
        if ticks:
            await asyncio.gather(*ticks, return_exceptions=True)
        await self._pipeline.drain()
        await self.dispatcher.aclose()
        cleanup_all_processes()
        logger.info("[poll] Polling stopped")
