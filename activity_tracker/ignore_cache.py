"""Memoized version-control ignore decisions."""
from __future__ import annotations

from typing import Awaitable, Callable, Optional, Set

from activity_tracker import git
from activity_tracker.git import IgnoreStatus
from activity_tracker.logger import get_logger

logger = get_logger(__name__)

IgnoreChecker = Callable[[str], Awaitable[IgnoreStatus]]


class IgnoreCache:
    """Set of paths known to be ignored.

    Entries are never evicted. The external check only runs when the active
    file has just changed, and an UNKNOWN status counts as ignored.
    """

    def __init__(self, checker: Optional[IgnoreChecker] = None, timeout: Optional[float] = None):
        self._ignored: Set[str] = set()
        self._timeout = timeout
        self._checker = checker or self._git_check

    async def _git_check(self, path: str) -> IgnoreStatus:
        return await git.check_ignore(path, timeout=self._timeout)

    def __contains__(self, path: str) -> bool:
        return path in self._ignored

    def __len__(self) -> int:
        return len(self._ignored)

    def contains(self, path: str) -> bool:
        return path in self._ignored

    def add(self, path: str) -> None:
        self._ignored.add(path)

    async def is_ignored(self, path: str, *, file_changed: bool) -> bool:
        if path in self._ignored:
            logger.info(f"[ignore] {path} is ignored (looked up from cache)")
            return True
        if not file_changed:
            return False

        status = await self._checker(path)
        if status is IgnoreStatus.NOT_IGNORED:
            return False

        if status is IgnoreStatus.UNKNOWN:
            logger.warning(f"[ignore] Could not classify {path}; treating it as ignored")
        logger.info(f"[ignore] {path} is ignored")
        self._ignored.add(path)
        return True
