"""Workspace to GitHub repository resolution."""
from __future__ import annotations

from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from activity_tracker import git
from activity_tracker.logger import get_logger

logger = get_logger(__name__)

RemoteLister = Callable[[str], Awaitable[List[str]]]
UrlLister = Callable[[str, str], Awaitable[List[str]]]


class RepositoryResolver:
    """Resolve and memoize the browsable repository URL of each workspace.

    The first SSH GitHub remote found wins. Workspaces without one are cached
    as ``None`` so they are never probed again. A cancelled resolution leaves
    the cache untouched.
    """

    def __init__(
        self,
        list_remotes: Optional[RemoteLister] = None,
        get_remote_urls: Optional[UrlLister] = None,
        timeout: Optional[float] = None,
    ):
        self._known: Dict[str, Optional[str]] = {}
        self._timeout = timeout
        self._list_remotes = list_remotes or self._git_remotes
        self._get_remote_urls = get_remote_urls or self._git_remote_urls

    async def _git_remotes(self, cwd: str) -> List[str]:
        return await git.list_remotes(cwd, timeout=self._timeout)

    async def _git_remote_urls(self, cwd: str, remote: str) -> List[str]:
        return await git.get_remote_urls(cwd, remote, timeout=self._timeout)

    def cached(self, workspace: str) -> Tuple[bool, Optional[str]]:
        """Return ``(hit, value)`` without touching git."""
        if workspace in self._known:
            return True, self._known[workspace]
        return False, None

    async def _first_github_remote(self, cwd: str) -> Optional[Tuple[str, str]]:
        """Scan remotes in git's order; return ``(remote, repository)`` or None."""
        try:
            remotes = await self._list_remotes(cwd)
        except Exception as e:
            logger.warning(f"[repo] Get Git remotes in {cwd}: {e}")
            return None

        for remote in remotes:
            try:
                urls = await self._get_remote_urls(cwd, remote)
            except Exception as e:
                logger.warning(f"[repo] Get GitHub URL for {remote} in {cwd}: {e}")
                continue
            for url in urls:
                repository = git.normalize_github_remote(url)
                if repository:
                    return remote, repository
        return None

    async def resolve(self, workspace: str, active_file: str) -> Optional[str]:
        hit, value = self.cached(workspace)
        if hit:
            logger.info(f"[repo] {value} (looked up from cache)")
            return value

        cwd = str(Path(active_file).parent)
        repository: Optional[str] = None
        found = await self._first_github_remote(cwd)
        if found:
            remote, repository = found
            logger.info(f"[repo] {workspace}: {repository} (remote {remote})")

        self._known[workspace] = repository
        if repository is None:
            logger.info(f"[repo] No GitHub remote for workspace {workspace}")
        return repository
