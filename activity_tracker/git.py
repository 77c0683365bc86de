"""Version-control queries used by the reporting pipeline.

All calls run ``git`` in the directory of the active file. Nothing here
caches; see ``ignore_cache`` and ``repository`` for the memoized layers.
"""
from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import List, Optional

from activity_tracker.logger import get_logger
from activity_tracker.subprocess_manager import run_subprocess_async

logger = get_logger(__name__)

GITHUB_HTTPS_PREFIX = "https://github.com/"

# git@github.com:OWNER/REPO or git@github.com:OWNER/REPO.git
_GITHUB_SSH_RE = re.compile(r"^git@github\.com:(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+?)(?:\.git)?/?$")


class IgnoreStatus(Enum):
    """Outcome of ``git check-ignore``."""

    IGNORED = "ignored"
    NOT_IGNORED = "not_ignored"
    UNKNOWN = "unknown"

    @classmethod
    def from_exit_code(cls, code: int) -> "IgnoreStatus":
        if code == 0:
            return cls.IGNORED
        if code == 1:
            return cls.NOT_IGNORED
        return cls.UNKNOWN


def _file_dir(path: str) -> str:
    return str(Path(path).parent)


async def check_ignore(path: str, timeout: Optional[float] = None) -> IgnoreStatus:
    """Ask git whether ``path`` is excluded by the repository ignore rules."""
    res = await run_subprocess_async(
        ["git", "check-ignore", "-q", path],
        cwd=_file_dir(path),
        timeout=timeout,
    )
    status = IgnoreStatus.from_exit_code(res["code"])
    if status is IgnoreStatus.UNKNOWN:
        logger.info(f"[git] check-ignore for {path} exited with {res['code']}: {res['stderr'].strip()}")
    return status


async def list_remotes(cwd: str, timeout: Optional[float] = None) -> List[str]:
    """Return configured remote names in git's order; empty on failure."""
    res = await run_subprocess_async(["git", "remote"], cwd=cwd, timeout=timeout)
    if not res["ok"]:
        logger.info(f"[git] Get Git remotes in {cwd}: exit {res['code']}: {res['stderr'].strip()}")
        return []
    return [line.strip() for line in res["stdout"].splitlines() if line.strip()]


async def get_remote_urls(cwd: str, remote: str, timeout: Optional[float] = None) -> List[str]:
    """Return every URL configured for ``remote``; empty on failure."""
    res = await run_subprocess_async(
        ["git", "remote", "get-url", "--all", remote],
        cwd=cwd,
        timeout=timeout,
    )
    if not res["ok"]:
        logger.info(f"[git] Get URL for {remote} in {cwd}: exit {res['code']}: {res['stderr'].strip()}")
        return []
    return [line.strip() for line in res["stdout"].splitlines() if line.strip()]


def normalize_github_remote(url: str) -> Optional[str]:
    """Rewrite an SSH GitHub remote into its browsable HTTPS form.

    >>> normalize_github_remote("git@github.com:acme/widgets.git")
    'https://github.com/acme/widgets'

    Returns None for anything that is not an SSH-style GitHub remote.
    """
    m = _GITHUB_SSH_RE.match((url or "").strip())
    if not m:
        return None
    return f"{GITHUB_HTTPS_PREFIX}{m.group('owner')}/{m.group('repo')}"
