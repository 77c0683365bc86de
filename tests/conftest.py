import asyncio
import os
import sys
from pathlib import Path
from typing import Dict, List

import pytest

# Ensure repository root is on sys.path so `import activity_tracker...` works locally
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from activity_tracker.editor import Cursor, StaticEditor, TextDocument  # noqa: E402
from activity_tracker.git import IgnoreStatus  # noqa: E402


_TRACKER_ENV_KEYS = (
    "ACTIVITY_TRACKER_TARGET",
    "ACTIVITY_TRACKER_TOKEN",
    "ACTIVITY_TRACKER_INTERVAL",
    "ACTIVITY_TRACKER_TIMEOUT",
    "ACTIVITY_TRACKER_GIT_TIMEOUT",
    "ACTIVITY_TRACKER_CONTEXT_FILE",
    "ACTIVITY_TRACKER_LOG_JSON",
)


@pytest.fixture(autouse=True)
def _isolate_tracker_env(monkeypatch, tmp_path):
    """Keep developer ACTIVITY_TRACKER_* settings and .env files out of tests."""
    keys = {k for k in os.environ if k.startswith("ACTIVITY_TRACKER_")} | set(_TRACKER_ENV_KEYS)
    for key in keys:
        # setenv first so teardown also removes values loaded from .env files
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    monkeypatch.setenv("ACTIVITY_TRACKER_ENV_FILE", str(tmp_path / "missing.env"))
    yield


def make_document(path="/src/proj/app.py", lines=20, language="python"):
    text = "".join(f"line {i}\n" for i in range(lines))
    return TextDocument(path, text, language)


def make_editor(workspace="proj", path="/src/proj/app.py", lines=20, line=0, col=0):
    return StaticEditor(workspace, make_document(path, lines), Cursor(line, col))


class FakeIgnoreChecker:
    """Records calls and answers from a per-path table."""

    def __init__(self, answers: Dict[str, IgnoreStatus] = None, default=IgnoreStatus.NOT_IGNORED, delay=0.0):
        self.answers = answers or {}
        self.default = default
        self.delay = delay
        self.calls: List[str] = []

    async def __call__(self, path: str) -> IgnoreStatus:
        self.calls.append(path)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.answers.get(path, self.default)


class FakeGit:
    """Stand-in for `git remote` / `git remote get-url --all`."""

    def __init__(self, remotes: Dict[str, List[str]] = None, delay=0.0):
        self.remotes = remotes or {}
        self.delay = delay
        self.remote_calls: List[str] = []
        self.url_calls: List[str] = []

    async def list_remotes(self, cwd: str) -> List[str]:
        self.remote_calls.append(cwd)
        if self.delay:
            await asyncio.sleep(self.delay)
        return list(self.remotes)

    async def get_remote_urls(self, cwd: str, remote: str) -> List[str]:
        self.url_calls.append(remote)
        if self.delay:
            await asyncio.sleep(self.delay)
        urls = self.remotes[remote]
        if isinstance(urls, Exception):
            raise urls
        return list(urls)

    @property
    def total_calls(self) -> int:
        return len(self.remote_calls) + len(self.url_calls)
