#!/usr/bin/env python3
"""
config.py - Environment-based configuration and constants for the activity tracker.

Values come from the process environment, after an optional ``.env`` file has
been loaded. CLI flags override whatever is found here.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

from activity_tracker.logger import ConfigurationError, get_logger, safe_bool, safe_float

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
DEFAULT_INTERVAL_SECS = 2.0
DEFAULT_HTTP_TIMEOUT_SECS = 30.0
DEFAULT_GIT_TIMEOUT_SECS = 10.0
DEFAULT_CONTEXT_FILE = Path.home() / ".activity-tracker" / "context.json"

# Half-height of the text window reported around the cursor
VIEW_RADIUS = 5


# ---------------------------------------------------------------------------
# File extension to language mapping
# ---------------------------------------------------------------------------
CODE_EXTS: Dict[str, str] = {
    # Core languages
    ".py": "python",
    ".js": "javascript",
    ".ts": "typescript",
    ".tsx": "typescriptreact",
    ".jsx": "javascriptreact",
    ".java": "java",
    ".go": "go",
    ".rs": "rust",
    ".rb": "ruby",
    ".php": "php",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".kt": "kotlin",
    ".swift": "swift",
    ".scala": "scala",
    # Shell/scripting
    ".sh": "shellscript",
    ".ps1": "powershell",
    ".pl": "perl",
    ".lua": "lua",
    # Data/config
    ".sql": "sql",
    ".md": "markdown",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".toml": "toml",
    ".ini": "ini",
    ".json": "json",
    ".xml": "xml",
    # Web
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".scss": "scss",
    ".vue": "vue",
    ".svelte": "svelte",
}

# Files matched by name (no extension or special names)
NAMED_FILES: Dict[str, str] = {
    "Dockerfile": "dockerfile",
    "Makefile": "makefile",
}

PLAINTEXT = "plaintext"


def language_for_path(path: str) -> str:
    """Guess an editor language tag from a file name."""
    p = Path(path)
    if p.name in NAMED_FILES:
        return NAMED_FILES[p.name]
    return CODE_EXTS.get(p.suffix, CODE_EXTS.get(p.suffix.lower(), PLAINTEXT))


# ---------------------------------------------------------------------------
# Runtime configuration
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class TrackerConfig:
    """Settings needed to run the poller."""

    target: Optional[str]
    token: Optional[str]
    interval: float = DEFAULT_INTERVAL_SECS
    http_timeout: Optional[float] = DEFAULT_HTTP_TIMEOUT_SECS
    git_timeout: Optional[float] = DEFAULT_GIT_TIMEOUT_SECS
    context_file: Path = DEFAULT_CONTEXT_FILE
    json_logs: bool = False

    @property
    def reporting_enabled(self) -> bool:
        return bool(self.token) and bool(self.target)

    def require_credentials(self) -> None:
        """Raise ConfigurationError unless both target and token are present."""
        if not self.token:
            raise ConfigurationError("No token found (set ACTIVITY_TRACKER_TOKEN)")
        if not self.target:
            raise ConfigurationError("No target found (set ACTIVITY_TRACKER_TARGET)")

    def with_overrides(self, **overrides) -> "TrackerConfig":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _optional_timeout(raw: Optional[str], default: float, context: str) -> Optional[float]:
    value = safe_float(raw, default, logger=logger, context=context)
    return value if value > 0 else None


def _env_str(key: str) -> Optional[str]:
    val = (os.environ.get(key) or "").strip()
    return val or None


def load_config(env_file: Optional[str] = None) -> TrackerConfig:
    """Load tracker configuration from the environment.

    A ``.env`` file is read first (without overriding variables that are
    already set). ``ACTIVITY_TRACKER_ENV_FILE`` selects a different file.
    """
    env_path = env_file or os.environ.get("ACTIVITY_TRACKER_ENV_FILE")
    if env_path:
        load_dotenv(env_path, override=False)
    else:
        load_dotenv(override=False)

    interval = safe_float(
        os.environ.get("ACTIVITY_TRACKER_INTERVAL"),
        DEFAULT_INTERVAL_SECS,
        logger=logger,
        context="ACTIVITY_TRACKER_INTERVAL",
    )
    if interval <= 0:
        logger.warning(f"Ignoring non-positive poll interval {interval}; using {DEFAULT_INTERVAL_SECS}")
        interval = DEFAULT_INTERVAL_SECS

    context_file = _env_str("ACTIVITY_TRACKER_CONTEXT_FILE")

    return TrackerConfig(
        target=_env_str("ACTIVITY_TRACKER_TARGET"),
        token=_env_str("ACTIVITY_TRACKER_TOKEN"),
        interval=interval,
        http_timeout=_optional_timeout(
            os.environ.get("ACTIVITY_TRACKER_TIMEOUT"),
            DEFAULT_HTTP_TIMEOUT_SECS,
            "ACTIVITY_TRACKER_TIMEOUT",
        ),
        git_timeout=_optional_timeout(
            os.environ.get("ACTIVITY_TRACKER_GIT_TIMEOUT"),
            DEFAULT_GIT_TIMEOUT_SECS,
            "ACTIVITY_TRACKER_GIT_TIMEOUT",
        ),
        context_file=Path(context_file).expanduser() if context_file else DEFAULT_CONTEXT_FILE,
        json_logs=safe_bool(
            os.environ.get("ACTIVITY_TRACKER_LOG_JSON"),
            False,
            logger=logger,
            context="ACTIVITY_TRACKER_LOG_JSON",
        ),
    )
