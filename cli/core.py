"""Shared helpers for CLI commands."""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from activity_tracker.config import TrackerConfig, load_config
from activity_tracker.editor import ContextFileEditor
from activity_tracker.logger import enable_json_logging


def resolve_config(args: argparse.Namespace) -> TrackerConfig:
    """Resolve settings: CLI flag > environment > default."""
    config = load_config(getattr(args, "env_file", None))
    context_file = getattr(args, "context_file", None)
    config = config.with_overrides(
        target=getattr(args, "target", None),
        token=getattr(args, "token", None),
        interval=getattr(args, "interval", None),
        context_file=Path(context_file).expanduser() if context_file else None,
        json_logs=True if getattr(args, "json_logs", False) else None,
    )
    if config.json_logs:
        enable_json_logging()
    return config


def get_editor(config: TrackerConfig) -> ContextFileEditor:
    return ContextFileEditor(config.context_file)


def output_json(data: Any) -> None:
    """Write JSON to stdout for every command."""
    json.dump(data, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")


def run_async(coro) -> Any:
    """Run an async coroutine from sync CLI context."""
    return asyncio.run(coro)
