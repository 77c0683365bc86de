"""Snapshot command: show what the next report would contain."""
from __future__ import annotations

import argparse

from activity_tracker.dispatcher import build_payload
from activity_tracker.ignore_cache import IgnoreCache
from activity_tracker.repository import RepositoryResolver
from activity_tracker.state import capture
from cli.core import get_editor, output_json, resolve_config, run_async


async def _resolve(state, git_timeout):
    ignored = await IgnoreCache(timeout=git_timeout).is_ignored(state.file_name, file_changed=True)
    repository = await RepositoryResolver(timeout=git_timeout).resolve(state.workspace, state.file_name)
    return ignored, repository


def cmd_snapshot(args: argparse.Namespace) -> None:
    """Capture the current editor context once and print it as JSON."""
    config = resolve_config(args)
    editor = get_editor(config)
    editor.refresh()
    state = capture(editor)

    ignored, repository = run_async(_resolve(state, config.git_timeout))
    output_json({
        "ok": True,
        "ignored": ignored,
        "reporting_enabled": config.reporting_enabled,
        "payload": build_payload(state, repository),
    })
