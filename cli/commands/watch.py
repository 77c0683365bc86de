"""Watch command: poll the editor context and report activity (daemon mode)."""
from __future__ import annotations

import argparse
import asyncio
import signal
import sys

from activity_tracker.logger import get_logger
from activity_tracker.poller import Poller
from cli.core import get_editor, resolve_config, run_async

logger = get_logger(__name__)

EXIT_DISABLED = 2


async def _run_until_signalled(poller: Poller, max_ticks) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, poller.stop)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no signal handlers; KeyboardInterrupt still works
            pass
    await poller.run(max_ticks=max_ticks)


def cmd_watch(args: argparse.Namespace) -> None:
    """Report editor activity until interrupted."""
    config = resolve_config(args)
    if not config.token:
        logger.error("No token found; activity reporting is disabled")
        sys.exit(EXIT_DISABLED)
    if not config.target:
        logger.error("No target found; activity reporting is disabled")
        sys.exit(EXIT_DISABLED)

    poller = Poller.from_config(config, get_editor(config))
    print(f"Watching {config.context_file} → {config.target} every {config.interval}s", file=sys.stderr)

    try:
        run_async(_run_until_signalled(poller, getattr(args, "max_ticks", None)))
    except KeyboardInterrupt:
        print("\nStopping activity tracker...", file=sys.stderr)
