"""CLI entry point: argparse dispatcher for all subcommands."""
from __future__ import annotations

import argparse
import json
import sys
import traceback


# ---------------------------------------------------------------------------
# Command registry: command name → (module_path, function_name)
# Lazy-imported at dispatch time to keep startup fast.
# ---------------------------------------------------------------------------
COMMANDS = {
    "watch":    ("cli.commands.watch",    "cmd_watch"),
    "snapshot": ("cli.commands.snapshot", "cmd_snapshot"),
}


# ---------------------------------------------------------------------------
# Shared argparse helpers
# ---------------------------------------------------------------------------
def _add_context_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--context-file", help="Editor context JSON file (overrides ACTIVITY_TRACKER_CONTEXT_FILE)")
    p.add_argument("--env-file", help="Load environment variables from this .env file")
    p.add_argument("--json-logs", action="store_true", help="Emit log lines as JSON")


# ---------------------------------------------------------------------------
# Parser builder
# ---------------------------------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    from cli._version import __version__

    parser = argparse.ArgumentParser(
        prog="activity-tracker",
        description="Developer activity reporter that posts the current editing context to a collector",
    )
    parser.add_argument("--debug", action="store_true", help="Show stack traces on error")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    # watch
    p = sub.add_parser("watch", help="Poll the editor context and report changes (daemon)")
    _add_context_args(p)
    p.add_argument("--target", help="Collector URL (overrides ACTIVITY_TRACKER_TARGET)")
    p.add_argument("--token", help="Bearer token (overrides ACTIVITY_TRACKER_TOKEN)")
    p.add_argument("-i", "--interval", type=float, help="Poll interval in seconds (default: 2)")
    p.add_argument("--max-ticks", type=int, help="Stop after this many ticks")

    # snapshot
    p = sub.add_parser("snapshot", help="Print the payload the next report would send")
    _add_context_args(p)

    return parser


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------
def main() -> None:
    parser = build_parser()
    argv = sys.argv[1:]
    debug = False
    if "--debug" in argv:
        debug = True
        argv = [arg for arg in argv if arg != "--debug"]
    args = parser.parse_args(argv)
    args.debug = bool(debug or getattr(args, "debug", False))

    entry = COMMANDS.get(args.command)
    if not entry:
        parser.print_help()
        sys.exit(1)

    mod_path, fn_name = entry
    try:
        import importlib
        mod = importlib.import_module(mod_path)
        fn = getattr(mod, fn_name)
        fn(args)
    except KeyboardInterrupt:
        sys.exit(130)
    except Exception as exc:
        json.dump({"ok": False, "error": str(exc)}, sys.stdout, default=str)
        sys.stdout.write("\n")
        if args.debug:
            traceback.print_exc(file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
