#!/usr/bin/env python3
"""
Test CLI commands - verify the CLI wires configuration into the pipeline.
"""
from __future__ import annotations

import json
import sys

import pytest

import activity_tracker.git as git_mod
from cli.main import build_parser, main

pytestmark = pytest.mark.unit


def _context(tmp_path, line=0):
    src = tmp_path / "proj" / "app.py"
    src.parent.mkdir(exist_ok=True)
    src.write_text("".join(f"x{i} = {i}\n" for i in range(3)))
    ctx = tmp_path / "context.json"
    ctx.write_text(json.dumps({"workspace": "proj", "file": str(src), "line": line, "column": 1}))
    return ctx, src


def _fake_git(answers):
    async def run(cmd, cwd=None, timeout=None):
        key = cmd[1] if cmd[1] != "remote" or len(cmd) == 2 else "get-url"
        code, stdout = answers.get(key, (1, ""))
        return {"ok": code == 0, "code": code, "stdout": stdout, "stderr": ""}
    return run


class TestParser:
    def test_watch_arguments(self):
        args = build_parser().parse_args(
            ["watch", "--target", "https://c.test", "--token", "t", "-i", "0.5", "--max-ticks", "2"]
        )
        assert args.command == "watch"
        assert args.target == "https://c.test"
        assert args.interval == 0.5
        assert args.max_ticks == 2

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestWatch:
    def test_missing_token_disables_polling(self, tmp_path):
        from cli.commands.watch import EXIT_DISABLED, cmd_watch

        args = build_parser().parse_args(["watch", "--target", "https://c.test", "--context-file", str(tmp_path / "c.json")])
        with pytest.raises(SystemExit) as exc:
            cmd_watch(args)
        assert exc.value.code == EXIT_DISABLED

    def test_runs_poller_with_cli_overrides(self, monkeypatch, tmp_path):
        import cli.commands.watch as watch_mod

        captured = {}

        def fake_run(coro):
            captured["coro"] = coro
            coro.close()

        def fake_from_config(config, editor):
            captured["config"] = config
            captured["editor"] = editor
            return object()

        monkeypatch.setattr(watch_mod, "run_async", fake_run)
        monkeypatch.setattr(watch_mod.Poller, "from_config", staticmethod(fake_from_config))
        monkeypatch.setenv("ACTIVITY_TRACKER_TOKEN", "env-token")

        ctx, _ = _context(tmp_path)
        args = build_parser().parse_args(
            ["watch", "--target", "https://c.test", "-i", "3", "--context-file", str(ctx)]
        )
        watch_mod.cmd_watch(args)

        config = captured["config"]
        assert config.token == "env-token"
        assert config.target == "https://c.test"
        assert config.interval == 3.0
        assert captured["editor"].context_file == ctx


class TestSnapshot:
    def test_prints_payload_with_repository(self, monkeypatch, tmp_path, capsys):
        from cli.commands.snapshot import cmd_snapshot

        monkeypatch.setattr(git_mod, "run_subprocess_async", _fake_git({
            "check-ignore": (1, ""),
            "remote": (0, "origin\n"),
            "get-url": (0, "git@github.com:acme/widgets.git\n"),
        }))
        ctx, src = _context(tmp_path, line=1)

        cmd_snapshot(build_parser().parse_args(["snapshot", "--context-file", str(ctx)]))

        captured = capsys.readouterr().out
        out = json.loads(captured[captured.index("{\n"):])
        assert out["ok"] is True
        assert out["ignored"] is False
        assert out["reporting_enabled"] is False
        assert out["payload"]["repository"] == "https://github.com/acme/widgets"
        assert out["payload"]["fileName"] == str(src)
        assert out["payload"]["row"] == 1
        assert out["payload"]["viewChunk"] == "x0 = 0\nx1 = 1\nx2 = 2\n"

    def test_main_reports_errors_as_json(self, monkeypatch, tmp_path, capsys):
        monkeypatch.setattr(sys, "argv", ["activity-tracker", "snapshot", "--context-file", str(tmp_path / "none.json")])

        with pytest.raises(SystemExit) as exc:
            main()

        assert exc.value.code == 1
        out = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert out["ok"] is False
        assert "no active document" in out["error"]
