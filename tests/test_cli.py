# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for trackshield.cli — classify and check commands."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from trackshield.cli import build_engine, main
from trackshield.config import ShieldConfig


@pytest.fixture(autouse=True)
def _reset_logging():
    """main() configures logging; restore the root logger afterwards."""
    root = logging.getLogger()
    old_handlers = root.handlers[:]
    old_level = root.level
    yield
    root.handlers = old_handlers
    root.setLevel(old_level)
    structlog.reset_defaults()


@pytest.fixture
def blocklist_file(tmp_path):
    p = tmp_path / "blocklist.json"
    p.write_text(json.dumps({"tracker.example": "advertising", "cdn.example": "cdn"}), encoding="utf-8")
    return p


class TestClassify:
    def test_json_output(self, blocklist_file, capsys):
        main(
            [
                "classify",
                "--blocklist",
                str(blocklist_file),
                "--page",
                "https://news.example.com/",
                "--json",
                "https://tracker.example/pixel.gif",
                "https://cdn.example/app.js",
                "https://unknown.example/x",
            ]
        )
        out = json.loads(capsys.readouterr().out)
        assert out["total"] == 2
        assert out["categories"]["advertising"] == 1
        assert out["categories"]["cdn"] == 1
        assert out["categories"]["analytics"] == 0

    def test_table_output(self, blocklist_file, capsys):
        pytest.importorskip("tabulate")
        main(["classify", "--blocklist", str(blocklist_file), "https://news.example.com/", "https://tracker.example/x"])
        out = capsys.readouterr().out
        lines = out.splitlines()
        assert "Advertising" in lines[2]
        assert "Total: 1" in out

    def test_first_url_is_page_when_page_omitted(self, blocklist_file, capsys):
        main(
            [
                "classify",
                "--blocklist",
                str(blocklist_file),
                "--json",
                "https://tracker.example/landing",
                "https://cdn.example/app.js",
            ]
        )
        out = json.loads(capsys.readouterr().out)
        assert out["total"] == 1
        assert out["categories"]["cdn"] == 1
        assert out["categories"]["advertising"] == 0

    def test_missing_blocklist_exits(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["classify", "--blocklist", str(tmp_path / "missing.json"), "https://a.example/"])
        assert exc_info.value.code == 1
        assert "error:" in capsys.readouterr().err


class TestCheck:
    def test_deny_and_allow(self, capsys):
        main(["check", "--json", "https://example.com/logout", "https://example.com/"])
        captured = capsys.readouterr()
        results = json.loads(captured.out)
        assert results[0] == {"url": "https://example.com/logout", "allow": False, "policy": "automatic_forget_mode"}
        assert results[1]["allow"] is True
        assert "notice:" in captured.err

    def test_whitelist_is_one_shot(self, capsys):
        main(
            [
                "check",
                "--json",
                "--whitelist",
                "https://example.com",
                "https://example.com/logout",
                "https://example.com/logout",
            ]
        )
        results = json.loads(capsys.readouterr().out)
        assert [r["allow"] for r in results] == [True, False]

    def test_extra_pattern(self, capsys):
        main(["check", "--json", "--pattern", r"/bank/", "https://site.example/bank/home"])
        assert json.loads(capsys.readouterr().out)[0]["allow"] is False

    def test_invalid_pattern_exits(self, capsys):
        with pytest.raises(SystemExit):
            main(["check", "--pattern", "(unclosed", "https://a.example/"])
        assert "forget pattern" in capsys.readouterr().err

    def test_repeated_forget_url_denied_each_time(self, capsys):
        main(["check", "--json", "https://example.com/logout", "https://example.com/logout"])
        captured = capsys.readouterr()
        assert [r["allow"] for r in json.loads(captured.out)] == [False, False]
        assert captured.err.count("notice:") == 2

    def test_forget_mode_disabled_by_env(self, monkeypatch, capsys):
        monkeypatch.setenv("TRACKSHIELD_FORGET_MODE", "off")
        main(["check", "https://example.com/logout"])
        assert capsys.readouterr().out.startswith("allow")


class TestBuildEngine:
    def test_config_patterns_are_added(self):
        engine = build_engine(ShieldConfig(forget_patterns=(r"/vault/",)))
        assert engine.evaluate("https://a.example.com/vault/x").allow is False
        assert engine.evaluate("https://a.example.com/logout").allow is False
        assert engine.evaluate("https://a.example.com/").allow is True
