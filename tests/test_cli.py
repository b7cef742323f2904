"""Integration tests for the claude-usage CLI."""

import json
import os
import subprocess
import sys
import time
from pathlib import Path

import pytest

from claude_usage.cache import FETCH_KEY, SqliteCache
from conftest import usage_payload

ROOT = Path(__file__).resolve().parent.parent


def run_cli(*args: str, stdin: str = "") -> subprocess.CompletedProcess:
    """Run the CLI in a subprocess with the test's isolated environment."""
    env = dict(os.environ, PYTHONPATH=str(ROOT / "python"))
    return subprocess.run(
        [sys.executable, "-m", "claude_usage", *args],
        input=stdin,
        capture_output=True,
        text=True,
        cwd=ROOT,
        env=env,
    )


@pytest.fixture
def config_path(tmp_path) -> Path:
    return tmp_path / "config" / "claude-usage" / "config.toml"


@pytest.fixture
def warm_cache(tmp_path) -> SqliteCache:
    """Seed the fetch cache so rendering needs neither credentials nor network."""
    cache = SqliteCache(tmp_path / "cache" / "claude-usage" / "cache.db")
    cache.store(FETCH_KEY, usage_payload(), now=time.time(), ttl=300)
    return cache


class TestCLIHelp:
    def test_help(self):
        result = run_cli("--help")
        assert result.returncode == 0
        for command in ("statusline", "bar", "cycle", "cache", "model", "config"):
            assert command in result.stdout


class TestCLIStatusline:
    def test_no_credentials(self):
        result = run_cli("statusline", stdin='{"session_id": "abc"}')
        assert result.returncode == 0
        assert result.stdout == "(no claude auth)\n"

    def test_empty_token(self, tmp_path):
        (tmp_path / ".claude").mkdir()
        (tmp_path / ".claude" / ".credentials.json").write_text(
            json.dumps({"claudeAiOauth": {"accessToken": ""}})
        )
        result = run_cli("statusline")
        assert result.stdout == "(no oauth token)\n"

    def test_from_cache(self, warm_cache):
        result = run_cli("statusline", "--style=minimal")
        assert result.returncode == 0
        assert result.stdout == "5h 45% 7d 28% S 0%\n"

    def test_display_flag(self, warm_cache):
        result = run_cli("statusline", "--style=minimal", "--display=7d")
        assert result.stdout == "7d 28%\n"

    def test_persisted_style(self, warm_cache, config_path):
        config_path.parent.mkdir(parents=True)
        config_path.write_text('style = "minimal"\n')
        result = run_cli("statusline")
        assert result.stdout == "5h 45% 7d 28% S 0%\n"


class TestCLIBar:
    def test_no_credentials(self):
        result = run_cli("bar")
        assert result.returncode == 0
        assert json.loads(result.stdout) == {
            "text": "?",
            "tooltip": "Claude credentials not found",
            "class": "error",
        }

    def test_from_cache(self, warm_cache):
        result = run_cli("bar", "--style=minimal")
        payload = json.loads(result.stdout)
        assert payload["text"] == "5h 45% 7d 28% S 0%"
        assert payload["class"] == "normal"
        assert payload["tooltip"].endswith("usage %")


class TestCLICycle:
    def test_style(self, config_path):
        result = run_cli("cycle", "style")
        assert result.returncode == 0
        assert result.stdout == "Style: ascii\n"
        assert 'style = "ascii"' in config_path.read_text()

    def test_display_down(self):
        result = run_cli("cycle", "display", "down")
        assert result.stdout == "Display: minimal\n"

    def test_width_next(self):
        assert run_cli("cycle", "width", "next").stdout == "Width: 10\n"

    def test_status(self):
        run_cli("cycle", "style")
        result = run_cli("cycle", "status")
        assert result.stdout == "style=ascii\ndisplay=all\nwidth=8\n"

    def test_reset(self, config_path):
        run_cli("cycle", "style")
        result = run_cli("cycle", "reset")
        assert result.stdout == "Reset to defaults\n"
        assert not config_path.exists()

    def test_cycle_invalidates_output_cache(self, warm_cache):
        run_cli("statusline", "--style=minimal")
        assert "output:statusline" in warm_cache.entries()
        run_cli("cycle", "style")
        assert list(warm_cache.entries()) == [FETCH_KEY]

    def test_unknown_direction_steps_backward(self):
        result = run_cli("cycle", "style", "sideways")
        assert result.returncode == 0
        assert result.stdout == "Style: minimal\n"

    @pytest.mark.parametrize("args", [(), ("bogus",), ("bogus", "up")])
    def test_invalid_axis(self, args):
        result = run_cli("cycle", *args)
        assert result.returncode == 1
        assert result.stdout.startswith("Usage: claude-usage cycle")


class TestCLICache:
    def test_show(self, warm_cache):
        result = run_cli("cache")
        assert result.returncode == 0
        assert FETCH_KEY in result.stdout

    def test_clear(self, warm_cache):
        result = run_cli("cache", "clear")
        assert result.stdout == "Cache cleared\n"
        assert warm_cache.entries() == {}


class TestCLIModel:
    def test_no_settings(self):
        result = run_cli("model")
        assert result.returncode == 0
        assert json.loads(result.stdout) == {
            "text": "?",
            "tooltip": "Claude settings not found",
            "class": "error",
        }


class TestCLIConfig:
    def test_no_config(self, config_path):
        result = run_cli("config")
        assert result.returncode == 0
        assert f"No config file found at {config_path}" in result.stdout

    def test_init_and_show(self, config_path):
        result = run_cli("config", "--init")
        assert f"Created config file at {config_path}" in result.stdout
        result = run_cli("config", "--show")
        assert "# style = " in result.stdout

    def test_init_twice_fails(self):
        run_cli("config", "--init")
        result = run_cli("config", "--init")
        assert result.returncode != 0
        assert "config already exists" in result.stdout

    def test_init_twice_no_fail(self):
        run_cli("config", "--init")
        result = run_cli("--no-fail", "config", "--init")
        assert result.returncode == 0
