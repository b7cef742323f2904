import json
from datetime import datetime, timedelta, timezone

import pytest

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep the user's environment and home directory out of every test."""
    for var in (
        "CLAUDE_USAGE_BAR_WIDTH",
        "CLAUDE_USAGE_BAR_STYLE",
        "CLAUDE_USAGE_DISPLAY",
        "CLAUDE_USAGE_CACHE_TTL",
        "CLAUDE_USAGE_OUTPUT_TTL",
        "CLAUDE_MODEL_CACHE_TTL",
        "CLAUDE_CREDENTIALS_FILE",
        "CLAUDE_SETTINGS_FILE",
        "CLAUDE_USAGE_CONFIG",
        "CLAUDE_USAGE_CACHE_DIR",
        "CLAUDE_USAGE_DEBUG",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))


def iso_in(delta: timedelta) -> str:
    """ISO-8601 timestamp `delta` after NOW."""
    return (NOW + delta).isoformat()


def usage_payload(
    five_hour: float = 45.0,
    seven_day: float = 28.0,
    sonnet: float = 0.0,
    five_hour_reset: str | None = None,
    seven_day_reset: str | None = None,
) -> bytes:
    """Raw usage endpoint JSON with resets 2 hours and 5 days out by default."""
    return json.dumps(
        {
            "five_hour": {
                "utilization": five_hour,
                "resets_at": five_hour_reset or iso_in(timedelta(hours=2)),
            },
            "seven_day": {
                "utilization": seven_day,
                "resets_at": seven_day_reset or iso_in(timedelta(days=5)),
            },
            "seven_day_sonnet": {"utilization": sonnet, "resets_at": None},
        }
    ).encode()
