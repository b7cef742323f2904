"""Configuration system for claude-usage.

Render options are layered: built-in defaults, then environment variables,
then the persisted config file written by `claude-usage cycle`, then CLI
flags. Unknown values at any layer fall back to the default.
"""

from __future__ import annotations

import hashlib
import logging
import os
import tomllib
from enum import StrEnum
from pathlib import Path
from typing import Any, Mapping

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, field_validator

from claude_usage.bar import BarStyle

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 8


class DisplayMode(StrEnum):
    """Which windows to show, in cycle order."""

    ALL = "all"
    FIVE_HOUR = "5h"
    SEVEN_DAY = "7d"
    SONNET = "sonnet"
    MINIMAL = "minimal"


def _home() -> Path:
    return Path.home()


def _xdg_dir(env_var: str, fallback: str) -> Path:
    value = os.environ.get(env_var)
    if value:
        return Path(value)
    return _home() / fallback


def default_config_path() -> Path:
    override = os.environ.get("CLAUDE_USAGE_CONFIG")
    if override:
        return Path(override)
    return _xdg_dir("XDG_CONFIG_HOME", ".config") / "claude-usage" / "config.toml"


def default_cache_path() -> Path:
    override = os.environ.get("CLAUDE_USAGE_CACHE_DIR")
    if override:
        return Path(override) / "cache.db"
    return _xdg_dir("XDG_CACHE_HOME", ".cache") / "claude-usage" / "cache.db"


# =============================================================================
# Render options
# =============================================================================


class RenderConfig(BaseModel):
    """Options that shape the rendered output."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(default=DEFAULT_WIDTH, description="Bar width in glyphs")
    style: BarStyle = Field(default=BarStyle.UNICODE, description="Bar style")
    display: DisplayMode = Field(
        default=DisplayMode.ALL, description="Windows to display"
    )

    @field_validator("width", mode="before")
    @classmethod
    def _fallback_width(cls, value: Any) -> int:
        try:
            width = int(value)
        except (TypeError, ValueError):
            logger.warning("invalid bar width %r, using %d", value, DEFAULT_WIDTH)
            return DEFAULT_WIDTH
        if width <= 0:
            logger.warning("invalid bar width %r, using %d", value, DEFAULT_WIDTH)
            return DEFAULT_WIDTH
        return width

    @field_validator("style", mode="before")
    @classmethod
    def _fallback_style(cls, value: Any) -> BarStyle:
        return _parse_choice(BarStyle, value, BarStyle.UNICODE)

    @field_validator("display", mode="before")
    @classmethod
    def _fallback_display(cls, value: Any) -> DisplayMode:
        return _parse_choice(DisplayMode, value, DisplayMode.ALL)

    def fingerprint(self) -> str:
        """Stable hash of these options, used to invalidate rendered output."""
        return hashlib.sha256(self.model_dump_json().encode()).hexdigest()


def _parse_choice(enum_cls: type[StrEnum], value: Any, default: StrEnum) -> Any:
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        logger.warning(
            "unknown %s %r, using %s", enum_cls.__name__, value, default.value
        )
        return default


RENDER_ENV_VARS = {
    "width": "CLAUDE_USAGE_BAR_WIDTH",
    "style": "CLAUDE_USAGE_BAR_STYLE",
    "display": "CLAUDE_USAGE_DISPLAY",
}


def env_overrides(env: Mapping[str, str] | None = None) -> dict[str, str]:
    """Collect render options set through the environment."""
    env = os.environ if env is None else env
    return {key: env[var] for key, var in RENDER_ENV_VARS.items() if env.get(var)}


# =============================================================================
# Persisted config file
# =============================================================================


class ConfigStore:
    """Flat TOML table of persisted render options."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or default_config_path()

    def load(self) -> dict[str, Any]:
        """Read the persisted mapping, or {} if missing or unreadable."""
        if not self.path.exists():
            return {}
        try:
            return tomllib.loads(self.path.read_text())
        except (OSError, tomllib.TOMLDecodeError) as exc:
            logger.warning("ignoring unreadable config file %s: %s", self.path, exc)
            return {}

    def save(self, data: Mapping[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(tomli_w.dumps(dict(data)))

    def set(self, key: str, value: Any) -> None:
        """Update one key in place, keeping the others (unknown ones included)."""
        data = self.load()
        data[key] = value
        self.save(data)

    def delete(self) -> None:
        self.path.unlink(missing_ok=True)


def load_render_config(
    store: ConfigStore, env: Mapping[str, str] | None = None
) -> RenderConfig:
    """Resolve render options: defaults < environment < config file."""
    persisted = {
        key: value
        for key, value in store.load().items()
        if key in RenderConfig.model_fields
    }
    merged = {**env_overrides(env), **persisted}
    return RenderConfig.model_validate(merged)


def merge_cli_options(
    config: RenderConfig,
    width: int | None = None,
    style: str | None = None,
    display: str | None = None,
) -> RenderConfig:
    """Merge CLI options into config, with CLI taking precedence."""
    return RenderConfig(
        width=width if width is not None else config.width,
        style=style if style is not None else config.style,
        display=display if display is not None else config.display,
    )


# =============================================================================
# Runtime settings (environment only)
# =============================================================================


class Settings(BaseModel):
    """Paths and cache lifetimes, read from the environment."""

    fetch_ttl: int = Field(default=300, description="Seconds to reuse a fetch")
    output_ttl: int = Field(default=60, description="Seconds to reuse a render")
    model_ttl: int = Field(default=3600, description="Seconds to reuse model info")
    credentials_path: Path = Field(
        default_factory=lambda: _home() / ".claude" / ".credentials.json"
    )
    settings_path: Path = Field(
        default_factory=lambda: _home() / ".claude" / "settings.json"
    )
    config_path: Path = Field(default_factory=default_config_path)
    cache_path: Path = Field(default_factory=default_cache_path)

    @field_validator("fetch_ttl", "output_ttl", "model_ttl", mode="before")
    @classmethod
    def _non_negative(cls, value: Any) -> int:
        try:
            return max(0, int(value))
        except (TypeError, ValueError):
            logger.warning("invalid cache TTL %r, caching disabled", value)
            return 0


SETTINGS_ENV_VARS = {
    "fetch_ttl": "CLAUDE_USAGE_CACHE_TTL",
    "output_ttl": "CLAUDE_USAGE_OUTPUT_TTL",
    "model_ttl": "CLAUDE_MODEL_CACHE_TTL",
    "credentials_path": "CLAUDE_CREDENTIALS_FILE",
    "settings_path": "CLAUDE_SETTINGS_FILE",
}


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if env is None else env
    values = {key: env[var] for key, var in SETTINGS_ENV_VARS.items() if env.get(var)}
    return Settings.model_validate(values)


def generate_default_config_toml() -> str:
    """Generate default config file content for users to customize."""
    return """\
# claude-usage configuration
# Written by `claude-usage cycle`; values here override environment variables.

# style = "unicode"   # unicode | ascii | braille | minimal
# display = "all"     # all | 5h | 7d | sonnet | minimal
# width = 8
"""
