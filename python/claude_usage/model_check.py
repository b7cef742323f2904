"""Check whether the configured Claude model is the latest of its family."""

from __future__ import annotations

import json
import logging
import re
import time
from pathlib import Path
from typing import Callable

import httpx

from claude_usage.cache import MODELS_KEY, Cache
from claude_usage.config import Settings
from claude_usage.errors import ConfigUnavailable, FetchFailed, UsageError
from claude_usage.renderer import RenderResult
from claude_usage.templates import MODEL_TOOLTIP, render_template

logger = logging.getLogger(__name__)

MODELS_DOCS_URL = "https://docs.anthropic.com/en/docs/about-claude/models/all-models"
FAMILY_PATTERN = re.compile(r"claude-(haiku|sonnet|opus)-")
MODEL_ID_PATTERN = re.compile(r"claude-(haiku|sonnet|opus)-(\d+)-(\d+)-(\d+)")
OUTDATED_ICON = "󰙨"


def read_current_model(settings_path: Path) -> str:
    """Model id from Claude Code settings, or 'unknown'."""
    if not settings_path.exists():
        raise ConfigUnavailable("Claude settings not found")
    try:
        data = json.loads(settings_path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        logger.debug("unreadable settings %s: %s", settings_path, exc)
        return "unknown"
    model = data.get("model") if isinstance(data, dict) else None
    return model if isinstance(model, str) and model else "unknown"


def model_family(model_id: str) -> str | None:
    match = FAMILY_PATTERN.search(model_id)
    return match.group(1) if match else None


def latest_models(page: str) -> dict[str, str]:
    """Newest model id per family, ordered by (major, minor, date)."""
    best: dict[str, tuple[tuple[int, int, int], str]] = {}
    for match in MODEL_ID_PATTERN.finditer(page):
        family = match.group(1)
        version = (int(match.group(2)), int(match.group(3)), int(match.group(4)))
        if family not in best or version > best[family][0]:
            best[family] = (version, match.group(0))
    return {family: model_id for family, (_, model_id) in best.items()}


def fetch_models_page(timeout: float = 10.0) -> str:
    try:
        resp = httpx.get(MODELS_DOCS_URL, follow_redirects=True, timeout=timeout)
        resp.raise_for_status()
    except httpx.HTTPError as exc:
        raise FetchFailed(f"Network error: {exc}") from exc
    return resp.text


class ModelChecker:
    """Compare the configured model against the newest documented one."""

    def __init__(
        self,
        settings: Settings,
        cache: Cache,
        *,
        fetcher: Callable[[], str] = fetch_models_page,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.cache = cache
        self.fetcher = fetcher
        self.clock = clock

    def load_latest(self) -> dict[str, str]:
        now = self.clock()
        cached = self.cache.lookup(MODELS_KEY, now)
        if cached is not None:
            return json.loads(cached)
        latest = latest_models(self.fetcher())
        self.cache.store(
            MODELS_KEY, json.dumps(latest).encode(), now, self.settings.model_ttl
        )
        return latest

    def check(self) -> RenderResult:
        try:
            current = read_current_model(self.settings.settings_path)
        except UsageError as exc:
            return RenderResult(text="?", tooltip=str(exc), css_class="error")

        family = model_family(current)
        if family is None:
            return self._result(current, None, "Unable to determine model type")

        try:
            latest = self.load_latest().get(family)
        except FetchFailed as exc:
            logger.info("model check failed: %s", exc)
            latest = None

        if not latest:
            return self._result(current, None, "Unable to check for updates")
        if current == latest:
            return self._result(current, latest, "✓ Up to date", "up-to-date")
        return RenderResult(
            text=OUTDATED_ICON,
            tooltip=render_template(
                MODEL_TOOLTIP,
                {"current": current, "latest": latest, "message": "⚠ Update available"},
            ),
            css_class="outdated",
            latest=latest,
        )

    def _result(
        self, current: str, latest: str | None, message: str, css_class: str = "unknown"
    ) -> RenderResult:
        tooltip = render_template(
            MODEL_TOOLTIP, {"current": current, "latest": latest, "message": message}
        )
        return RenderResult(text="", tooltip=tooltip, css_class=css_class)
