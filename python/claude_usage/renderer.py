"""Usage renderer: config, caches, fetch, window math and bars in one pass."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from enum import StrEnum
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field

from claude_usage.bar import get_renderer, render_bar
from claude_usage.cache import FETCH_KEY, OUTPUT_PREFIX, Cache
from claude_usage.config import DisplayMode, RenderConfig, Settings
from claude_usage.errors import FetchFailed, UsageError
from claude_usage.style import (
    CRITICAL_THRESHOLD,
    WARNING_THRESHOLD,
    colorize,
    render_to_ansi,
)
from claude_usage.templates import USAGE_TOOLTIP, render_template
from claude_usage.usage import UsageResponse, fetch_usage, parse_usage, read_token
from claude_usage.windows import (
    WindowKind,
    WindowProgress,
    compute_progress,
    windows_from_response,
)

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], bytes]


class OutputKind(StrEnum):
    STATUSLINE = "statusline"
    BAR = "bar"


DISPLAY_WINDOWS: dict[DisplayMode, tuple[WindowKind, ...]] = {
    DisplayMode.ALL: (
        WindowKind.FIVE_HOUR,
        WindowKind.SEVEN_DAY,
        WindowKind.SEVEN_DAY_SONNET,
    ),
    DisplayMode.FIVE_HOUR: (WindowKind.FIVE_HOUR,),
    DisplayMode.SEVEN_DAY: (WindowKind.SEVEN_DAY,),
    DisplayMode.SONNET: (WindowKind.SEVEN_DAY_SONNET,),
    DisplayMode.MINIMAL: (WindowKind.FIVE_HOUR, WindowKind.SEVEN_DAY),
}


class RenderResult(BaseModel):
    """Structured status for bar managers (waybar, hyprpanel)."""

    model_config = ConfigDict(populate_by_name=True)

    text: str
    tooltip: str = ""
    css_class: str = Field(default="normal", alias="class")
    latest: str | None = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


def classify(progress: dict[WindowKind, WindowProgress]) -> str:
    """Severity class from the two primary windows."""
    peak = max(
        progress[WindowKind.FIVE_HOUR].fill, progress[WindowKind.SEVEN_DAY].fill
    )
    if peak >= CRITICAL_THRESHOLD:
        return "critical"
    if peak >= WARNING_THRESHOLD:
        return "warning"
    return "normal"


class UsageRenderer:
    """Renders usage for one invocation.

    The output cache is keyed by the render options' fingerprint, so a
    changed style or display shows up at once while the fetch cache keeps
    serving the upstream response.
    """

    def __init__(
        self,
        config: RenderConfig,
        settings: Settings,
        cache: Cache,
        *,
        fetcher: Fetcher = fetch_usage,
        clock: Callable[[], float] = time.time,
        color: bool = False,
    ):
        self.config = config
        self.settings = settings
        self.cache = cache
        self.fetcher = fetcher
        self.clock = clock
        self.color = color

    def fingerprint(self) -> str:
        fingerprint = self.config.fingerprint()
        return f"{fingerprint}:color" if self.color else fingerprint

    def render(self, kind: OutputKind) -> str:
        now = self.clock()
        key = OUTPUT_PREFIX + kind.value
        fingerprint = self.fingerprint()

        cached = self.cache.lookup(key, now, fingerprint)
        if cached is not None:
            return cached.decode()

        try:
            usage = self.load_usage(now)
        except UsageError as exc:
            logger.info("rendering placeholder: %s", exc)
            return self.render_failure(kind, exc)

        progress = self.compute(usage, datetime.fromtimestamp(now, timezone.utc))
        if kind is OutputKind.BAR:
            output = self.render_bar_json(progress)
        else:
            output = self.render_statusline(progress)

        self.cache.store(
            key, output.encode(), now, self.settings.output_ttl, fingerprint
        )
        return output

    def load_usage(self, now: float) -> UsageResponse:
        """Return the upstream usage, from the fetch cache when fresh."""
        raw = self.cache.lookup(FETCH_KEY, now)
        if raw is not None:
            try:
                return parse_usage(raw)
            except FetchFailed:
                logger.debug("discarding unparseable cached response")

        token = read_token(self.settings.credentials_path)
        raw = self.fetcher(token)
        usage = parse_usage(raw)
        self.cache.store(FETCH_KEY, raw, now, self.settings.fetch_ttl)
        return usage

    def compute(
        self, usage: UsageResponse, now: datetime
    ) -> dict[WindowKind, WindowProgress]:
        return {
            kind: compute_progress(window, now)
            for kind, window in windows_from_response(usage).items()
        }

    def segments(
        self, progress: dict[WindowKind, WindowProgress]
    ) -> list[tuple[str, int]]:
        """Rendered bar and fill for each displayed window."""
        config = self.config
        return [
            (
                render_bar(progress[kind], config.width, kind.label, config.style),
                progress[kind].fill,
            )
            for kind in DISPLAY_WINDOWS[config.display]
        ]

    def render_statusline(self, progress: dict[WindowKind, WindowProgress]) -> str:
        segments = self.segments(progress)
        if self.color:
            return render_to_ansi(colorize(segments), use_color=True)
        return " ".join(text for text, _ in segments)

    def render_bar_json(self, progress: dict[WindowKind, WindowProgress]) -> str:
        text = " ".join(text for text, _ in self.segments(progress))
        tooltip = render_template(
            USAGE_TOOLTIP,
            {
                "five_hour": progress[WindowKind.FIVE_HOUR],
                "seven_day": progress[WindowKind.SEVEN_DAY],
                "sonnet": progress[WindowKind.SEVEN_DAY_SONNET],
                "legend": get_renderer(self.config.style).legend,
            },
        )
        result = RenderResult(text=text, tooltip=tooltip, css_class=classify(progress))
        return result.to_json()

    def render_failure(self, kind: OutputKind, exc: UsageError) -> str:
        if kind is OutputKind.BAR:
            return RenderResult(text="?", tooltip=str(exc), css_class="error").to_json()
        return exc.placeholder
