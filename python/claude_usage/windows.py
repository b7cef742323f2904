"""Rolling quota windows and their position math."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from claude_usage.usage import UsageResponse

logger = logging.getLogger(__name__)

NO_RESET = "--"


class WindowKind(StrEnum):
    """The rolling windows reported by the usage endpoint."""

    FIVE_HOUR = "five_hour"
    SEVEN_DAY = "seven_day"
    SEVEN_DAY_SONNET = "seven_day_sonnet"

    @property
    def duration_seconds(self) -> int:
        if self is WindowKind.FIVE_HOUR:
            return 5 * 60 * 60
        return 7 * 24 * 60 * 60

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    WindowKind.FIVE_HOUR: "5h",
    WindowKind.SEVEN_DAY: "7d",
    WindowKind.SEVEN_DAY_SONNET: "S",
}


class QuotaWindow(BaseModel):
    """A single usage window as received from the endpoint."""

    model_config = ConfigDict(frozen=True)

    kind: WindowKind
    utilization: float = Field(default=0.0, description="Percent of quota consumed")
    resets_at: str | None = Field(
        default=None, description="ISO-8601 reset instant, as received"
    )

    @property
    def duration_seconds(self) -> int:
        return self.kind.duration_seconds


class WindowProgress(BaseModel):
    """Normalized fill and time position of a window at a given instant."""

    model_config = ConfigDict(frozen=True)

    fill: int = Field(ge=0, le=100, description="Floored utilization percent")
    time: int = Field(ge=0, le=100, description="Percent of the window elapsed")
    remaining: str = Field(description="Time until reset (e.g. '2h', '5d')")
    utilization: float = Field(default=0.0, description="Unfloored utilization")
    resets_at: datetime | None = Field(default=None, description="Parsed reset")


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def parse_reset_instant(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp, returning None if absent or malformed.

    Naive timestamps are taken as UTC.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        logger.debug("ignoring malformed reset timestamp %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_remaining(seconds: int) -> str:
    """Bucket seconds-until-reset into the largest whole unit (truncating)."""
    if seconds < 0:
        return "now"
    if seconds < 3600:
        return f"{seconds // 60}m"
    if seconds < 86400:
        return f"{seconds // 3600}h"
    return f"{seconds // 86400}d"


def compute_progress(window: QuotaWindow, now: datetime) -> WindowProgress:
    """Compute fill, time position and remaining label for a window."""
    fill = clamp(math.floor(window.utilization), 0, 100)
    resets_at = parse_reset_instant(window.resets_at)
    if resets_at is None:
        return WindowProgress(
            fill=fill, time=0, remaining=NO_RESET, utilization=window.utilization
        )

    duration = window.duration_seconds
    seconds_until = math.floor((resets_at - now).total_seconds())
    elapsed = duration - seconds_until
    return WindowProgress(
        fill=fill,
        time=clamp(elapsed * 100 // duration, 0, 100),
        remaining=format_remaining(seconds_until),
        utilization=window.utilization,
        resets_at=resets_at,
    )


def windows_from_response(response: UsageResponse) -> dict[WindowKind, QuotaWindow]:
    """Build the three quota windows from a parsed usage response.

    The Sonnet window uses the 7-day reset instant when it reports none.
    """
    five_hour = response.five_hour
    seven_day = response.seven_day
    sonnet = response.seven_day_sonnet
    return {
        WindowKind.FIVE_HOUR: QuotaWindow(
            kind=WindowKind.FIVE_HOUR,
            utilization=five_hour.utilization,
            resets_at=five_hour.resets_at,
        ),
        WindowKind.SEVEN_DAY: QuotaWindow(
            kind=WindowKind.SEVEN_DAY,
            utilization=seven_day.utilization,
            resets_at=seven_day.resets_at,
        ),
        WindowKind.SEVEN_DAY_SONNET: QuotaWindow(
            kind=WindowKind.SEVEN_DAY_SONNET,
            utilization=sonnet.utilization,
            resets_at=sonnet.resets_at or seven_day.resets_at,
        ),
    }
