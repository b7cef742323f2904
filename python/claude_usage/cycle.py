"""Cycle persisted display options forward and backward."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Sequence, TypeVar

from claude_usage.bar import BarStyle
from claude_usage.cache import OUTPUT_PREFIX, Cache
from claude_usage.config import ConfigStore, DisplayMode, RenderConfig, load_render_config

logger = logging.getLogger(__name__)

T = TypeVar("T")

WIDTHS = (4, 6, 8, 10, 12, 16, 20, 30)


class Axis(StrEnum):
    STYLE = "style"
    DISPLAY = "display"
    WIDTH = "width"

    @property
    def options(self) -> tuple:
        return _OPTIONS[self]


_OPTIONS: dict[Axis, tuple] = {
    Axis.STYLE: tuple(BarStyle),
    Axis.DISPLAY: tuple(DisplayMode),
    Axis.WIDTH: WIDTHS,
}


class Direction(StrEnum):
    UP = "up"
    DOWN = "down"
    NEXT = "next"
    PREV = "prev"

    @property
    def step(self) -> int:
        return 1 if self in (Direction.UP, Direction.NEXT) else -1

    @classmethod
    def parse(cls, value: str) -> Direction:
        """Parse a direction; unrecognized values step backward."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.DOWN


def cycle_value(options: Sequence[T], current: object, direction: Direction) -> T:
    """Return the option after (or before) `current`, wrapping around.

    An unrecognized `current` counts as the first option.
    """
    try:
        index = list(options).index(current)
    except ValueError:
        index = 0
    return options[(index + direction.step) % len(options)]


def cycle(
    axis: Axis, direction: Direction, store: ConfigStore, cache: Cache | None = None
) -> object:
    """Advance one axis, persist it and drop rendered output from the cache."""
    current = store.load().get(axis.value)
    if current not in axis.options:
        current = getattr(load_render_config(store), axis.value)
    new = cycle_value(axis.options, current, direction)
    value = new.value if isinstance(new, StrEnum) else new
    store.set(axis.value, value)
    logger.debug("cycled %s: %r -> %r", axis.value, current, value)
    if cache is not None:
        cache.delete_prefix(OUTPUT_PREFIX)
    return value


def reset(store: ConfigStore, cache: Cache | None = None) -> None:
    """Delete persisted options, reverting to defaults."""
    store.delete()
    if cache is not None:
        cache.delete_prefix(OUTPUT_PREFIX)


def status(store: ConfigStore) -> RenderConfig:
    """Effective options from the environment and the config file."""
    return load_render_config(store)
