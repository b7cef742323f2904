"""Styling helpers for claude-usage output."""

from __future__ import annotations

from io import StringIO

from rich.console import Console, RenderableType
from rich.text import Text

WARNING_THRESHOLD = 50
CRITICAL_THRESHOLD = 80


def threshold_color(fill: int) -> str:
    """Color for a usage fill: green, yellow at 50%, red at 80%."""
    if fill >= CRITICAL_THRESHOLD:
        return "red"
    if fill >= WARNING_THRESHOLD:
        return "yellow"
    return "green"


def colorize(segments: list[tuple[str, int]], separator: str = " ") -> Text:
    """Join (text, fill) segments into a Text, each colored by its fill."""
    text = Text()
    for i, (segment, fill) in enumerate(segments):
        if i > 0:
            text.append(separator)
        text.append(segment, style=threshold_color(fill))
    return text


def render_to_ansi(
    content: RenderableType, use_color: bool, *, width: int = 200
) -> str:
    """Convert Rich renderable to ANSI escape codes.

    Args:
        content: Rich renderable (string with markup, Text, Table, etc.).
        use_color: Whether to include ANSI color codes.
        width: Console width for layout (default 200 to avoid wrapping).

    Returns:
        String with ANSI codes if use_color, plain text otherwise.
    """
    console = Console(
        file=StringIO(),
        force_terminal=True,
        color_system="standard" if use_color else None,
        no_color=not use_color,
        width=width,
    )

    with console.capture() as capture:
        console.print(content, end="", highlight=False, soft_wrap=True)

    return capture.get().rstrip("\n")
