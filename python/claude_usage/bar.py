"""Fixed-width usage bars in several glyph styles."""

from __future__ import annotations

from enum import StrEnum

from claude_usage.windows import WindowProgress, clamp


class BarStyle(StrEnum):
    """Visual styles, in cycle order."""

    UNICODE = "unicode"
    ASCII = "ascii"
    BRAILLE = "braille"
    MINIMAL = "minimal"


class BarRenderer:
    """Base class for bar renderers."""

    style: BarStyle
    legend: str = ""
    """Glyph key shown in tooltips."""

    def render(self, progress: WindowProgress, width: int, label: str) -> str:
        raise NotImplementedError


# Renderer registry - maps styles to renderer classes
_registry: dict[BarStyle, type[BarRenderer]] = {}


def register(cls: type[BarRenderer]) -> type[BarRenderer]:
    """Decorator to register a renderer class."""
    _registry[cls.style] = cls
    return cls


def get_renderer(style: BarStyle) -> BarRenderer:
    """Get a renderer instance for a style."""
    return _registry[style]()


def render_bar(
    progress: WindowProgress, width: int, label: str, style: BarStyle
) -> str:
    """Render one window as a labelled bar."""
    return get_renderer(style).render(progress, width, label)


class MarkerBar(BarRenderer):
    """Whole-cell bar with a time marker showing the position in the window."""

    filled: str
    empty: str
    marker: str

    def glyphs(self, fill: int, time: int, width: int) -> str:
        """Return exactly `width` glyphs; the marker wins over a filled cell."""
        n_filled = clamp(fill * width // 100, 0, width)
        time_pos = clamp(time * width // 100, 0, width)
        cells = []
        for i in range(width):
            if i == time_pos:
                cells.append(self.marker)
            elif i < n_filled:
                cells.append(self.filled)
            else:
                cells.append(self.empty)
        return "".join(cells)

    def render(self, progress: WindowProgress, width: int, label: str) -> str:
        return f"{label}[{self.glyphs(progress.fill, progress.time, width)}]"

    @property
    def legend(self) -> str:
        return f"{self.filled}=usage {self.marker}=time {self.empty}=remaining"


@register
class UnicodeBar(MarkerBar):
    style = BarStyle.UNICODE
    filled = "█"
    empty = "░"
    marker = "│"


@register
class AsciiBar(MarkerBar):
    style = BarStyle.ASCII
    filled = "#"
    empty = "."
    marker = "|"


# Glyph for 0..8 filled dots in a cell; 7 and 8 share the full cell.
BRAILLE_LEVELS = ("⡀", "⣀", "⣄", "⣤", "⣦", "⣶", "⣷", "⣿", "⣿")
DOTS_PER_CELL = 8


@register
class BrailleBar(BarRenderer):
    """Eight dot levels per cell, no time marker."""

    style = BarStyle.BRAILLE
    legend = "⣿=usage ⡀=remaining"

    def cell_dots(self, fill: int, width: int) -> list[int]:
        filled_dots = fill * width * DOTS_PER_CELL // 100
        return [
            clamp(filled_dots - i * DOTS_PER_CELL, 0, DOTS_PER_CELL)
            for i in range(width)
        ]

    def render(self, progress: WindowProgress, width: int, label: str) -> str:
        cells = self.cell_dots(progress.fill, width)
        return label + "".join(BRAILLE_LEVELS[dots] for dots in cells)


@register
class MinimalBar(BarRenderer):
    """Bare percentage."""

    style = BarStyle.MINIMAL
    legend = "usage %"

    def render(self, progress: WindowProgress, width: int, label: str) -> str:
        return f"{label} {progress.fill}%"
