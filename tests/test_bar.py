"""Unit tests for bar rendering."""

import pytest

from claude_usage.bar import (
    BRAILLE_LEVELS,
    AsciiBar,
    BarStyle,
    BrailleBar,
    UnicodeBar,
    get_renderer,
    render_bar,
)
from claude_usage.windows import WindowProgress


def progress(fill: int, time: int = 100) -> WindowProgress:
    """Progress with the marker parked past the end unless `time` is given."""
    return WindowProgress(fill=fill, time=time, remaining="--")


def inner(rendered: str) -> str:
    """Glyphs between the brackets."""
    return rendered[rendered.index("[") + 1 : rendered.rindex("]")]


class TestDispatch:
    @pytest.mark.parametrize("style", list(BarStyle))
    def test_every_style_has_a_renderer(self, style):
        assert get_renderer(style).style is style

    def test_render_bar_uses_style(self):
        assert render_bar(progress(50), 4, "5h", BarStyle.ASCII) == "5h[##..]"
        assert render_bar(progress(50), 4, "5h", BarStyle.UNICODE) == "5h[██░░]"


class TestMarkerBars:
    def test_unicode_example(self):
        # 45% of 8 cells = 3 filled; 60% of the window elapsed puts the marker at 4
        result = UnicodeBar().render(progress(45, 60), 8, "5h")
        assert result == "5h[███░│░░░]"

    def test_ascii_glyphs(self):
        result = AsciiBar().render(progress(50, 30), 10, "7d")
        assert result == "7d[###|#.....]"

    def test_marker_wins_over_filled_cell(self):
        result = UnicodeBar().render(progress(45, 0), 8, "")
        assert inner(result) == "│██░░░░░"

    def test_marker_on_boundary_of_fill(self):
        # filled == time_pos == 3: the boundary cell shows the marker
        result = UnicodeBar().render(progress(45, 40), 8, "")
        assert inner(result) == "███│░░░░"

    def test_marker_at_end_is_not_drawn(self):
        result = UnicodeBar().render(progress(100, 100), 8, "")
        assert inner(result) == "████████"

    def test_empty_bar_shows_marker_at_start(self):
        result = AsciiBar().render(progress(0, 0), 5, "")
        assert inner(result) == "|...."

    @pytest.mark.parametrize("width", [1, 3, 8, 30])
    @pytest.mark.parametrize("fill", [0, 1, 12, 50, 99, 100])
    @pytest.mark.parametrize("time", [0, 50, 100])
    def test_exact_width(self, width, fill, time):
        for renderer in (UnicodeBar(), AsciiBar()):
            assert len(inner(renderer.render(progress(fill, time), width, "x"))) == width

    @pytest.mark.parametrize("fill", range(0, 101))
    def test_filled_count(self, fill):
        glyphs = inner(UnicodeBar().render(progress(fill), 8, ""))
        assert glyphs.count("█") == fill * 8 // 100

    def test_legend(self):
        assert UnicodeBar().legend == "█=usage │=time ░=remaining"
        assert AsciiBar().legend == "#=usage |=time .=remaining"


class TestBrailleBar:
    def test_empty(self):
        assert BrailleBar().render(progress(0), 4, "5h") == "5h⡀⡀⡀⡀"

    def test_full(self):
        assert BrailleBar().render(progress(100), 4, "5h") == "5h⣿⣿⣿⣿"

    def test_half(self):
        assert BrailleBar().render(progress(50), 4, "") == "⣿⣿⡀⡀"

    def test_partial_cell(self):
        # 45% of 64 dots = 28: three full cells and one with 4 dots
        assert BrailleBar().render(progress(45), 8, "") == "⣿⣿⣿⣦⡀⡀⡀⡀"

    def test_seven_and_eight_dots_share_glyph(self):
        assert BRAILLE_LEVELS[7] == BRAILLE_LEVELS[8] == "⣿"
        assert len(BRAILLE_LEVELS) == 9

    def test_ignores_time(self):
        renderer = BrailleBar()
        assert renderer.render(progress(45, 0), 8, "") == renderer.render(
            progress(45, 100), 8, ""
        )

    @pytest.mark.parametrize("width", [1, 3, 8, 30])
    def test_exact_width(self, width):
        for fill in (0, 33, 100):
            assert len(BrailleBar().render(progress(fill), width, "")) == width

    @pytest.mark.parametrize("width", [1, 3, 8])
    def test_monotonic(self, width):
        renderer = BrailleBar()
        for fill in range(100):
            lower = renderer.cell_dots(fill, width)
            higher = renderer.cell_dots(fill + 1, width)
            assert all(a <= b for a, b in zip(lower, higher))


class TestMinimalBar:
    def test_bare_percentage(self):
        assert render_bar(progress(45, 60), 8, "5h", BarStyle.MINIMAL) == "5h 45%"

    def test_ignores_width(self):
        renderer = get_renderer(BarStyle.MINIMAL)
        assert renderer.render(progress(7), 1, "7d") == renderer.render(
            progress(7), 30, "7d"
        )
