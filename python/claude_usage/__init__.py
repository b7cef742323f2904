"""Claude subscription usage bars for statuslines and desktop bars."""

from __future__ import annotations

import logging
import os
import sys
import time
import traceback
from pathlib import Path
from typing import Annotated

import humanize
import typer
from rich import table
from rich.console import Console
from rich.logging import RichHandler

from claude_usage.cache import Cache, MemoryCache, SqliteCache
from claude_usage.config import (
    ConfigStore,
    Settings,
    generate_default_config_toml,
    load_render_config,
    load_settings,
    merge_cli_options,
)
from claude_usage.cycle import Axis, Direction, cycle, reset, status
from claude_usage.errors import MonitorError, report_error
from claude_usage.model_check import ModelChecker
from claude_usage.renderer import OutputKind, UsageRenderer


class Context(typer.Context):
    obj: Env


app = typer.Typer(
    help="Claude subscription usage as progress bars for statuslines and status bars.",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)

# Module-level flag so main() can access it outside the typer context.
_no_fail = False

CYCLE_USAGE = """\
Usage: claude-usage cycle <style|display|width|reset|status> [up|down|next|prev]

Options:
  style   - Cycle: unicode → ascii → braille → minimal
  display - Cycle: all → 5h → 7d → sonnet → minimal
  width   - Cycle: 4 → 6 → 8 → 10 → 12 → 16 → 20 → 30
  reset   - Reset all to defaults
  status  - Show current settings"""


class Env:
    __slots__ = ("console", "settings")
    console: Console
    settings: Settings

    def __init__(self, **fields):
        for name, value in fields.items():
            setattr(self, name, value)


def setup_logging(verbose: bool) -> None:
    """Send log records to stderr; stdout carries only widget output."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def app_main(
    ctx: Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log cache and fetch activity to stderr."),
    ] = False,
    no_fail: Annotated[
        bool,
        typer.Option(
            "--no-fail",
            help="Exit 0 even on unexpected errors.",
        ),
    ] = False,
):
    global _no_fail
    _no_fail = no_fail
    setup_logging(verbose or bool(os.environ.get("CLAUDE_USAGE_DEBUG")))
    ctx.obj = Env(console=Console(highlight=True), settings=load_settings())


def open_cache(settings: Settings, no_cache: bool = False) -> Cache:
    if no_cache:
        return MemoryCache()
    return SqliteCache(settings.cache_path)


def drain_stdin() -> None:
    """Consume piped input (Claude Code sends session JSON we don't need)."""
    if not sys.stdin.isatty():
        sys.stdin.read()


WidthOption = Annotated[
    int | None,
    typer.Option("--width", "-w", help="Bar width in glyphs.", min=1),
]
StyleOption = Annotated[
    str | None,
    typer.Option("--style", "-s", help="Bar style: unicode, ascii, braille, minimal."),
]
DisplayOption = Annotated[
    str | None,
    typer.Option("--display", "-d", help="Windows: all, 5h, 7d, sonnet, minimal."),
]
NoCacheOption = Annotated[
    bool,
    typer.Option("--no-cache", help="Ignore and don't update the cache."),
]


def _render(
    ctx: Context,
    kind: OutputKind,
    width: int | None,
    style: str | None,
    display: str | None,
    no_cache: bool,
    color: bool = False,
) -> None:
    settings = ctx.obj.settings
    config = load_render_config(ConfigStore(settings.config_path))
    config = merge_cli_options(config, width, style, display)
    renderer = UsageRenderer(
        config, settings, open_cache(settings, no_cache), color=color
    )
    print(renderer.render(kind))


@app.command()
def statusline(
    ctx: Context,
    width: WidthOption = None,
    style: StyleOption = None,
    display: DisplayOption = None,
    no_cache: NoCacheOption = False,
    color: Annotated[
        bool,
        typer.Option("--color/--no-color", help="Color bars by usage level."),
    ] = False,
) -> None:
    """Print usage bars as a single text line (Claude Code statusLine)."""
    drain_stdin()
    _render(ctx, OutputKind.STATUSLINE, width, style, display, no_cache, color)


@app.command(name="bar")
def bar_cmd(
    ctx: Context,
    width: WidthOption = None,
    style: StyleOption = None,
    display: DisplayOption = None,
    no_cache: NoCacheOption = False,
) -> None:
    """Print usage as JSON {text, tooltip, class} for waybar and friends."""
    _render(ctx, OutputKind.BAR, width, style, display, no_cache)


@app.command(name="cycle")
def cycle_cmd(
    ctx: Context,
    axis: Annotated[
        str, typer.Argument(help="style, display, width, reset or status.")
    ] = "",
    direction: Annotated[
        str, typer.Argument(help="up/next; anything else steps backward.")
    ] = Direction.UP.value,
) -> None:
    """Cycle display options (for bar click/scroll handlers)."""
    settings = ctx.obj.settings
    store = ConfigStore(settings.config_path)
    cache = open_cache(settings)

    if axis == "reset":
        reset(store, cache)
        typer.echo("Reset to defaults")
        return
    if axis == "status":
        current = status(store)
        typer.echo(f"style={current.style.value}")
        typer.echo(f"display={current.display.value}")
        typer.echo(f"width={current.width}")
        return
    try:
        parsed_axis = Axis(axis)
    except ValueError:
        typer.echo(CYCLE_USAGE)
        raise typer.Exit(1)

    value = cycle(parsed_axis, Direction.parse(direction), store, cache)
    typer.echo(f"{parsed_axis.value.capitalize()}: {value}")


@app.command()
def model(ctx: Context) -> None:
    """Print JSON telling whether the configured model is the latest."""
    settings = ctx.obj.settings
    checker = ModelChecker(settings, open_cache(settings))
    print(checker.check().to_json())


# `claude-usage cache` - subcommand group
cache_app = typer.Typer()
app.add_typer(cache_app, name="cache", help="Inspect or clear the cache.")


@cache_app.callback(invoke_without_command=True)
def cache_show(ctx: Context) -> None:
    """List cache entries with their age."""
    if ctx.invoked_subcommand is not None:
        return
    console = ctx.obj.console
    cache = open_cache(ctx.obj.settings)
    now = time.time()

    t = table.Table(
        table.Column("Key", justify="left", style="blue"),
        table.Column("Age", justify="right"),
        table.Column("TTL", justify="right"),
        table.Column("Fresh", justify="left"),
        box=None,
        pad_edge=False,
        header_style="bold dim",
    )
    for key, entry in cache.entries().items():
        t.add_row(
            key,
            humanize.naturaldelta(entry.age(now)),
            humanize.naturaldelta(entry.ttl),
            "yes" if entry.age(now) < entry.ttl else "[dim]no[/]",
        )
    console.print(t)


@cache_app.command(name="clear")
def cache_clear(ctx: Context) -> None:
    """Remove all cached data, forcing a refetch on the next render."""
    open_cache(ctx.obj.settings).clear()
    typer.echo("Cache cleared")


@app.command(name="config")
def config_cmd(
    ctx: Context,
    init: Annotated[
        bool,
        typer.Option(
            "--init",
            help="Initialize config file with defaults.",
        ),
    ] = False,
    show: Annotated[
        bool,
        typer.Option(
            "--show",
            help="Show current configuration.",
        ),
    ] = False,
) -> None:
    """Show where the persisted configuration lives."""
    config_path: Path = ctx.obj.settings.config_path
    if init:
        if config_path.exists():
            report_error(
                "config already exists",
                FileExistsError(str(config_path)),
            )

        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(generate_default_config_toml())
        typer.echo(f"Created config file at {config_path}")
        return

    if config_path.exists():
        typer.echo(f"Config file: {config_path}")
        if show:
            typer.echo("")
            typer.echo(config_path.read_text())
    else:
        typer.echo(f"No config file found at {config_path}")
        typer.echo("Run 'claude-usage cycle style' or 'claude-usage config --init'.")


def main() -> None:
    """Entry point for the CLI."""
    try:
        try:
            app()
        except MonitorError:
            raise
        except Exception as exc:
            report_error("unexpected error", exc)
    except MonitorError:
        if _no_fail:
            traceback.print_exc(file=sys.stderr)
            return
        raise
