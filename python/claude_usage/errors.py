"""Error handling for claude-usage."""

from __future__ import annotations

from typing import NoReturn


class UsageError(Exception):
    """A failure that is rendered as a placeholder instead of crashing the widget."""

    placeholder = "(error)"


class ConfigUnavailable(UsageError):
    """Credentials or settings file is missing."""

    placeholder = "(no claude auth)"


class AuthUnavailable(UsageError):
    """OAuth token is absent or empty."""

    placeholder = "(no oauth token)"


class FetchFailed(UsageError):
    """Network error, timeout, or an error payload from the usage endpoint."""

    placeholder = "(api error)"


class MonitorError(Exception):
    """Wrapper indicating the error was already reported to the user."""

    pass


def report_error(context: str, exc: Exception) -> NoReturn:
    """Print a friendly error message to stdout and raise MonitorError."""
    from claude_usage.style import render_to_ansi

    message = render_to_ansi(
        f"[red]claude-usage: {context}: {exc}\n"
        f"Run 'claude-usage --verbose' for details.[/red]",
        use_color=True,
    )
    print(message)
    raise MonitorError(str(exc)) from exc
