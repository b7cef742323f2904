"""Jinja2 templating for tooltips."""

from __future__ import annotations

from datetime import datetime

from jinja2 import Environment

USAGE_TOOLTIP = """\
Claude Usage
━━━━━━━━━━━━━━━━━━━━
5hr: {{ five_hour.utilization | format_percent }} {{ five_hour | format_reset('%H:%M', '--:--') }}
7d:  {{ seven_day.utilization | format_percent }} {{ seven_day | format_reset('%b %d', '--') }}
Sonnet 7d: {{ sonnet.utilization | format_percent }}

{{ legend }}"""

MODEL_TOOLTIP = """\
Current: {{ current }}
{%- if latest %}
Latest: {{ latest }}
{%- endif %}
{{ message }}"""


def _format_percent(value: float) -> str:
    """Format a utilization percentage, dropping a trailing '.0'."""
    return f"{round(value, 1):g}%"


def _format_reset(progress, fmt: str, missing: str) -> str:
    """Format '(resets <local time>, in <remaining>)' for a window progress."""
    resets_at: datetime | None = progress.resets_at
    if resets_at is None:
        return f"(resets {missing})"
    when = "now" if progress.remaining == "now" else f"in {progress.remaining}"
    return f"(resets {resets_at.astimezone().strftime(fmt)}, {when})"


def create_environment() -> Environment:
    """Create Jinja2 environment with custom filters."""
    env = Environment()
    env.filters["format_percent"] = _format_percent
    env.filters["format_reset"] = _format_reset
    return env


_env = create_environment()


def render_template(template_str: str, context: dict) -> str:
    """Render a Jinja2 template string with the given context."""
    return _env.from_string(template_str).render(context)
