"""Client for the OAuth usage endpoint."""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from claude_usage.errors import AuthUnavailable, ConfigUnavailable, FetchFailed

logger = logging.getLogger(__name__)

OAUTH_USAGE_URL = "https://api.anthropic.com/api/oauth/usage"
OAUTH_BETA = "oauth-2025-04-20"
FETCH_TIMEOUT = 10.0


class UsageWindowData(BaseModel):
    """One window of the usage response."""

    model_config = ConfigDict(extra="ignore")

    utilization: float = Field(default=0.0, description="Percent of quota used")
    resets_at: str | None = Field(default=None, description="ISO-8601 reset instant")

    @field_validator("utilization", mode="before")
    @classmethod
    def _null_is_zero(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("utilization")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            logger.debug("non-finite utilization %r, using 0", value)
            return 0.0
        return value

    @field_validator("resets_at", mode="before")
    @classmethod
    def _string_or_none(cls, value: Any) -> Any:
        if isinstance(value, str) and value:
            return value
        if value is not None:
            logger.debug("ignoring reset instant %r", value)
        return None


class UsageResponse(BaseModel):
    """Parsed usage endpoint response. Missing windows are empty windows."""

    model_config = ConfigDict(extra="ignore")

    five_hour: UsageWindowData = Field(default_factory=UsageWindowData)
    seven_day: UsageWindowData = Field(default_factory=UsageWindowData)
    seven_day_sonnet: UsageWindowData = Field(default_factory=UsageWindowData)

    @field_validator("five_hour", "seven_day", "seven_day_sonnet", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value


def read_token(credentials_path: Path) -> str:
    """Read the OAuth access token from the Claude Code credentials file."""
    if not credentials_path.exists():
        raise ConfigUnavailable("Claude credentials not found")
    try:
        data = json.loads(credentials_path.read_text())
        token = data["claudeAiOauth"]["accessToken"]
    except (OSError, json.JSONDecodeError, KeyError, TypeError) as exc:
        logger.debug("no token in %s: %s", credentials_path, exc)
        raise AuthUnavailable("No OAuth token found") from exc
    if not isinstance(token, str) or not token:
        raise AuthUnavailable("No OAuth token found")
    return token


def fetch_usage(token: str, timeout: float = FETCH_TIMEOUT) -> bytes:
    """Fetch the raw usage JSON. One attempt, bounded by `timeout`."""
    headers = {
        "Authorization": f"Bearer {token}",
        "anthropic-beta": OAUTH_BETA,
    }
    try:
        resp = httpx.get(OAUTH_USAGE_URL, headers=headers, timeout=timeout)
    except httpx.HTTPError as exc:
        raise FetchFailed(f"Network error: {exc}") from exc

    if resp.status_code != 200:
        raise FetchFailed(f"API returned status {resp.status_code}")
    logger.debug("fetched usage (%d bytes)", len(resp.content))
    return resp.content


def parse_usage(raw: bytes) -> UsageResponse:
    """Parse raw usage JSON, rejecting error payloads."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise FetchFailed("Failed to fetch usage data") from exc
    if not isinstance(data, dict):
        raise FetchFailed("Failed to fetch usage data")
    if data.get("error"):
        logger.debug("usage endpoint returned an error: %r", data["error"])
        raise FetchFailed("Failed to fetch usage data")
    try:
        return UsageResponse.model_validate(data)
    except ValidationError as exc:
        raise FetchFailed("Failed to fetch usage data") from exc
