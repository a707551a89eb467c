"""Environment-driven settings and the bearer-token resolver.

Everything is read lazily (at first use), never at import time:

  SLACK_API_TOKEN          bearer token (required for searches)
  SLACK_API_BASE_URL       Web API base URL (default: https://slack.com/api)
  SLACK_SEARCH_TIMEOUT_S   HTTP timeout in seconds (default: 30)
  SLACK_SEARCH_BATCH_SIZE  default pull capacity for the DuckDB adapter (default: 2048)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from duckdb_slack.errors import ErrorKind, fail


DEFAULT_BASE_URL = "https://slack.com/api"
DEFAULT_TIMEOUT_S = 30.0
DEFAULT_BATCH_SIZE = 2048

# Slack's search.messages page size; also the hard cap on emitted rows.
SEARCH_PAGE_SIZE = 10

TOKEN_ENV_VAR = "SLACK_API_TOKEN"


@dataclass(frozen=True)
class SlackSearchSettings:
    base_url: str = DEFAULT_BASE_URL
    timeout_s: float = DEFAULT_TIMEOUT_S
    batch_size: int = DEFAULT_BATCH_SIZE

    @property
    def search_url(self) -> str:
        return self.base_url.rstrip("/") + "/search.messages"


def _env_float(name: str, default: float) -> float:
    try:
        v = float((os.environ.get(name) or str(default)).strip() or str(default))
    except Exception:
        v = default
    return v if v > 0 else default


def _env_int(name: str, default: int) -> int:
    try:
        v = int((os.environ.get(name) or str(default)).strip() or str(default))
    except Exception:
        v = default
    return max(1, int(v))


def load_settings() -> SlackSearchSettings:
    base_url = (os.environ.get("SLACK_API_BASE_URL") or DEFAULT_BASE_URL).strip() or DEFAULT_BASE_URL
    return SlackSearchSettings(
        base_url=base_url,
        timeout_s=_env_float("SLACK_SEARCH_TIMEOUT_S", DEFAULT_TIMEOUT_S),
        batch_size=_env_int("SLACK_SEARCH_BATCH_SIZE", DEFAULT_BATCH_SIZE),
    )


def resolve_token() -> str:
    """Return the Slack bearer token from the environment.

    Raises SlackSearchError(kind=CONFIGURATION) when unset or blank.
    """

    token = (os.environ.get(TOKEN_ENV_VAR) or "").strip()
    if not token:
        raise fail(
            ErrorKind.CONFIGURATION,
            f"{TOKEN_ENV_VAR} environment variable is not set. Please set it before using search_slack.",
        )
    return token
