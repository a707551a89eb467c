"""Slack Web API integration (HTTP client).

This module contains only the outbound `search.messages` call and the
classification of its outcome. Turning the body into rows lives in
`duckdb_slack.response_parser` / `duckdb_slack.rows`.
"""

from __future__ import annotations

import json
import logging
import re
import urllib.parse
from dataclasses import dataclass
from typing import Optional

import requests

from duckdb_slack.config import SEARCH_PAGE_SIZE, SlackSearchSettings, load_settings, resolve_token
from duckdb_slack.errors import ErrorKind, SearchFailure, SlackSearchError
from duckdb_slack.json_utils import extract_string_field, get_string_field


logger = logging.getLogger(__name__)


_OK_FALSE_RE = re.compile(r'"ok"\s*:\s*false')


@dataclass(frozen=True)
class SearchResponse:
    ok: bool
    status: Optional[int]
    url: str
    body: Optional[str]
    error: Optional[SearchFailure]


def build_search_url(query: str, *, base_url: str, count: int = SEARCH_PAGE_SIZE) -> str:
    # quote(safe="") encodes everything outside RFC 3986 unreserved, incl. "/" and " " -> %20.
    encoded = urllib.parse.quote(str(query), safe="")
    return f"{base_url.rstrip('/')}/search.messages?query={encoded}&count={int(count)}"


def _api_declined(body: str) -> bool:
    """True when the body's top-level `ok` is explicitly false."""

    try:
        doc = json.loads(body)
    except ValueError:
        return bool(_OK_FALSE_RE.search(body))
    return isinstance(doc, dict) and doc.get("ok") is False


def extract_api_error(body: str) -> str:
    """Best-effort read of the top-level `error` string from a Slack error body."""

    try:
        doc = json.loads(body)
    except ValueError:
        doc = None
    if isinstance(doc, dict):
        err = get_string_field(doc, "error")
        if err:
            return err
    return extract_string_field(body, "error")


def search_messages_raw(
    query: str,
    *,
    token: Optional[str] = None,
    session: Optional[requests.Session] = None,
    settings: Optional[SlackSearchSettings] = None,
) -> SearchResponse:
    """Run one `search.messages` request and classify the outcome.

    The query is expected to be validated (non-empty string) by the caller.
    A caller-supplied `session` is used as-is and left open; otherwise a
    request-scoped session is opened and closed here.
    """

    settings = settings or load_settings()
    url_base = settings.search_url

    tok = (token or "").strip()
    if not tok:
        try:
            tok = resolve_token()
        except SlackSearchError as e:
            return SearchResponse(ok=False, status=None, url=url_base, body=None, error=e.failure)

    url = build_search_url(query, base_url=settings.base_url)
    headers = {
        "Authorization": f"Bearer {tok}",
        "Content-Type": "application/json",
    }

    logger.debug("GET %s (query_chars=%d timeout_s=%.1f)", url_base, len(query), settings.timeout_s)

    owned = session is None
    sess = requests.Session() if owned else session
    try:
        try:
            with sess.get(url, headers=headers, timeout=settings.timeout_s) as resp:
                status = int(resp.status_code)
                body = resp.text
        except requests.RequestException as e:
            logger.warning("Slack search transport failure: %s", type(e).__name__)
            return SearchResponse(
                ok=False,
                status=None,
                url=url,
                body=None,
                error=SearchFailure(kind=ErrorKind.TRANSPORT, message=f"HTTP request failed: {e}"),
            )
    finally:
        if owned:
            sess.close()

    if status != 200:
        logger.warning("Slack search HTTP %d (%d bytes)", status, len(body))
        return SearchResponse(
            ok=False,
            status=status,
            url=url,
            body=body,
            error=SearchFailure(
                kind=ErrorKind.HTTP_STATUS,
                message=f"Slack API returned error code: {status}. Response: {body}",
                status_code=status,
                body=body,
            ),
        )

    if _api_declined(body):
        err = extract_api_error(body)
        logger.warning("Slack search API error: %s", err or "<no error field>")
        return SearchResponse(
            ok=False,
            status=status,
            url=url,
            body=body,
            error=SearchFailure(
                kind=ErrorKind.API,
                message=err if err else f"Slack API returned an error. Response: {body}",
                status_code=status,
                body=body,
            ),
        )

    logger.debug("Slack search OK (%d bytes)", len(body))
    return SearchResponse(ok=True, status=status, url=url, body=body, error=None)


def search_messages(query: str, **kw) -> str:
    """Like `search_messages_raw()` but returns the body or raises SlackSearchError."""

    res = search_messages_raw(query, **kw)
    if not res.ok or res.body is None:
        raise SlackSearchError(res.error or SearchFailure(kind=ErrorKind.TRANSPORT, message="empty response"))
    return res.body
