"""Turn a `search.messages` response body into ordered match records.

`parse_search_response()` is the canonical path: a full `json.loads` followed by a
walk of `messages.matches`. `parse_search_response_tolerant()` keeps the older
text-scanning behavior for bodies that do not parse.

Both cap the output at `SEARCH_PAGE_SIZE` (10) records and preserve API order.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from duckdb_slack.config import SEARCH_PAGE_SIZE
from duckdb_slack.errors import ErrorKind, SearchFailure
from duckdb_slack.json_utils import (
    extract_string_field,
    find_object_span,
    get_object_field,
    get_string_field,
    scan_match_objects,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchRecord:
    id: str = ""
    channel_name: str = ""
    username: str = ""
    timestamp_raw: str = ""
    text: str = ""
    permalink: str = ""


@dataclass(frozen=True)
class ParseResult:
    ok: bool
    matches: List[MatchRecord] = field(default_factory=list)
    error: Optional[SearchFailure] = None


def _as_text(raw: Union[str, bytes]) -> str:
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8")
    return str(raw)


def _byte_offset(text: str, char_pos: int) -> int:
    return len(text[: max(0, int(char_pos))].encode("utf-8", errors="surrogatepass"))


def match_from_object(obj: Any) -> MatchRecord:
    """Build a MatchRecord from one parsed match object (tolerant per field)."""

    match_id = get_string_field(obj, "iid") or get_string_field(obj, "id")
    channel = get_object_field(obj, "channel")
    return MatchRecord(
        id=match_id,
        channel_name=get_string_field(channel, "name"),
        username=get_string_field(obj, "username"),
        timestamp_raw=get_string_field(obj, "ts"),
        text=get_string_field(obj, "text"),
        permalink=get_string_field(obj, "permalink"),
    )


def matches_from_document(doc: Any, *, limit: int = SEARCH_PAGE_SIZE) -> List[MatchRecord]:
    """Walk `messages.matches` of an already-parsed document.

    A document without the expected shape yields no matches rather than an error.
    """

    messages = get_object_field(doc, "messages")
    items = messages.get("matches") if messages is not None else None
    if not isinstance(items, list):
        return []

    out: List[MatchRecord] = []
    for it in items:
        if len(out) >= int(limit):
            break
        if not isinstance(it, dict):
            continue
        out.append(match_from_object(it))
    return out


def parse_search_response(raw: Union[str, bytes], *, limit: int = SEARCH_PAGE_SIZE) -> ParseResult:
    try:
        text = _as_text(raw)
    except UnicodeDecodeError as e:
        return ParseResult(
            ok=False,
            error=SearchFailure(kind=ErrorKind.PARSE, message=f"invalid UTF-8: {e.reason}", offset=int(e.start)),
        )

    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        offset = _byte_offset(text, e.pos)
        logger.debug("search response is not valid JSON at byte %d: %s", offset, e.msg)
        return ParseResult(
            ok=False,
            error=SearchFailure(kind=ErrorKind.PARSE, message=f"{e.msg} at byte {offset}", offset=offset),
        )

    matches = matches_from_document(doc, limit=limit)
    logger.debug("parsed %d match(es) from %d byte response", len(matches), len(text))
    return ParseResult(ok=True, matches=matches)


def match_from_text(obj_text: str) -> MatchRecord:
    """Build a MatchRecord from the raw text of one match object."""

    start, end = find_object_span(obj_text, "channel")
    channel_text = obj_text[start:end] if start >= 0 else ""
    # Keep the channel's own "id"/"name" from shadowing the match's top-level fields.
    top_level = obj_text[:start] + "{}" + obj_text[end:] if start >= 0 else obj_text
    return MatchRecord(
        id=extract_string_field(top_level, "iid") or extract_string_field(top_level, "id"),
        channel_name=extract_string_field(channel_text, "name"),
        username=extract_string_field(top_level, "username"),
        timestamp_raw=extract_string_field(top_level, "ts"),
        text=extract_string_field(top_level, "text"),
        permalink=extract_string_field(top_level, "permalink"),
    )


def parse_search_response_tolerant(raw: Union[str, bytes], *, limit: int = SEARCH_PAGE_SIZE) -> List[MatchRecord]:
    """Scanner-based parse; never fails, returns whatever match objects it can find."""

    if isinstance(raw, (bytes, bytearray)):
        text = bytes(raw).decode("utf-8", errors="replace")
    else:
        text = str(raw)
    return [match_from_text(obj) for obj in scan_match_objects(text, array_key="matches", limit=int(limit))]
