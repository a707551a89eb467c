"""Map parsed match records onto the fixed 6-column output row."""

from __future__ import annotations

import decimal
from dataclasses import astuple, dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from duckdb_slack.response_parser import MatchRecord


OUTPUT_COLUMNS: Tuple[str, ...] = ("id", "channel", "username", "timestamp", "text", "permalink")

# DuckDB logical type names, in column order.
OUTPUT_TYPES: Tuple[str, ...] = ("VARCHAR", "VARCHAR", "VARCHAR", "TIMESTAMP", "VARCHAR", "VARCHAR")

_EPOCH = datetime(1970, 1, 1)

# Seconds since the epoch representable as a datetime (year 1 .. year 9999).
_MIN_SECONDS = decimal.Decimal(-62135596800)
_MAX_SECONDS = decimal.Decimal(253402300800)


@dataclass(frozen=True)
class MaterializedRow:
    id: str
    channel: str
    username: str
    timestamp: Optional[datetime]
    text: str
    permalink: str

    def as_tuple(self) -> tuple:
        return astuple(self)


def parse_slack_ts(raw: str) -> Optional[datetime]:
    """Convert a Slack `ts` ("<seconds>.<micros>") to a naive UTC datetime.

    The seconds value is scaled to microseconds and truncated toward zero.
    Empty, non-numeric, non-finite or out-of-range input gives None.
    """

    s = (raw or "").strip()
    if not s:
        return None
    try:
        seconds = decimal.Decimal(s)
    except decimal.InvalidOperation:
        return None
    if not seconds.is_finite() or not (_MIN_SECONDS <= seconds < _MAX_SECONDS):
        return None

    try:
        micros = int(seconds * 1_000_000)
    except decimal.DecimalException:
        return None
    try:
        return _EPOCH + timedelta(microseconds=micros)
    except OverflowError:
        return None


def materialize(m: MatchRecord) -> MaterializedRow:
    return MaterializedRow(
        id=m.id,
        channel=m.channel_name,
        username=m.username,
        timestamp=parse_slack_ts(m.timestamp_raw),
        text=m.text,
        permalink=m.permalink,
    )


def materialize_all(matches: List[MatchRecord]) -> List[MaterializedRow]:
    return [materialize(m) for m in matches]
