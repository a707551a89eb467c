"""`search_slack` table function driver: bind -> init -> pull.

The host engine drives the lifecycle:

    fn = SlackSearchFunction()
    bind = fn.bind("deploy failed")      # validate argument, fix the schema
    state = fn.init(bind)                # one HTTP call, buffer all rows
    while True:
        batch = fn.pull(state, 2048)     # non-blocking, drains the buffer
        if not batch:
            break

A `BindState` is frozen and may be shared by any number of scans; every scan
owns its own `ScanState`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Tuple

from duckdb_slack.config import DEFAULT_BATCH_SIZE, SEARCH_PAGE_SIZE
from duckdb_slack.errors import ErrorKind, SearchFailure, SlackSearchError, fail
from duckdb_slack.response_parser import ParseResult, parse_search_response
from duckdb_slack.rows import OUTPUT_COLUMNS, OUTPUT_TYPES, MaterializedRow, materialize_all
from duckdb_slack.slack_client import SearchResponse, search_messages_raw


logger = logging.getLogger(__name__)

FUNCTION_NAME = "search_slack"


@dataclass(frozen=True)
class BindState:
    query: str
    names: Tuple[str, ...] = OUTPUT_COLUMNS
    types: Tuple[str, ...] = OUTPUT_TYPES


@dataclass
class ScanState:
    rows: List[MaterializedRow] = field(default_factory=list)
    offset: int = 0
    initialized: bool = False

    @property
    def remaining(self) -> int:
        return len(self.rows) - self.offset

    @property
    def done(self) -> bool:
        return not self.initialized or self.offset >= len(self.rows)


class SlackSearchFunction:
    """Bind/init/pull cursor over one Slack search.

    `search` and `parse` are injectable so a host (or a test) can swap the
    transport without touching the state machine.
    """

    def __init__(
        self,
        *,
        search: Callable[[str], SearchResponse] = search_messages_raw,
        parse: Callable[[str], ParseResult] = parse_search_response,
    ) -> None:
        self._search = search
        self._parse = parse

    def bind(self, *args: object) -> BindState:
        if len(args) != 1:
            raise fail(ErrorKind.ARGUMENT, f"{FUNCTION_NAME} expects exactly one argument (search query)")
        query = args[0]
        if query is None:
            raise fail(ErrorKind.ARGUMENT, f"{FUNCTION_NAME} query cannot be NULL")
        if not isinstance(query, str):
            raise fail(ErrorKind.TYPE, f"{FUNCTION_NAME} query must be a string, got {type(query).__name__}")
        return BindState(query=query)

    def init(self, bind: BindState) -> ScanState:
        res = self._search(bind.query)
        if not res.ok or res.body is None:
            cause = res.error or SearchFailure(kind=ErrorKind.TRANSPORT, message="empty response")
            raise self._execution_error(cause)

        parsed = self._parse(res.body)
        if not parsed.ok:
            cause = parsed.error or SearchFailure(kind=ErrorKind.PARSE, message="unparseable response")
            raise self._execution_error(cause)

        rows = materialize_all(parsed.matches[:SEARCH_PAGE_SIZE])
        logger.info("%s buffered %d row(s)", FUNCTION_NAME, len(rows))
        return ScanState(rows=rows, offset=0, initialized=True)

    def pull(self, state: ScanState, capacity: int = DEFAULT_BATCH_SIZE) -> List[tuple]:
        """Emit up to `capacity` buffered rows; [] once drained (or never initialized).

        A drained scan answers [] for any capacity. On a live scan a capacity
        below 1 is rejected so a zero-size batch cannot pass for end of data.
        """

        if state.done:
            return []
        if int(capacity) < 1:
            raise fail(ErrorKind.ARGUMENT, f"batch capacity must be >= 1, got {capacity}")

        n = min(int(capacity), state.remaining)
        batch = [r.as_tuple() for r in state.rows[state.offset : state.offset + n]]
        state.offset += n
        return batch

    def scan(self, query: object, *, batch_size: int = DEFAULT_BATCH_SIZE) -> Iterator[List[tuple]]:
        """Run the whole lifecycle, yielding non-empty batches."""

        state = self.init(self.bind(query))
        while True:
            batch = self.pull(state, batch_size)
            if not batch:
                return
            yield batch

    @staticmethod
    def _execution_error(cause: SearchFailure) -> SlackSearchError:
        logger.warning("%s failed: %s", FUNCTION_NAME, cause.kind.value)
        return SlackSearchError(
            SearchFailure(
                kind=ErrorKind.EXECUTION,
                message=f"Failed to search Slack: {cause.message}",
                status_code=cause.status_code,
                offset=cause.offset,
                cause=cause,
            )
        )


def search_slack_rows(query: str, **kw) -> List[MaterializedRow]:
    """Convenience: bind + init and return the buffered rows."""

    fn = SlackSearchFunction(**kw)
    return list(fn.init(fn.bind(query)).rows)
