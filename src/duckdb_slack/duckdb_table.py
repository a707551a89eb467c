"""Expose `search_slack` results to DuckDB.

DuckDB's Python API has no table-function hook, so the cursor is driven through
an Arrow `RecordBatchReader`: every batch DuckDB asks for is one `pull()`.

    import duckdb
    from duckdb_slack.duckdb_table import search_slack

    con = duckdb.connect()
    search_slack(con, "deploy failed").fetchall()
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional

import duckdb
import pyarrow as pa

from duckdb_slack.config import load_settings
from duckdb_slack.search_function import SlackSearchFunction


logger = logging.getLogger(__name__)


SEARCH_SLACK_SCHEMA = pa.schema(
    [
        ("id", pa.string()),
        ("channel", pa.string()),
        ("username", pa.string()),
        ("timestamp", pa.timestamp("us")),
        ("text", pa.string()),
        ("permalink", pa.string()),
    ]
)


def _rows_to_arrow(batch: List[tuple]) -> pa.RecordBatch:
    cols = list(zip(*batch)) if batch else [() for _ in SEARCH_SLACK_SCHEMA]
    arrays = [pa.array(list(col), type=f.type) for col, f in zip(cols, SEARCH_SLACK_SCHEMA)]
    return pa.RecordBatch.from_arrays(arrays, schema=SEARCH_SLACK_SCHEMA)


def search_slack_reader(
    query: object,
    *,
    batch_size: Optional[int] = None,
    function: Optional[SlackSearchFunction] = None,
) -> pa.RecordBatchReader:
    """Bind and init eagerly, then hand out buffered rows batch by batch."""

    fn = function or SlackSearchFunction()
    size = int(batch_size) if batch_size else load_settings().batch_size
    state = fn.init(fn.bind(query))

    def _batches() -> Iterator[pa.RecordBatch]:
        while True:
            batch = fn.pull(state, size)
            if not batch:
                return
            yield _rows_to_arrow(batch)

    return pa.RecordBatchReader.from_batches(SEARCH_SLACK_SCHEMA, _batches())


def search_slack_table(query: object, **kw) -> pa.Table:
    return search_slack_reader(query, **kw).read_all()


def search_slack(
    con: duckdb.DuckDBPyConnection,
    query: object,
    *,
    batch_size: Optional[int] = None,
    function: Optional[SlackSearchFunction] = None,
) -> duckdb.DuckDBPyRelation:
    """Return a relation over one Slack search.

    The relation is backed by a single-pass reader; materialize it (fetchall,
    create table, ...) once.
    """

    reader = search_slack_reader(query, batch_size=batch_size, function=function)
    return con.from_arrow(reader)


def register_search_slack(
    con: duckdb.DuckDBPyConnection,
    view_name: str,
    query: object,
    *,
    batch_size: Optional[int] = None,
    function: Optional[SlackSearchFunction] = None,
) -> int:
    """Register the search results as a re-queryable view; returns the row count."""

    tbl = search_slack_table(query, batch_size=batch_size, function=function)
    con.register(str(view_name), tbl)
    logger.info("registered %s with %d row(s)", view_name, tbl.num_rows)
    return int(tbl.num_rows)
