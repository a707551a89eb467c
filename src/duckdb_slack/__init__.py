"""Slack message search for DuckDB.

`duckdb_slack.search_function` holds the bind/init/pull driver; the HTTP,
parsing and row-mapping layers live in their own modules. DuckDB glue is in
`duckdb_slack.duckdb_table`.
"""

from .errors import ErrorKind, SearchFailure, SlackSearchError
from .search_function import BindState, ScanState, SlackSearchFunction

__all__ = [
    "BindState",
    "ErrorKind",
    "ScanState",
    "SearchFailure",
    "SlackSearchError",
    "SlackSearchFunction",
]
