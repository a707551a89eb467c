"""Failure taxonomy shared by the client, parser and search function.

Failures travel as `SearchFailure` values inside result dataclasses. Where the
host engine needs an exception (bind/init), a single `SlackSearchError` wraps
the failure; callers branch on `.kind` instead of on exception subclasses.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class ErrorKind(str, enum.Enum):
    CONFIGURATION = "configuration"
    ARGUMENT = "argument"
    TYPE = "type"
    TRANSPORT = "transport"
    HTTP_STATUS = "http_status"
    API = "api"
    PARSE = "parse"
    EXECUTION = "execution"


@dataclass(frozen=True)
class SearchFailure:
    kind: ErrorKind
    message: str
    status_code: Optional[int] = None
    body: Optional[str] = None
    offset: Optional[int] = None
    cause: Optional["SearchFailure"] = None

    def describe(self) -> str:
        """One-line human description, including the wrapped cause if any."""

        out = f"{self.kind.value}: {self.message}"
        if self.status_code is not None:
            out += f" (status={self.status_code})"
        if self.offset is not None:
            out += f" (offset={self.offset})"
        if self.cause is not None:
            out += f" <- {self.cause.describe()}"
        return out


class SlackSearchError(RuntimeError):
    def __init__(self, failure: SearchFailure):
        super().__init__(failure.message)
        self.failure = failure

    @property
    def kind(self) -> ErrorKind:
        return self.failure.kind

    @property
    def cause_failure(self) -> Optional[SearchFailure]:
        return self.failure.cause


def fail(kind: ErrorKind, message: str, **kw) -> SlackSearchError:
    return SlackSearchError(SearchFailure(kind=kind, message=str(message), **kw))
