from __future__ import annotations

import json

import pytest
import requests

from conftest import FakeSession, make_body, make_match
from duckdb_slack import slack_client
from duckdb_slack.config import SlackSearchSettings
from duckdb_slack.errors import ErrorKind, SlackSearchError
from duckdb_slack.slack_client import build_search_url, search_messages, search_messages_raw


def test_build_search_url_percent_encodes_query() -> None:
    url = build_search_url("deploy failed & in:#ops/x", base_url="https://slack.com/api/")
    assert url == "https://slack.com/api/search.messages?query=deploy%20failed%20%26%20in%3A%23ops%2Fx&count=10"


def test_search_success_returns_body_and_sends_auth(slack_token: str) -> None:
    body = make_body([make_match(1)])
    sess = FakeSession(body)

    res = search_messages_raw("deploy failed", session=sess)

    assert res.ok
    assert res.status == 200
    assert res.body == body
    assert len(sess.calls) == 1
    call = sess.calls[0]
    assert call["url"].startswith("https://slack.com/api/search.messages?query=deploy%20failed&count=10")
    assert call["headers"]["Authorization"] == f"Bearer {slack_token}"
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["timeout"] == pytest.approx(30.0)
    assert sess.responses[0].closed
    # caller-owned session stays open
    assert sess.closed is False


def test_explicit_token_wins_over_env(slack_token: str) -> None:
    sess = FakeSession(make_body([]))
    search_messages_raw("q", token="xoxb-explicit", session=sess)
    assert sess.calls[0]["headers"]["Authorization"] == "Bearer xoxb-explicit"


def test_base_url_and_timeout_from_env(slack_token: str, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SLACK_API_BASE_URL", "http://127.0.0.1:9/api/")
    monkeypatch.setenv("SLACK_SEARCH_TIMEOUT_S", "2.5")
    sess = FakeSession(make_body([]))

    search_messages_raw("q", session=sess)

    assert sess.calls[0]["url"] == "http://127.0.0.1:9/api/search.messages?query=q&count=10"
    assert sess.calls[0]["timeout"] == pytest.approx(2.5)


def test_missing_token_fails_before_network(no_slack_token: None) -> None:
    sess = FakeSession(make_body([]))
    res = search_messages_raw("q", session=sess)

    assert not res.ok
    assert res.error.kind == ErrorKind.CONFIGURATION
    assert "SLACK_API_TOKEN" in res.error.message
    assert sess.calls == []


def test_blank_token_is_configuration_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SLACK_API_TOKEN", "   ")
    res = search_messages_raw("q", session=FakeSession(make_body([])))
    assert res.error.kind == ErrorKind.CONFIGURATION


def test_transport_error_carries_message(slack_token: str) -> None:
    sess = FakeSession(exc=requests.ConnectionError("name resolution failed"))
    res = search_messages_raw("q", session=sess)

    assert not res.ok
    assert res.status is None
    assert res.error.kind == ErrorKind.TRANSPORT
    assert "name resolution failed" in res.error.message


def test_timeout_is_transport_error(slack_token: str) -> None:
    res = search_messages_raw("q", session=FakeSession(exc=requests.Timeout("read timed out")))
    assert res.error.kind == ErrorKind.TRANSPORT


def test_non_200_is_http_status_error(slack_token: str) -> None:
    sess = FakeSession("rate limited", status_code=429)
    res = search_messages_raw("q", session=sess)

    assert res.error.kind == ErrorKind.HTTP_STATUS
    assert res.error.status_code == 429
    assert res.error.body == "rate limited"
    assert sess.responses[0].closed


def test_ok_false_with_error_field(slack_token: str) -> None:
    res = search_messages_raw("q", session=FakeSession(json.dumps({"ok": False, "error": "invalid_auth"})))

    assert res.error.kind == ErrorKind.API
    assert res.error.message == "invalid_auth"


def test_ok_false_without_error_field_carries_body(slack_token: str) -> None:
    body = '{"ok": false}'
    res = search_messages_raw("q", session=FakeSession(body))

    assert res.error.kind == ErrorKind.API
    assert body in res.error.message


def test_ok_false_in_non_json_body_uses_text_scanner(slack_token: str) -> None:
    body = '{"ok":false,"error":"ratelimited", <garbage'
    res = search_messages_raw("q", session=FakeSession(body))
    assert res.error.kind == ErrorKind.API
    assert res.error.message == "ratelimited"


def test_nested_ok_false_does_not_fail_request(slack_token: str) -> None:
    body = json.dumps({"ok": True, "messages": {"matches": [make_match(1, attachments=[{"ok": False}])]}})
    res = search_messages_raw("q", session=FakeSession(body))
    assert res.ok


def test_owned_session_is_closed_on_error(slack_token: str, monkeypatch: pytest.MonkeyPatch) -> None:
    created = []

    def _factory():
        s = FakeSession(exc=requests.ConnectionError("boom"))
        created.append(s)
        return s

    monkeypatch.setattr(slack_client.requests, "Session", _factory)

    res = search_messages_raw("q", settings=SlackSearchSettings())
    assert res.error.kind == ErrorKind.TRANSPORT
    assert len(created) == 1
    assert created[0].closed is True


def test_search_messages_raises_with_kind(slack_token: str) -> None:
    with pytest.raises(SlackSearchError) as ei:
        search_messages("q", session=FakeSession("nope", status_code=500))
    assert ei.value.kind == ErrorKind.HTTP_STATUS
    assert ei.value.failure.status_code == 500
