"""Tests for the Client facade."""

from __future__ import annotations

import json
import logging
from typing import Any
from unittest.mock import patch

import httpx
import pytest

from firetree.client import Client
from firetree.exceptions import TokenError
from firetree.models import HTTPMethod, OutcomeKind, Profile, RequestConfig

HOST = "https://db.example.com/"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _static_transport(content: bytes, status_code: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, content=content)

    return httpx.MockTransport(handler)


def _failing_transport(exc_type: type[Exception] = httpx.ConnectError) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc_type("simulated failure", request=request)

    return httpx.MockTransport(handler)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_make_defaults(self) -> None:
        client = Client.make(HOST)
        assert client.address.host == HOST
        assert client.address.path == ""
        assert client.token is None
        assert client.request_config.timeout == 10
        assert client.request_config.verify_ssl is False
        assert client.filters.is_empty()

    def test_make_with_token_and_timeout(self) -> None:
        client = Client.make(HOST, "tok", 3)
        assert client.token == "tok"
        assert client.request_config.timeout == 3

    def test_from_profile(self) -> None:
        profile = Profile(
            name="prod",
            host=HOST,
            request=RequestConfig(timeout=4, verify_ssl=True),
        )
        client = Client.from_profile(profile, "tok")
        assert client.address.host == HOST
        assert client.token == "tok"
        assert client.request_config.timeout == 4
        assert client.request_config.verify_ssl is True


# ---------------------------------------------------------------------------
# Navigation versus filters
# ---------------------------------------------------------------------------


class TestChild:
    def test_child_appends_path(self) -> None:
        client = Client.make(HOST, "tok").child("users/42")
        assert client.address.host == HOST
        assert client.address.path == "users/42"
        assert client.url() == "https://db.example.com/users/42.json?auth=tok"

    def test_children_compose(self) -> None:
        client = Client.make(HOST).child("a").child("/b")
        assert client.address.path == "a/b"

    @pytest.mark.parametrize(("a", "b"), [("x", "y"), ("users/", "7"), ("", "z"), ("a b", "%")])
    def test_child_concatenates_verbatim(self, a: str, b: str) -> None:
        client = Client.make(HOST).child(a).child(b)
        assert client.address.base == HOST + a + b

    def test_child_is_new_instance(self) -> None:
        parent = Client.make(HOST)
        child = parent.child("users")
        assert child is not parent
        assert parent.address.path == ""

    def test_child_shares_token_timeout_and_verify(self) -> None:
        parent = Client(HOST, "tok", timeout=3, verify_ssl=True)
        child = parent.child("users")
        assert child.token == "tok"
        assert child.request_config.timeout == 3
        assert child.request_config.verify_ssl is True

    def test_child_does_not_inherit_filters(self) -> None:
        parent = Client.make(HOST).order_by("age").limit_to_first(2)
        child = parent.child("users")
        assert child.filters.is_empty()
        assert child.filters is not parent.filters
        assert "orderBy" not in child.url()


class TestFilterBuilder:
    def test_setters_return_same_instance(self) -> None:
        client = Client.make(HOST)
        assert client.order_by("a") is client
        assert client.equal_to("b") is client
        assert client.start_at("c") is client
        assert client.end_at("d") is client
        assert client.limit_to_first(1) is client
        assert client.limit_to_last(2) is client

    def test_setters_store_values(self) -> None:
        client = Client.make(HOST).order_by("age").start_at(18).end_at(65).limit_to_last(3)
        assert client.filters.order_by == "age"
        assert client.filters.start_at == 18
        assert client.filters.end_at == 65
        assert client.filters.limit_to_last == 3

    def test_last_write_wins(self) -> None:
        client = Client.make(HOST).order_by("a").order_by("b")
        assert client.filters.order_by == "b"

    def test_clear_filters(self) -> None:
        client = Client.make(HOST).order_by("a").equal_to("x")
        assert client.clear_filters() is client
        assert client.filters.is_empty()

    def test_scenario_url(self) -> None:
        client = (
            Client.make("https://db.example.com/", "tok123")
            .child("users/42")
            .order_by("age")
            .limit_to_first(5)
        )
        assert client.url() == (
            'https://db.example.com/users/42.json?auth=tok123&orderBy="age"&limitToFirst=5'
        )

    def test_filters_persist_across_calls(self, store) -> None:
        client = Client(HOST, transport=store.transport).order_by("age").limit_to_first(2)
        client.get()
        client.get()
        assert len(store.requests) == 2
        for request in store.requests:
            assert request.url.params["orderBy"] == '"age"'
            assert request.url.params["limitToFirst"] == "2"


# ---------------------------------------------------------------------------
# CRUD against the stub store
# ---------------------------------------------------------------------------


class TestCrud:
    def test_get_sends_filters(self, store) -> None:
        Client(HOST, "tok123", transport=store.transport).child("users/42").order_by(
            "age"
        ).limit_to_first(5).get()
        request = store.last
        assert request.method == "GET"
        assert request.url.path == "/users/42.json"
        assert request.url.params["auth"] == "tok123"
        assert request.url.params["orderBy"] == '"age"'
        assert request.url.params["limitToFirst"] == "5"
        assert request.content == b""

    def test_set_then_get_round_trip(self, store) -> None:
        data = {"name": "Ada", "langs": ["en", "fr"], "age": 36, "active": True, "ratio": 0.5}
        node = Client(HOST, transport=store.transport).child("users/ada")
        node.set(data)
        assert node.get() == data

    def test_set_round_trip_scalar(self, store) -> None:
        node = Client(HOST, transport=store.transport).child("counter")
        assert node.set(7) == 7
        assert node.get() == 7

    def test_set_uses_put_with_json_headers(self, store) -> None:
        data = {"city": "Zürich", "n": 1}
        Client(HOST, "t", transport=store.transport).child("places/1").set(data)
        request = store.last
        expected = json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        assert request.method == "PUT"
        assert request.content == expected
        assert request.headers["content-type"] == "application/json"
        assert request.headers["content-length"] == str(len(expected))
        assert request.url.params["auth"] == "t"

    def test_push_returns_opaque_envelope(self, store) -> None:
        messages = Client(HOST, transport=store.transport).child("messages")
        result = messages.push({"text": "hi"})
        assert store.last.method == "POST"
        assert isinstance(result, dict)
        key = result["name"]
        assert messages.child(f"/{key}").get() == {"text": "hi"}

    def test_update_uses_patch(self, store) -> None:
        node = Client(HOST, transport=store.transport).child("users/1")
        node.set({"a": 1, "b": 2})
        assert node.update({"b": 3}) == {"b": 3}
        assert store.last.method == "PATCH"
        assert node.get() == {"a": 1, "b": 3}

    def test_delete_sends_empty_body(self, store) -> None:
        node = Client(HOST, transport=store.transport).child("users/1")
        node.set({"a": 1})
        assert node.delete() is None
        request = store.last
        assert request.method == "DELETE"
        assert request.content == b""
        assert "content-type" not in request.headers
        assert node.get() is None

    def test_store_null_is_a_success(self, store) -> None:
        client = Client(HOST, transport=store.transport).child("missing")
        outcome = client.execute(HTTPMethod.GET)
        assert outcome.ok
        assert outcome.value is None

    def test_missing_node_is_sent_as_null(self, store) -> None:
        with httpx.Client(transport=store.transport) as http:
            response = http.get(f"{HOST}missing.json")
        assert response.content == b"null"

    def test_error_status_body_is_returned(self) -> None:
        body = b'{"error": "Permission denied"}'
        client = Client(HOST, transport=_static_transport(body, status_code=401))
        assert client.get() == {"error": "Permission denied"}


# ---------------------------------------------------------------------------
# Failure collapse
# ---------------------------------------------------------------------------


class TestFailureCollapse:
    @pytest.mark.parametrize("body", [b"<html>oops</html>", b"", b"{truncated"])
    def test_malformed_json_returns_none(self, body: bytes) -> None:
        client = Client(HOST, transport=_static_transport(body))
        assert client.get() is None
        assert client.set({"a": 1}) is None
        assert client.push({"a": 1}) is None
        assert client.update({"a": 1}) is None
        assert client.delete() is None

    @pytest.mark.parametrize("exc_type", [httpx.ConnectError, httpx.ReadTimeout, httpx.ConnectTimeout])
    def test_transport_failure_returns_none(self, exc_type: type[Exception]) -> None:
        client = Client(HOST, transport=_failing_transport(exc_type))
        assert client.get() is None
        assert client.set([1, 2]) is None
        assert client.push("x") is None
        assert client.update({"a": 1}) is None
        assert client.delete() is None

    def test_corrupt_content_encoding_returns_none(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"notgzip")

        client = Client(HOST, transport=httpx.MockTransport(handler))
        assert client.get() is None
        assert client.set({"a": 1}) is None
        assert client.push({"a": 1}) is None
        assert client.update({"a": 1}) is None
        assert client.delete() is None
        assert client.execute(HTTPMethod.GET).kind == OutcomeKind.TRANSPORT_FAILURE

    def test_deeply_nested_body_returns_none(self) -> None:
        client = Client(HOST, transport=_static_transport(b"[" * 100000 + b"]" * 100000))
        assert client.get() is None
        assert client.set({"a": 1}) is None
        assert client.push({"a": 1}) is None
        assert client.update({"a": 1}) is None
        assert client.delete() is None
        assert client.execute(HTTPMethod.GET).kind == OutcomeKind.DECODE_FAILURE

    def test_unencodable_data_returns_none_without_request(self, store) -> None:
        client = Client(HOST, transport=store.transport)
        assert client.set({"when": object()}) is None
        assert store.requests == []

    def test_execute_distinguishes_failures(self) -> None:
        broken = Client(HOST, transport=_failing_transport())
        garbled = Client(HOST, transport=_static_transport(b"nope"))
        assert broken.execute(HTTPMethod.GET).kind == OutcomeKind.TRANSPORT_FAILURE
        assert garbled.execute(HTTPMethod.GET).kind == OutcomeKind.DECODE_FAILURE
        assert garbled.execute(HTTPMethod.PUT, {1, 2}).kind == OutcomeKind.ENCODE_FAILURE

    def test_collapse_logs_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        client = Client(HOST, transport=_failing_transport()).child("users")
        with caplog.at_level(logging.WARNING, logger="firetree.client"):
            assert client.get() is None
        assert "transport_failure" in caplog.text
        assert "https://db.example.com/users" in caplog.text


# ---------------------------------------------------------------------------
# Token generation
# ---------------------------------------------------------------------------


class TestGenerateToken:
    def test_returns_token(self) -> None:
        token = Client.generate_token("s" * 40, {"uid": "user-1"})
        assert isinstance(token, str)
        assert token.count(".") == 2

    def test_issuer_error_returns_false(self) -> None:
        with patch("firetree.client.issue_token", side_effect=TokenError("bad claims")):
            assert Client.generate_token("secret", {"uid": "x"}) is False

    def test_invalid_input_returns_false(self) -> None:
        assert Client.generate_token("", {"uid": "x"}) is False
        assert Client.generate_token("s" * 40, {"name": "no uid"}) is False

    def test_passes_arguments_through(self) -> None:
        captured: dict[str, Any] = {}

        def fake_issue(secret, claims, options=None):
            captured.update(secret=secret, claims=claims, options=options)
            return "token"

        with patch("firetree.client.issue_token", side_effect=fake_issue):
            assert Client.generate_token("sec", {"uid": "u"}) == "token"
        assert captured == {"secret": "sec", "claims": {"uid": "u"}, "options": None}
