"""Tests for firetree.query -- URL composition."""

from __future__ import annotations

import pytest

from firetree.models import FilterState, NodeAddress
from firetree.query import compose_url, format_value, is_set

HOST = "https://db.example.com/"


def _addr(path: str = "users") -> NodeAddress:
    return NodeAddress(host=HOST, path=path)


class TestBase:
    def test_no_token_no_filters(self) -> None:
        assert compose_url(_addr()) == "https://db.example.com/users.json"

    def test_empty_path(self) -> None:
        assert compose_url(NodeAddress(host=HOST)) == "https://db.example.com/.json"

    def test_empty_filter_state(self) -> None:
        assert compose_url(_addr(), None, FilterState()) == "https://db.example.com/users.json"

    def test_empty_token_is_absent(self) -> None:
        assert compose_url(_addr(), "") == "https://db.example.com/users.json"


class TestToken:
    def test_token_only(self) -> None:
        assert compose_url(_addr(), "T") == "https://db.example.com/users.json?auth=T"

    def test_token_with_unordered_filters(self) -> None:
        filters = FilterState(equal_to="x", limit_to_first=3)
        assert compose_url(_addr(), "T", filters) == "https://db.example.com/users.json?auth=T"


class TestOrdering:
    def test_order_by_without_token_uses_question_mark(self) -> None:
        url = compose_url(_addr(), None, FilterState(order_by="age"))
        assert url == 'https://db.example.com/users.json?orderBy="age"'

    def test_order_by_with_token_uses_ampersand(self) -> None:
        url = compose_url(_addr(), "T", FilterState(order_by="age"))
        assert url == 'https://db.example.com/users.json?auth=T&orderBy="age"'

    def test_full_clause_order(self) -> None:
        filters = FilterState(
            order_by="score",
            equal_to="10",
            start_at="1",
            end_at="99",
            limit_to_first=5,
            limit_to_last=2,
        )
        url = compose_url(_addr(), "T", filters)
        assert url == (
            'https://db.example.com/users.json?auth=T&orderBy="score"'
            "&equalTo=10&startAt=1&endAt=99&limitToFirst=5&limitToLast=2"
        )

    def test_only_set_fields_appear(self) -> None:
        filters = FilterState(order_by="name", end_at="m", limit_to_last=4)
        url = compose_url(_addr(), "T", filters)
        assert url == 'https://db.example.com/users.json?auth=T&orderBy="name"&endAt=m&limitToLast=4'

    def test_setter_order_does_not_matter(self) -> None:
        a = FilterState(order_by="k", limit_to_last=1, start_at="a")
        b = FilterState(start_at="a", limit_to_last=1, order_by="k")
        assert compose_url(_addr(), None, a) == compose_url(_addr(), None, b)

    def test_operands_are_not_quoted(self) -> None:
        url = compose_url(_addr(), None, FilterState(order_by="$key", equal_to="alice"))
        assert url.endswith('?orderBy="$key"&equalTo=alice')


class TestGating:
    def test_equal_to_without_order_by_is_dropped(self) -> None:
        url = compose_url(_addr(), None, FilterState(equal_to="y"))
        assert "equalTo" not in url
        assert url == "https://db.example.com/users.json"

    def test_empty_order_by_counts_as_unset(self) -> None:
        url = compose_url(_addr(), "T", FilterState(order_by="", start_at="a"))
        assert url == "https://db.example.com/users.json?auth=T"


class TestValues:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(True, "true"), (False, "false"), (5, "5"), (2.5, "2.5"), ("abc", "abc")],
    )
    def test_format_value(self, value: object, expected: str) -> None:
        assert format_value(value) == expected

    def test_zero_limit_is_emitted(self) -> None:
        url = compose_url(_addr(), None, FilterState(order_by="a", limit_to_first=0))
        assert url.endswith("&limitToFirst=0")

    def test_is_set(self) -> None:
        assert not is_set(None)
        assert not is_set("")
        assert is_set(0)
        assert is_set(False)
        assert is_set("x")
