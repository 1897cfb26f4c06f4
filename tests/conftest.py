"""Shared test fixtures for firetree.

Provides an in-memory stub of the tree store served through
:class:`httpx.MockTransport`, config isolation, and output-state cleanup.
These fixtures are discovered by pytest automatically.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx
import pytest

from firetree.app import _configure_logging
from firetree.output import reset_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and verbose logging after every test.

    The manager caches references to sys.stdout/sys.stderr; CliRunner swaps
    those streams per invocation, so a stale manager would write to closed
    files. The same goes for a RichHandler left behind by `--verbose`.
    """
    yield
    reset_output()
    _configure_logging(False, None)


# ---------------------------------------------------------------------------
# Stub store
# ---------------------------------------------------------------------------


def _reply(value: Any, status_code: int = 200) -> httpx.Response:
    """Serialise *value* as the store does; ``None`` goes out as ``null``."""
    return httpx.Response(status_code, content=json.dumps(value).encode("utf-8"))


class StubStore:
    """A tiny in-memory tree store speaking the REST protocol.

    Every handled request is appended to :attr:`requests` so tests can
    inspect URLs, headers and bodies.
    """

    def __init__(self, data: Any = None) -> None:
        self.data = data
        self.requests: list[httpx.Request] = []
        self._next_id = 0

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    @staticmethod
    def _keys(request: httpx.Request) -> list[str]:
        path = request.url.path
        assert path.endswith(".json"), path
        return [k for k in path[: -len(".json")].split("/") if k]

    def _get(self, keys: list[str]) -> Any:
        node = self.data
        for key in keys:
            if not isinstance(node, dict) or key not in node:
                return None
            node = node[key]
        return node

    def _put(self, keys: list[str], value: Any) -> None:
        if not keys:
            self.data = value
            return
        if not isinstance(self.data, dict):
            self.data = {}
        node = self.data
        for key in keys[:-1]:
            if not isinstance(node.get(key), dict):
                node[key] = {}
            node = node[key]
        if value is None:
            node.pop(keys[-1], None)
        else:
            node[keys[-1]] = value

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        keys = self._keys(request)
        method = request.method

        if method == "GET":
            return _reply(self._get(keys))

        if method == "DELETE":
            self._put(keys, None)
            return _reply(None)

        body = json.loads(request.content)
        if method == "PUT":
            self._put(keys, body)
            return _reply(body)
        if method == "POST":
            self._next_id += 1
            name = f"-K{self._next_id:04d}"
            self._put(keys + [name], body)
            return _reply({"name": name})
        if method == "PATCH":
            current = self._get(keys)
            merged = dict(current) if isinstance(current, dict) else {}
            merged.update(body)
            self._put(keys, merged)
            return _reply(body)

        return _reply({"error": "method not allowed"}, 405)


@pytest.fixture
def store() -> StubStore:
    """An empty stub store."""
    return StubStore()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME and XDG_DATA_HOME below tmp_path, forces the XDG
    code path, clears FIRETREE_* variables and changes into tmp_path.
    """
    monkeypatch.setattr("firetree.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["FIRETREE_PROFILE", "FIRETREE_HOST", "FIRETREE_TOKEN"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path
