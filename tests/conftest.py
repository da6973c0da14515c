"""Shared fixtures: an in-process fake backend and an isolated config dir."""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from core.config import AppSettings, get_user_env_file
from core.domain.models import ResponseEnvelope

Reply = Callable[[httpx.Request], httpx.Response]

BUYER = {"id": "u-1", "email": "ana@example.com", "name": "Ana", "role": "buyer"}
SELLER = {"id": "u-2", "email": "sam@example.com", "name": "Sam", "role": "seller"}
ADMIN = {"id": "u-3", "email": "root@example.com", "name": "Root", "role": "admin"}


def ok(data: Any = None, message: str | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": True, "data": data}
    if message is not None:
        body["message"] = message
    return body


def fail(message: str) -> dict[str, Any]:
    return {"success": False, "message": message}


def page_of(items: list[Any], page: int = 1, limit: int = 20) -> dict[str, Any]:
    return {"data": items, "total": len(items), "page": page, "limit": limit, "totalPages": 1 if items else 0}


class FakeBackend:
    """Route table over `httpx.MockTransport` that records every request.

    Routes are keyed by (method, path) without the query string. Unknown
    routes answer 404 with an error body.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], Reply] = {}
        self.transport = httpx.MockTransport(self._handle)

    def on(self, method: str, path: str, body: Any = None, *, status: int = 200) -> None:
        self._routes[(method, path)] = lambda request: httpx.Response(status, json=body)

    def on_call(self, method: str, path: str, reply: Reply) -> None:
        self._routes[(method, path)] = reply

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def _handle(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        reply = self._routes.get((request.method, request.url.path))
        if reply is None:
            return httpx.Response(404, json=fail("Not found"))
        return reply(request)


def json_body(request: httpx.Request) -> Any:
    return json.loads(request.content)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSender:
    """`RequestSender` that records descriptors and answers with a fixed envelope."""

    def __init__(self, data: Any = None) -> None:
        self.calls: list[tuple[Any, Any]] = []
        self.data = data

    async def send(self, descriptor, data_type=Any):
        self.calls.append((descriptor, data_type))
        return ResponseEnvelope[Any](success=True, data=self.data)

    @property
    def last(self):
        return self.calls[-1][0]


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep user config, token files and `.env` lookups inside tmp_path."""

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("APPDATA", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    for name in (
        "MARKETPLACE_API_BASE",
        "MARKETPLACE_TOKEN_PATH",
        "MARKETPLACE_LOG_LEVEL",
        "MARKETPLACE_DEFAULT_STALE_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    # env_file is resolved when the class is defined; point it at the isolated dir.
    monkeypatch.setitem(AppSettings.model_config, "env_file", (".env", str(get_user_env_file())))
    return home


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def settings(tmp_path) -> AppSettings:
    return AppSettings(api_base="http://api.test/api", token_path=tmp_path / "session.json")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
