"""Test doubles shared across the SDK tests.

HTTP is faked with ``httpx.MockTransport``; token providers and wrapped
resources are small scripted fakes.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import httpx

DOMAIN = "tenant.example.com"
CLIENT_ID = "test-client-id"
BASE_URL = f"https://{DOMAIN}/api/v2"

Reply = Callable[[httpx.Request], httpx.Response]


def reply(
    status_code: int = 200,
    json: Any = None,
    headers: dict[str, str] | None = None,
) -> Reply:
    """Build a reply that creates a fresh response per request."""

    def build(request: httpx.Request) -> httpx.Response:
        if json is None:
            return httpx.Response(status_code, headers=headers)
        return httpx.Response(status_code, json=json, headers=headers)

    return build


def connect_error(message: str = "connection refused") -> Reply:
    def build(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError(message, request=request)

    return build


class RecordingHandler:
    """MockTransport handler replaying scripted replies; the last one repeats."""

    def __init__(self, *replies: Reply) -> None:
        self.replies = list(replies) or [reply(200, {})]
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        current = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        return current(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def mock_http_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """Create an AsyncClient whose transport is the given handler."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class FakeTokenProvider:
    """Returns ``token-1``, ``token-2``, ... or a fixed token."""

    def __init__(self, token: str | None = "test-access-token") -> None:
        self.token = token
        self.calls = 0

    async def get_access_token(self) -> str:
        self.calls += 1
        return self.token if self.token is not None else f"token-{self.calls}"


class FailingTokenProvider:
    def __init__(self, message: str = "Unable to obtain an access token") -> None:
        self.message = message
        self.calls = 0

    async def get_access_token(self) -> str:
        self.calls += 1
        raise RuntimeError(self.message)


class ScriptedResource:
    """CRUD resource whose calls play back outcomes; the last one repeats.

    An exception outcome is raised, anything else is returned.
    """

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes) or [None]
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    async def _play(self, operation: str, *args: Any) -> Any:
        self.calls.append((operation, args))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def create(self, params: Any = None, data: Any = None) -> Any:
        return await self._play("create", params, data)

    async def get(self, params: Any = None) -> Any:
        return await self._play("get", params)

    async def get_all(self, params: Any = None) -> Any:
        return await self._play("get_all", params)

    async def patch(self, params: Any = None, data: Any = None) -> Any:
        return await self._play("patch", params, data)

    async def update(self, params: Any = None, data: Any = None) -> Any:
        return await self._play("update", params, data)

    async def delete(self, params: Any = None, data: Any = None) -> Any:
        return await self._play("delete", params, data)


async def call_with_callback(method: Callable[..., Any], *args: Any) -> tuple[Any, Any]:
    """Invoke ``method`` in callback mode and return ``(error, result)``."""
    loop = asyncio.get_running_loop()
    received: asyncio.Future[tuple[Any, Any]] = loop.create_future()

    def callback(error: Any, result: Any) -> None:
        received.set_result((error, result))

    task = method(*args, callback=callback)
    assert await task is None
    return await received
