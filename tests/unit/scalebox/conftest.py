# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Shared fixtures for scalebox unit tests."""

from __future__ import annotations

import asyncio
import base64
from collections.abc import AsyncIterator, Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

# Environment variables that affect configuration and authentication.
# These are cleared before each test to ensure isolation.
SCALEBOX_ENV_VARS = (
    "SCALEBOX_API_KEY",
    "SCALEBOX_ACCESS_TOKEN",
    "SCALEBOX_ENVD_ACCESS_TOKEN",
    "SCALEBOX_API_URL",
    "SCALEBOX_DOMAIN",
    "SCALEBOX_DEBUG",
)


@pytest.fixture(autouse=True)
def clean_auth_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear all SCALEBOX_* env vars before each test.

    Tests start from a clean environment regardless of the developer's
    local setup, and the original environment is restored afterwards.
    """
    for var in SCALEBOX_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def mock_api_key(monkeypatch: pytest.MonkeyPatch) -> str:
    """Set a mock SCALEBOX_API_KEY for the test."""
    test_key = "test-api-key"
    monkeypatch.setenv("SCALEBOX_API_KEY", test_key)
    return test_key


@pytest.fixture
def mock_access_token(monkeypatch: pytest.MonkeyPatch) -> str:
    """Set a mock SCALEBOX_ACCESS_TOKEN for the test."""
    token = "test-access-token"
    monkeypatch.setenv("SCALEBOX_ACCESS_TOKEN", token)
    return token


def start(pid: int) -> dict[str, Any]:
    return {"event": {"start": {"pid": pid}}}


def stdout(text: str) -> dict[str, Any]:
    return {"event": {"data": {"stdout": base64.b64encode(text.encode()).decode()}}}


def stderr(text: str) -> dict[str, Any]:
    return {"event": {"data": {"stderr": base64.b64encode(text.encode()).decode()}}}


def pty(data: bytes) -> dict[str, Any]:
    return {"event": {"data": {"pty": base64.b64encode(data).decode()}}}


def end(exit_code: int = 0, error: str | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"exitCode": exit_code, "exited": True}
    if error is not None:
        payload["error"] = error
    return {"event": {"end": payload}}


def keepalive() -> dict[str, Any]:
    return {"event": {"keepalive": {}}}


async def stream_of(
    *messages: dict[str, Any], error: Exception | None = None
) -> AsyncIterator[dict[str, Any]]:
    """Yield ``messages`` in order, then raise ``error`` if given."""
    for message in messages:
        yield message
    if error is not None:
        raise error


class ControlledStream:
    """Event stream fed by the test, one message at a time.

    ``push`` adds a message, ``fail`` makes the next read raise, and
    ``close`` ends the stream.
    """

    _CLOSE = object()

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()

    def push(self, *messages: dict[str, Any]) -> None:
        for message in messages:
            self._queue.put_nowait(message)

    def fail(self, error: Exception) -> None:
        self._queue.put_nowait(error)

    def close(self) -> None:
        self._queue.put_nowait(self._CLOSE)

    def __aiter__(self) -> ControlledStream:
        return self

    async def __anext__(self) -> dict[str, Any]:
        item = await self._queue.get()
        if item is self._CLOSE:
            raise StopAsyncIteration
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def controlled_stream() -> Callable[[], ControlledStream]:
    """Factory for streams the test feeds manually."""
    return ControlledStream


async def settle() -> None:
    """Let background consumption tasks run until they block."""
    for _ in range(10):
        await asyncio.sleep(0)


@pytest.fixture
def mock_transport() -> MagicMock:
    """ConnectTransport stand-in with async side channels."""
    transport = MagicMock()
    transport.send_signal = AsyncMock(return_value=None)
    transport.send_input = AsyncMock(return_value=None)
    transport.update = AsyncMock(return_value=None)
    transport.list = AsyncMock(return_value=[])
    transport.create_context = AsyncMock()
    transport.destroy_context = AsyncMock(return_value=True)
    return transport
