# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Connect RPC access to the process, execution and context services.

Requests are protobuf messages sent with the Connect protocol's JSON codec.
Responses are handed to the rest of the client as plain dicts in the
protobuf JSON mapping (camelCase keys, bytes as base64 text).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Mapping
from typing import Any, TypeVar

import httpx
from connectrpc.code import Code
from connectrpc.errors import ConnectError
from google.protobuf.json_format import MessageToDict
from google.protobuf.message import Message

from scalebox._auth import resolve_auth
from scalebox._defaults import ConnectionConfig
from scalebox._proto import context_pb, execution_pb, process_pb
from scalebox._proto.context_connect import SERVICE_NAME as CONTEXT_SERVICE
from scalebox._proto.context_connect import ContextServiceClient
from scalebox._proto.execution_connect import SERVICE_NAME as EXECUTION_SERVICE
from scalebox._proto.execution_connect import ExecutionServiceClient
from scalebox._proto.process_connect import SERVICE_NAME as PROCESS_SERVICE
from scalebox._proto.process_connect import ProcessClient
from scalebox._types import ProcessConfig, ProcessSelector, PtySize, Signal
from scalebox.exceptions import (
    ProcessNotFoundError,
    RequestTimeoutError,
    ScaleboxAuthenticationError,
    ScaleboxError,
    TransportError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _translate_rpc_error(e: ConnectError, *, service: str, operation: str) -> ScaleboxError:
    """Translate a ConnectError to the appropriate scalebox exception.

    The Connect code is kept on the result as a lowercase string
    (``"not_found"``, ``"deadline_exceeded"``) so callers can branch on it
    without importing connectrpc.

    Args:
        e: The error raised by a Connect client
        service: Service that produced the error
        operation: Description of the operation that failed

    Returns:
        An appropriate scalebox exception
    """
    code = e.code.name.lower()
    details = e.message or code

    if e.code == Code.UNAUTHENTICATED:
        return ScaleboxAuthenticationError(f"Authentication failed: {details}")
    elif e.code == Code.PERMISSION_DENIED:
        return ScaleboxAuthenticationError(f"Permission denied: {details}")
    elif e.code == Code.NOT_FOUND and service == PROCESS_SERVICE:
        return ProcessNotFoundError(f"{operation} failed: process not found: {details}")
    elif e.code == Code.DEADLINE_EXCEEDED:
        return RequestTimeoutError(f"{operation} timed out: {details}", code=code)
    else:
        return TransportError(f"{operation} failed: {details}", code=code)


def _to_dict(message: Message) -> dict[str, Any]:
    return MessageToDict(message)


def _timeout_ms(timeout: float | None) -> int | None:
    return int(timeout * 1000) if timeout else None


class ConnectTransport:
    """Connect clients for the process, execution and context services of one sandbox.

    The clients share one ``httpx.AsyncClient`` that is created lazily on
    first use and carries the resolved auth headers. Pass ``transport`` to
    route requests through a custom ``httpx`` transport.

    Example:
        ```python
        async with ConnectTransport(ConnectionConfig.from_env()) as transport:
            processes = await transport.list()
        ```
    """

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._session: httpx.AsyncClient | None = None
        self._process: ProcessClient | None = None
        self._execution: ExecutionServiceClient | None = None
        self._context: ContextServiceClient | None = None
        self._client_lock: asyncio.Lock | None = None

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    async def __aenter__(self) -> ConnectTransport:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _ensure_clients(self) -> None:
        """Ensure the Connect clients are initialized."""
        if self._session is not None:
            return

        # Lazily create the lock (can't create in __init__ before event loop exists)
        if self._client_lock is None:
            self._client_lock = asyncio.Lock()

        async with self._client_lock:
            if self._session is not None:
                return

            auth = resolve_auth(self._config)
            logger.debug("Using %s auth strategy", auth.strategy)

            # Streams are bounded by their Connect deadline; reads may idle between keepalives
            session = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.request_timeout_seconds, read=None),
                headers=auth.headers,
                transport=self._transport,
            )
            address = self._config.base_url
            self._process = ProcessClient(address=address, session=session, proto_json=True)
            self._execution = ExecutionServiceClient(
                address=address, session=session, proto_json=True
            )
            self._context = ContextServiceClient(address=address, session=session, proto_json=True)
            self._session = session
            logger.debug("Initialized clients for %s", address)

    async def close(self) -> None:
        """Close the Connect clients and their HTTP session if open."""
        if self._session is None:
            return
        for client in (self._process, self._execution, self._context):
            if client is not None:
                await client.close()
        await self._session.aclose()
        self._session = None
        self._process = self._execution = self._context = None
        logger.debug("Closed clients")

    async def _unary(self, service: str, operation: str, call: Awaitable[T]) -> T:
        logger.debug("Calling %s/%s", service, operation)
        try:
            return await call
        except ConnectError as e:
            raise _translate_rpc_error(e, service=service, operation=operation) from e
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(f"{operation} timed out", code="deadline_exceeded") from e
        except httpx.HTTPError as e:
            raise TransportError(f"{operation} failed: {e}", code="unavailable") from e

    async def _server_stream(
        self, service: str, operation: str, stream: AsyncIterator[Message]
    ) -> AsyncIterator[dict[str, Any]]:
        logger.debug("Opening stream %s/%s", service, operation)
        try:
            async for message in stream:
                yield _to_dict(message)
        except ConnectError as e:
            raise _translate_rpc_error(e, service=service, operation=operation) from e
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(f"{operation} timed out", code="deadline_exceeded") from e
        except httpx.HTTPError as e:
            raise TransportError(f"{operation} failed: {e}", code="unavailable") from e
        logger.debug("Stream %s/%s ended", service, operation)

    # Process service

    async def start(
        self,
        process: ProcessConfig,
        *,
        tag: str | None = None,
        pty: PtySize | None = None,
        timeout: float | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Start a process and stream its events.

        Raises:
            ScaleboxAuthenticationError: On unauthenticated/permission denied
            TransportError: For any other failure, including a failed stream
        """
        await self._ensure_clients()
        assert self._process is not None
        request = process_pb.StartRequest(process=process.to_proto(), tag=tag or "")
        if pty is not None:
            request.pty.CopyFrom(pty.to_proto())
        stream = self._process.start(request, headers=headers, timeout_ms=_timeout_ms(timeout))
        async for message in self._server_stream(PROCESS_SERVICE, "Start", stream):
            yield message

    async def connect(
        self,
        selector: ProcessSelector,
        *,
        timeout: float | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Attach to a running process and stream its events from now on.

        Raises:
            ProcessNotFoundError: If no process matches ``selector``
            TransportError: For any other failure
        """
        await self._ensure_clients()
        assert self._process is not None
        request = process_pb.ConnectRequest(process=selector.to_proto())
        stream = self._process.connect(request, headers=headers, timeout_ms=_timeout_ms(timeout))
        async for message in self._server_stream(PROCESS_SERVICE, "Connect", stream):
            yield message

    async def send_signal(self, selector: ProcessSelector, signal: Signal) -> None:
        await self._ensure_clients()
        assert self._process is not None
        request = process_pb.SendSignalRequest(process=selector.to_proto(), signal=int(signal))
        await self._unary(PROCESS_SERVICE, "SendSignal", self._process.send_signal(request))

    async def send_input(self, selector: ProcessSelector, data: bytes, *, pty: bool = False) -> None:
        await self._ensure_clients()
        assert self._process is not None
        if pty:
            process_input = process_pb.ProcessInput(pty=data)
        else:
            process_input = process_pb.ProcessInput(stdin=data)
        request = process_pb.SendInputRequest(process=selector.to_proto(), input=process_input)
        await self._unary(PROCESS_SERVICE, "SendInput", self._process.send_input(request))

    async def update(self, selector: ProcessSelector, *, pty: PtySize) -> None:
        await self._ensure_clients()
        assert self._process is not None
        request = process_pb.UpdateRequest(process=selector.to_proto(), pty=pty.to_proto())
        await self._unary(PROCESS_SERVICE, "Update", self._process.update(request))

    async def list(self) -> list[dict[str, Any]]:
        await self._ensure_clients()
        assert self._process is not None
        response = await self._unary(
            PROCESS_SERVICE, "List", self._process.list(process_pb.ListRequest())
        )
        return [_to_dict(info) for info in response.processes]

    # Execution and context services

    async def execute(
        self,
        code: str,
        *,
        language: str,
        context_id: str | None = None,
        envs: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        await self._ensure_clients()
        assert self._execution is not None
        request = execution_pb.ExecuteRequest(
            code=code,
            language=language,
            context_id=context_id or "",
            env_vars=dict(envs or {}),
        )
        stream = self._execution.execute(request, timeout_ms=_timeout_ms(timeout))
        async for message in self._server_stream(EXECUTION_SERVICE, "Execute", stream):
            yield message

    async def create_context(
        self, *, language: str, cwd: str | None = None, timeout: float | None = None
    ) -> dict[str, Any]:
        await self._ensure_clients()
        assert self._context is not None
        request = context_pb.CreateContextRequest(language=language, cwd=cwd or "")
        response = await self._unary(
            CONTEXT_SERVICE,
            "CreateContext",
            self._context.create_context(request, timeout_ms=_timeout_ms(timeout)),
        )
        return _to_dict(response)

    async def destroy_context(self, context_id: str, *, timeout: float | None = None) -> bool:
        await self._ensure_clients()
        assert self._context is not None
        request = context_pb.DestroyContextRequest(context_id=context_id)
        response = await self._unary(
            CONTEXT_SERVICE,
            "DestroyContext",
            self._context.destroy_context(request, timeout_ms=_timeout_ms(timeout)),
        )
        return response.success
