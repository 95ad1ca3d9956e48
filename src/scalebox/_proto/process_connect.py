# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Connect client for the ``process.Process`` service."""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping

from connectrpc.client import ConnectClient
from connectrpc.method import IdempotencyLevel, MethodInfo
from google.protobuf.message import Message

from scalebox._proto import process_pb

SERVICE_NAME = "process.Process"


def _method(name: str, input: type[Message], output: type[Message]) -> MethodInfo:
    return MethodInfo(
        name=name,
        service_name=SERVICE_NAME,
        input=input,
        output=output,
        idempotency_level=IdempotencyLevel.UNKNOWN,
    )


_START = _method("Start", process_pb.StartRequest, process_pb.StartResponse)
_CONNECT = _method("Connect", process_pb.ConnectRequest, process_pb.ConnectResponse)
_UPDATE = _method("Update", process_pb.UpdateRequest, process_pb.UpdateResponse)
_SEND_INPUT = _method("SendInput", process_pb.SendInputRequest, process_pb.SendInputResponse)
_SEND_SIGNAL = _method("SendSignal", process_pb.SendSignalRequest, process_pb.SendSignalResponse)
_LIST = _method("List", process_pb.ListRequest, process_pb.ListResponse)


class ProcessClient(ConnectClient):
    """Starts, attaches to and controls processes inside one sandbox."""

    def start(
        self,
        request: Message,
        *,
        headers: Mapping[str, str] | None = None,
        timeout_ms: int | None = None,
    ) -> AsyncIterator[Message]:
        return self.execute_server_stream(
            request=request, method=_START, headers=headers, timeout_ms=timeout_ms
        )

    def connect(
        self,
        request: Message,
        *,
        headers: Mapping[str, str] | None = None,
        timeout_ms: int | None = None,
    ) -> AsyncIterator[Message]:
        return self.execute_server_stream(
            request=request, method=_CONNECT, headers=headers, timeout_ms=timeout_ms
        )

    async def update(
        self,
        request: Message,
        *,
        headers: Mapping[str, str] | None = None,
        timeout_ms: int | None = None,
    ) -> Message:
        return await self.execute_unary(
            request=request, method=_UPDATE, headers=headers, timeout_ms=timeout_ms
        )

    async def send_input(
        self,
        request: Message,
        *,
        headers: Mapping[str, str] | None = None,
        timeout_ms: int | None = None,
    ) -> Message:
        return await self.execute_unary(
            request=request, method=_SEND_INPUT, headers=headers, timeout_ms=timeout_ms
        )

    async def send_signal(
        self,
        request: Message,
        *,
        headers: Mapping[str, str] | None = None,
        timeout_ms: int | None = None,
    ) -> Message:
        return await self.execute_unary(
            request=request, method=_SEND_SIGNAL, headers=headers, timeout_ms=timeout_ms
        )

    async def list(
        self,
        request: Message,
        *,
        headers: Mapping[str, str] | None = None,
        timeout_ms: int | None = None,
    ) -> Message:
        return await self.execute_unary(
            request=request, method=_LIST, headers=headers, timeout_ms=timeout_ms
        )
