# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Connect client for the ``execution.ExecutionService`` service."""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping

from connectrpc.client import ConnectClient
from connectrpc.method import IdempotencyLevel, MethodInfo
from google.protobuf.message import Message

from scalebox._proto import execution_pb

SERVICE_NAME = "execution.ExecutionService"

_EXECUTE = MethodInfo(
    name="Execute",
    service_name=SERVICE_NAME,
    input=execution_pb.ExecuteRequest,
    output=execution_pb.ExecuteResponse,
    idempotency_level=IdempotencyLevel.UNKNOWN,
)


class ExecutionServiceClient(ConnectClient):
    def execute(
        self,
        request: Message,
        *,
        headers: Mapping[str, str] | None = None,
        timeout_ms: int | None = None,
    ) -> AsyncIterator[Message]:
        """Run code and stream its stdout, stderr, results and error."""
        return self.execute_server_stream(
            request=request, method=_EXECUTE, headers=headers, timeout_ms=timeout_ms
        )
