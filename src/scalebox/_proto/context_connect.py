# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Connect client for the ``context.ContextService`` service."""

from __future__ import annotations

from collections.abc import Mapping

from connectrpc.client import ConnectClient
from connectrpc.method import IdempotencyLevel, MethodInfo
from google.protobuf.message import Message

from scalebox._proto import context_pb

SERVICE_NAME = "context.ContextService"

_CREATE_CONTEXT = MethodInfo(
    name="CreateContext",
    service_name=SERVICE_NAME,
    input=context_pb.CreateContextRequest,
    output=context_pb.CreateContextResponse,
    idempotency_level=IdempotencyLevel.UNKNOWN,
)
_DESTROY_CONTEXT = MethodInfo(
    name="DestroyContext",
    service_name=SERVICE_NAME,
    input=context_pb.DestroyContextRequest,
    output=context_pb.DestroyContextResponse,
    idempotency_level=IdempotencyLevel.UNKNOWN,
)


class ContextServiceClient(ConnectClient):
    """Creates and destroys stateful interpreter contexts."""

    async def create_context(
        self,
        request: Message,
        *,
        headers: Mapping[str, str] | None = None,
        timeout_ms: int | None = None,
    ) -> Message:
        return await self.execute_unary(
            request=request, method=_CREATE_CONTEXT, headers=headers, timeout_ms=timeout_ms
        )

    async def destroy_context(
        self,
        request: Message,
        *,
        headers: Mapping[str, str] | None = None,
        timeout_ms: int | None = None,
    ) -> Message:
        return await self.execute_unary(
            request=request, method=_DESTROY_CONTEXT, headers=headers, timeout_ms=timeout_ms
        )
