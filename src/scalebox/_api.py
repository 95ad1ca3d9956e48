# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

import httpx

from scalebox._auth import resolve_auth
from scalebox._defaults import (
    DEFAULT_IMPORT_POLL_INTERVAL_SECONDS,
    DEFAULT_IMPORT_POLL_TIMEOUT_SECONDS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_TIMEOUT_SECONDS,
    ConnectionConfig,
)
from scalebox._polling import StatusSnapshot, poll_until, status_in
from scalebox.exceptions import (
    RequestTimeoutError,
    SandboxNotFoundError,
    ScaleboxAuthenticationError,
    TransportError,
)

logger = logging.getLogger(__name__)

IMPORT_TERMINAL_STATUSES = frozenset({"completed", "failed", "cancelled"})


class SandboxApi:
    """REST client for sandbox and template status on the control plane.

    Example:
        ```python
        async with SandboxApi(ConnectionConfig.from_env()) as api:
            snapshot = await api.wait_until_status("sbx-123", ["running", "failed"])
            if snapshot.status == "failed":
                print(snapshot.reason)
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
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> SandboxApi:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            auth = resolve_auth(self._config)
            self._client = httpx.AsyncClient(
                base_url=self._config.api_url,
                timeout=httpx.Timeout(self._config.request_timeout_seconds),
                headers=auth.headers,
                transport=self._transport,
            )
            logger.debug("Initialized API client for %s", self._config.api_url)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, *, sandbox_id: str | None = None) -> dict[str, Any]:
        client = self._ensure_client()
        try:
            response = await client.get(path)
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(f"GET {path} timed out", code="deadline_exceeded") from e
        except httpx.HTTPError as e:
            raise TransportError(f"GET {path} failed: {e}", code="unavailable") from e

        if response.status_code in (401, 403):
            raise ScaleboxAuthenticationError(f"Authentication failed: {response.text}")
        if response.status_code == 404:
            raise SandboxNotFoundError(
                f"Sandbox '{sandbox_id}' not found" if sandbox_id else f"{path} not found",
                sandbox_id=sandbox_id,
            )
        if response.is_error:
            raise TransportError(
                f"GET {path} failed: {response.status_code} {response.text}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError(
                f"GET {path} returned a malformed body", status_code=response.status_code
            ) from e
        if not isinstance(payload, dict):
            raise TransportError(
                f"GET {path} returned {type(payload).__name__}, expected an object",
                status_code=response.status_code,
            )
        return payload

    async def get_sandbox_status(self, sandbox_id: str) -> StatusSnapshot:
        """Fetch the current status of a sandbox.

        Raises:
            SandboxNotFoundError: If the sandbox does not exist
        """
        payload = await self._get(f"/v1/sandboxes/{sandbox_id}/status", sandbox_id=sandbox_id)
        return StatusSnapshot.from_payload(payload, id_key="sandbox_id")

    async def wait_until_status(
        self,
        sandbox_id: str,
        targets: Iterable[str],
        *,
        timeout_seconds: float = DEFAULT_POLL_TIMEOUT_SECONDS,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        cancel_event: asyncio.Event | None = None,
    ) -> StatusSnapshot:
        """Poll a sandbox until its status is one of ``targets`` (case-insensitive).

        Raises:
            PollTimeoutError: If no target status was reached in time
            PollCancelledError: If ``cancel_event`` was set
        """
        return await poll_until(
            lambda: self.get_sandbox_status(sandbox_id),
            status_in(targets),
            timeout_seconds=timeout_seconds,
            interval_seconds=interval_seconds,
            cancel_event=cancel_event,
            description=f"sandbox {sandbox_id}",
        )

    async def get_import_status(self, template_id: str) -> StatusSnapshot:
        """Fetch the status of a template import job."""
        try:
            payload = await self._get(f"/v1/templates/{template_id}/import-status")
        except SandboxNotFoundError as e:
            raise TransportError(
                f"Template '{template_id}' not found", status_code=404, code="not_found"
            ) from e
        return StatusSnapshot.from_payload(payload, id_key="template_id")

    async def wait_until_import_complete(
        self,
        template_id: str,
        *,
        timeout_seconds: float = DEFAULT_IMPORT_POLL_TIMEOUT_SECONDS,
        interval_seconds: float = DEFAULT_IMPORT_POLL_INTERVAL_SECONDS,
        cancel_event: asyncio.Event | None = None,
    ) -> StatusSnapshot:
        """Poll an import job until it reaches a status in IMPORT_TERMINAL_STATUSES."""
        return await poll_until(
            lambda: self.get_import_status(template_id),
            status_in(IMPORT_TERMINAL_STATUSES),
            timeout_seconds=timeout_seconds,
            interval_seconds=interval_seconds,
            cancel_event=cancel_event,
            description=f"import of template {template_id}",
        )
