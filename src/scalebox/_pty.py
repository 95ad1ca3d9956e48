# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

from __future__ import annotations

import logging
from collections.abc import Mapping

from scalebox._defaults import (
    DEFAULT_SHELL,
    KEEPALIVE_PING_HEADER,
    KEEPALIVE_PING_INTERVAL_SECONDS,
    PTY_TERM,
)
from scalebox._process import OutputCallback, ProcessManager, PtyHandle
from scalebox._types import ProcessConfig, ProcessSelector, PtySize

logger = logging.getLogger(__name__)

_KEEPALIVE_HEADERS = {KEEPALIVE_PING_HEADER: str(KEEPALIVE_PING_INTERVAL_SECONDS)}


class Pty(ProcessManager):
    """Interactive pseudo-terminal sessions in a sandbox.

    Example:
        ```python
        terminal = await Pty(transport).start(on_data=sys.stdout.buffer.write)
        await terminal.send("ls\\n")
        await terminal.resize(PtySize(cols=120, rows=40))
        await terminal.kill()
        ```
    """

    async def start(
        self,
        *,
        size: PtySize | None = None,
        cwd: str | None = None,
        envs: Mapping[str, str] | None = None,
        on_data: OutputCallback[bytes] | None = None,
        timeout: float | None = None,
    ) -> PtyHandle:
        """Start an interactive login shell attached to a new terminal.

        Args:
            size: Terminal size (default 80x24)
            cwd: Working directory inside the sandbox
            envs: Extra environment variables. TERM is always set.
            on_data: Called with each raw output chunk (sync or async)
            timeout: Lifetime of the session in seconds, or None for no limit
        """
        size = size or PtySize()
        config = ProcessConfig(
            cmd=DEFAULT_SHELL,
            args=("-i", "-l"),
            envs={**(envs or {}), "TERM": PTY_TERM},
            cwd=cwd,
        )
        logger.debug("Starting PTY %sx%s", size.cols, size.rows)
        events = self._transport.start(
            config,
            pty=size,
            timeout=timeout or None,
            headers=_KEEPALIVE_HEADERS,
        )
        return self._handle(events, on_data)

    async def connect(
        self,
        selector: ProcessSelector | int | str,
        *,
        on_data: OutputCallback[bytes] | None = None,
        timeout: float | None = None,
    ) -> PtyHandle:
        """Attach to a running PTY session by pid or tag."""
        events = self._transport.connect(
            ProcessSelector.of(selector),
            timeout=timeout or None,
            headers=_KEEPALIVE_HEADERS,
        )
        return self._handle(events, on_data)

    async def send_input(self, selector: ProcessSelector | int | str, data: str | bytes) -> None:
        payload = data.encode("utf-8") if isinstance(data, str) else data
        await self._transport.send_input(ProcessSelector.of(selector), payload, pty=True)

    async def resize(self, selector: ProcessSelector | int | str, size: PtySize) -> None:
        await self._transport.update(ProcessSelector.of(selector), pty=size)

    def _handle(self, events, on_data: OutputCallback[bytes] | None) -> PtyHandle:
        return PtyHandle(
            events,
            kill=self.kill,
            send_input=self.send_input,
            resize=self.resize,
            on_data=on_data,
            registry=self._handles,
        )
