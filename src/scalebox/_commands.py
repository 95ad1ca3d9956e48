# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

from __future__ import annotations

import logging
from collections.abc import Mapping

from scalebox._defaults import (
    DEFAULT_COMMAND_TIMEOUT_SECONDS,
    DEFAULT_SHELL,
    KEEPALIVE_PING_HEADER,
    KEEPALIVE_PING_INTERVAL_SECONDS,
)
from scalebox._process import CommandHandle, OutputCallback, ProcessManager
from scalebox._types import CommandResult, ProcessConfig, ProcessSelector

logger = logging.getLogger(__name__)

_KEEPALIVE_HEADERS = {KEEPALIVE_PING_HEADER: str(KEEPALIVE_PING_INTERVAL_SECONDS)}


class Commands(ProcessManager):
    """Run and manage shell commands in a sandbox.

    Every command runs through a login shell, so ``cmd`` may use pipes,
    redirects and environment expansion.

    Example:
        ```python
        commands = Commands(transport)

        result = await commands.run("ls -la /tmp")
        print(result.stdout)

        handle = await commands.start("sleep 60 && echo done", on_stdout=print)
        await handle.kill()
        ```
    """

    async def start(
        self,
        cmd: str,
        *,
        cwd: str | None = None,
        envs: Mapping[str, str] | None = None,
        on_stdout: OutputCallback[str] | None = None,
        on_stderr: OutputCallback[str] | None = None,
        timeout: float | None = DEFAULT_COMMAND_TIMEOUT_SECONDS,
        tag: str | None = None,
    ) -> CommandHandle:
        """Start a command and return its handle without waiting for it.

        Args:
            cmd: Shell command line
            cwd: Working directory inside the sandbox
            envs: Extra environment variables
            on_stdout: Called with each decoded stdout chunk (sync or async)
            on_stderr: Called with each decoded stderr chunk (sync or async)
            timeout: Lifetime of the command stream in seconds. 0 or None
                means no limit.
            tag: Optional tag, usable later as a process selector

        Returns:
            A CommandHandle whose event consumption is already running
        """
        config = ProcessConfig(
            cmd=DEFAULT_SHELL,
            args=("-l", "-c", cmd),
            envs=dict(envs or {}),
            cwd=cwd,
        )
        logger.debug("Starting command: %s", cmd)
        events = self._transport.start(
            config,
            tag=tag,
            timeout=timeout or None,
            headers=_KEEPALIVE_HEADERS,
        )
        return CommandHandle(
            events,
            kill=self.kill,
            send_input=self._send_stdin_by_pid,
            on_stdout=on_stdout,
            on_stderr=on_stderr,
            registry=self._handles,
        )

    async def run(
        self,
        cmd: str,
        *,
        cwd: str | None = None,
        envs: Mapping[str, str] | None = None,
        on_stdout: OutputCallback[str] | None = None,
        on_stderr: OutputCallback[str] | None = None,
        timeout: float | None = DEFAULT_COMMAND_TIMEOUT_SECONDS,
        tag: str | None = None,
    ) -> CommandResult:
        """Start a command and wait for it to finish.

        A non-zero exit code is not an error here; call ``result.check()``
        to raise on failure.
        """
        handle = await self.start(
            cmd,
            cwd=cwd,
            envs=envs,
            on_stdout=on_stdout,
            on_stderr=on_stderr,
            timeout=timeout,
            tag=tag,
        )
        return await handle.wait()

    async def connect(
        self,
        selector: ProcessSelector | int | str,
        *,
        on_stdout: OutputCallback[str] | None = None,
        on_stderr: OutputCallback[str] | None = None,
        timeout: float | None = DEFAULT_COMMAND_TIMEOUT_SECONDS,
    ) -> CommandHandle:
        """Attach to a running command by pid or tag.

        Output produced before connecting is not replayed.
        """
        events = self._transport.connect(
            ProcessSelector.of(selector),
            timeout=timeout or None,
            headers=_KEEPALIVE_HEADERS,
        )
        return CommandHandle(
            events,
            kill=self.kill,
            send_input=self._send_stdin_by_pid,
            on_stdout=on_stdout,
            on_stderr=on_stderr,
            registry=self._handles,
        )

    async def send_stdin(self, selector: ProcessSelector | int | str, data: str | bytes) -> None:
        """Write to a command's stdin."""
        payload = data.encode("utf-8") if isinstance(data, str) else data
        await self._transport.send_input(ProcessSelector.of(selector), payload)

    async def _send_stdin_by_pid(self, pid: int, data: bytes) -> None:
        await self._transport.send_input(ProcessSelector(pid=pid), data)
