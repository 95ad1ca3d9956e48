# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""scalebox exec - run a command in a sandbox."""

from __future__ import annotations

import asyncio
import shlex
import sys

import click

from scalebox._commands import Commands
from scalebox._defaults import DEFAULT_COMMAND_TIMEOUT_SECONDS, ConnectionConfig
from scalebox._transport import ConnectTransport


async def _run(
    config: ConnectionConfig,
    command: str,
    cwd: str | None,
    timeout_seconds: float,
) -> int:
    async with ConnectTransport(config) as transport:
        result = await Commands(transport).run(
            command,
            cwd=cwd,
            on_stdout=lambda chunk: click.echo(chunk, nl=False),
            on_stderr=lambda chunk: click.echo(chunk, nl=False, err=True),
            timeout=timeout_seconds,
        )
    if result.error:
        click.echo(f"Error: {result.error}", err=True)
    return result.exit_code


@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("sandbox_domain")
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option(
    "--cwd",
    "-w",
    default=None,
    help="Working directory for the command.",
)
@click.option(
    "--timeout",
    "-t",
    "timeout_seconds",
    type=click.FloatRange(min=0),
    default=DEFAULT_COMMAND_TIMEOUT_SECONDS,
    show_default=True,
    help="Timeout in seconds (0 for none).",
)
@click.pass_obj
def exec_command(
    config: ConnectionConfig,
    sandbox_domain: str,
    command: tuple[str, ...],
    cwd: str | None,
    timeout_seconds: float,
) -> None:
    """Run a command in a sandbox and stream its output.

    SANDBOX_DOMAIN is the sandbox's domain, e.g. sbx-123.scalebox.dev.
    The command runs in a login shell; the CLI exits with its exit code.

    Examples:

        scalebox exec sbx-123.scalebox.dev echo hello

        scalebox exec sbx-123.scalebox.dev --cwd /app python script.py
    """
    try:
        exit_code = asyncio.run(
            _run(
                config.with_overrides(domain=sandbox_domain),
                shlex.join(command),
                cwd,
                timeout_seconds,
            )
        )
    except KeyboardInterrupt:
        sys.exit(130)
    except BrokenPipeError:
        pass  # Piped to head/etc - exit cleanly
    else:
        sys.exit(exit_code)
