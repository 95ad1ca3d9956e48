# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""scalebox ps - list processes running in a sandbox."""

from __future__ import annotations

import asyncio
import shlex

import click

from scalebox._commands import Commands
from scalebox._defaults import ConnectionConfig
from scalebox._transport import ConnectTransport
from scalebox._types import ProcessInfo


async def _list(config: ConnectionConfig) -> list[ProcessInfo]:
    async with ConnectTransport(config) as transport:
        return await Commands(transport).list()


@click.command()
@click.argument("sandbox_domain")
@click.pass_obj
def list_processes(config: ConnectionConfig, sandbox_domain: str) -> None:
    """List processes running in a sandbox.

    Examples:

        scalebox ps sbx-123.scalebox.dev
    """
    processes = asyncio.run(_list(config.with_overrides(domain=sandbox_domain)))
    if not processes:
        click.echo("No processes running.", err=True)
        return

    click.echo(f"{'PID':<8} {'TAG':<16} COMMAND")
    for proc in processes:
        cmdline = shlex.join([proc.config.cmd, *proc.config.args])
        click.echo(f"{proc.pid:<8} {proc.tag or '-':<16} {cmdline}")
