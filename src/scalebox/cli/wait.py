# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""scalebox wait - wait for a sandbox to reach a status."""

from __future__ import annotations

import asyncio
import sys

import click

from scalebox._api import SandboxApi
from scalebox._defaults import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_TIMEOUT_SECONDS,
    ConnectionConfig,
)
from scalebox._polling import StatusSnapshot


async def _wait(
    config: ConnectionConfig,
    sandbox_id: str,
    statuses: tuple[str, ...],
    timeout_seconds: float,
    interval_seconds: float,
) -> StatusSnapshot:
    async with SandboxApi(config) as api:
        return await api.wait_until_status(
            sandbox_id,
            statuses,
            timeout_seconds=timeout_seconds,
            interval_seconds=interval_seconds,
        )


@click.command()
@click.argument("sandbox_id")
@click.option(
    "--status",
    "-s",
    "statuses",
    multiple=True,
    default=("running", "failed"),
    show_default=True,
    help="Target status (repeatable).",
)
@click.option(
    "--timeout",
    "-t",
    "timeout_seconds",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_POLL_TIMEOUT_SECONDS,
    show_default=True,
    help="Give up after this many seconds.",
)
@click.option(
    "--interval",
    "interval_seconds",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_POLL_INTERVAL_SECONDS,
    show_default=True,
    help="Seconds between polls.",
)
@click.pass_obj
def wait_command(
    config: ConnectionConfig,
    sandbox_id: str,
    statuses: tuple[str, ...],
    timeout_seconds: float,
    interval_seconds: float,
) -> None:
    """Wait until a sandbox reaches one of the target statuses.

    Prints the final status. Exits non-zero on timeout.

    Examples:

        scalebox wait sbx-123

        scalebox wait sbx-123 --status paused --status failed --timeout 60
    """
    try:
        snapshot = asyncio.run(
            _wait(config, sandbox_id, statuses, timeout_seconds, interval_seconds)
        )
    except KeyboardInterrupt:
        sys.exit(130)
    click.echo(f"{snapshot.id}\t{snapshot}")
