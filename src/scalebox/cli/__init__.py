# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""The ``scalebox`` command.

The group resolves one :class:`ConnectionConfig` from ``SCALEBOX_*``
environment variables and the global options, and hands it to every
subcommand through the click context. Subcommands add the sandbox domain.
"""

from __future__ import annotations

import logging
from typing import Any

import click

from scalebox._defaults import ConnectionConfig
from scalebox.cli.exec import exec_command
from scalebox.cli.ps import list_processes
from scalebox.cli.wait import wait_command
from scalebox.exceptions import ScaleboxAuthenticationError, ScaleboxError


class _ScaleboxGroup(click.Group):
    """Reports SDK errors as one ``Error:`` line instead of a traceback."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except ScaleboxAuthenticationError as exc:
            raise click.ClickException(
                f"{exc}\nSet SCALEBOX_API_KEY or SCALEBOX_ACCESS_TOKEN, or pass --api-key."
            ) from None
        except ScaleboxError as exc:
            raise click.ClickException(str(exc)) from None


@click.group(cls=_ScaleboxGroup)
@click.version_option(package_name="scalebox-client", prog_name="scalebox")
@click.option("--api-url", metavar="URL", help="Control-plane URL [env: SCALEBOX_API_URL].")
@click.option("--api-key", metavar="KEY", help="API key [env: SCALEBOX_API_KEY].")
@click.option(
    "--access-token",
    metavar="TOKEN",
    help="Sandbox access token [env: SCALEBOX_ACCESS_TOKEN].",
)
@click.option(
    "--request-timeout",
    "request_timeout_seconds",
    type=click.FloatRange(min=0, min_open=True),
    help="Per-request timeout in seconds.",
)
@click.option(
    "--debug/--no-debug",
    default=None,
    help="Log requests and stream events to stderr [env: SCALEBOX_DEBUG].",
)
@click.pass_context
def cli(ctx: click.Context, debug: bool | None, **overrides: Any) -> None:
    """Scalebox CLI: run commands in sandboxes and wait on their status."""
    config = ConnectionConfig.from_env(debug=debug, **overrides)
    if config.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s: %(message)s")
        logging.getLogger("httpcore").setLevel(logging.INFO)
    ctx.obj = config


cli.add_command(exec_command, "exec")
cli.add_command(list_processes, "ps")
cli.add_command(wait_command, "wait")
