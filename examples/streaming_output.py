"""Streaming command output example.

This example demonstrates:
- Waiting for a sandbox to be running before connecting to it
- Streaming stdout/stderr through callbacks as the command produces it
- Running several commands in parallel and collecting their results
"""

import asyncio
import os
import sys

from scalebox import Commands, ConnectionConfig, ConnectTransport, SandboxApi


async def main() -> None:
    sandbox_id = os.environ.get("SCALEBOX_SANDBOX_ID")
    if not sandbox_id or not os.environ.get("SCALEBOX_API_KEY"):
        raise RuntimeError(
            "Missing SCALEBOX_SANDBOX_ID or SCALEBOX_API_KEY. "
            "Set them in your environment before running this example."
        )

    config = ConnectionConfig.from_env()

    async with SandboxApi(config) as api:
        snapshot = await api.wait_until_status(sandbox_id, ["running", "failed"], timeout_seconds=120)
    if snapshot.status != "running":
        raise RuntimeError(f"Sandbox {sandbox_id} is not running: {snapshot}")
    print(f"Sandbox {sandbox_id} is {snapshot}")

    domain = config.domain or f"{sandbox_id}.scalebox.dev"
    async with ConnectTransport(config.with_overrides(domain=domain)) as transport:
        commands = Commands(transport)

        # Output arrives chunk by chunk, in order
        result = await commands.run(
            "for i in 1 2 3; do echo line $i; sleep 0.5; done; echo oops >&2",
            on_stdout=lambda chunk: print(chunk, end=""),
            on_stderr=lambda chunk: print(chunk, end="", file=sys.stderr),
        )
        print(f"exit code: {result.exit_code}")

        # Start several commands, then wait for all of them
        handles = [await commands.start(f"sleep {n} && echo slept {n}") for n in (1, 2, 3)]
        print(f"running: {sorted(commands.handles)}")
        for handle in handles:
            result = await handle.wait()
            print(f"pid {handle.pid}: {result.stdout.rstrip()}")


if __name__ == "__main__":
    asyncio.run(main())
