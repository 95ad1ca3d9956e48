"""Error handling example.

This example demonstrates:
- Turning a non-zero exit code into an exception with check()
- Killing a process that has already exited
- Cancelling a status wait from another task
"""

import asyncio
import os

from scalebox import (
    CommandExitError,
    Commands,
    ConnectionConfig,
    ConnectTransport,
    PollCancelledError,
    SandboxApi,
)


async def main() -> None:
    sandbox_id = os.environ.get("SCALEBOX_SANDBOX_ID")
    if not sandbox_id or not os.environ.get("SCALEBOX_DOMAIN"):
        raise RuntimeError(
            "Missing SCALEBOX_SANDBOX_ID or SCALEBOX_DOMAIN. "
            "Set them in your environment before running this example."
        )

    config = ConnectionConfig.from_env()

    async with ConnectTransport(config) as transport:
        commands = Commands(transport)

        try:
            (await commands.run("exit 3")).check()
        except CommandExitError as e:
            print(f"command failed with exit code {e.exit_code}")

        handle = await commands.start("true")
        await handle.wait()
        # The process is gone, so kill reports False instead of raising
        print(f"killed: {await commands.kill(handle.pid)}")

    cancel = asyncio.Event()
    asyncio.get_running_loop().call_later(2, cancel.set)
    async with SandboxApi(config) as api:
        try:
            await api.wait_until_status(sandbox_id, ["paused"], cancel_event=cancel)
        except PollCancelledError as e:
            print(f"wait cancelled: {e}")


if __name__ == "__main__":
    asyncio.run(main())
