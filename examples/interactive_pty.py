"""Interactive PTY session example.

This example demonstrates:
- Opening a terminal session with a custom size
- Sending keystrokes and resizing the terminal
- Tearing the session down with kill()
"""

import asyncio
import os
import sys

from scalebox import ConnectionConfig, ConnectTransport, Pty, PtySize


async def main() -> None:
    if not os.environ.get("SCALEBOX_DOMAIN"):
        raise RuntimeError(
            "Missing SCALEBOX_DOMAIN. Set it to the sandbox domain before running this example."
        )

    async with ConnectTransport(ConnectionConfig.from_env()) as transport:
        pty = Pty(transport)

        def on_data(data: bytes) -> None:
            sys.stdout.buffer.write(data)
            sys.stdout.flush()

        handle = await pty.start(size=PtySize(cols=120, rows=30), on_data=on_data)

        await handle.send("echo $TERM && tput cols\n")
        await asyncio.sleep(1)

        await handle.resize(PtySize(cols=80, rows=24))
        await handle.send("tput cols\n")
        await asyncio.sleep(1)

        await handle.send("exit\n")
        result = await handle.wait()
        print(f"\nsession ended with exit code {result.exit_code}")


if __name__ == "__main__":
    asyncio.run(main())
