"""Code interpreter example.

This example demonstrates:
- Creating a context whose state persists across runs
- Streaming output from running code
- Reading the main result and inspecting errors without exceptions
"""

import asyncio
import os

from scalebox import CodeInterpreter, ConnectionConfig, ConnectTransport


async def main() -> None:
    if not os.environ.get("SCALEBOX_DOMAIN"):
        raise RuntimeError(
            "Missing SCALEBOX_DOMAIN. Set it to the sandbox domain before running this example."
        )

    async with ConnectTransport(ConnectionConfig.from_env()) as transport:
        interpreter = CodeInterpreter(transport)
        context = await interpreter.create_context(language="python")
        try:
            await interpreter.run_code("import math\nx = 21", context=context)

            result = await interpreter.run_code(
                "print('computing...')\nx * 2",
                context=context,
                on_stdout=lambda msg: print(f"[stdout] {msg.content}", end=""),
            )
            print(f"main result: {result.text} (took {result.execution_time:.2f}s)")

            # Errors in the code are reported on the result, not raised
            result = await interpreter.run_code("math.sqrt(-1)", context=context)
            if not result.success and result.error is not None:
                print(f"{result.error.name}: {result.error.value}")
        finally:
            await interpreter.close()


if __name__ == "__main__":
    asyncio.run(main())
