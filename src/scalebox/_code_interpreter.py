# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

from __future__ import annotations

import logging
import time
import traceback as traceback_module
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from scalebox._defaults import DEFAULT_CONTEXT_CWD, DEFAULT_EXECUTION_TIMEOUT_SECONDS
from scalebox._execution import (
    Execution,
    ExecutionError,
    ExecutionResult,
    Handler,
    execution_to_result,
    parse_output,
)
from scalebox._process import invoke_callback
from scalebox.exceptions import RequestTimeoutError, ScaleboxError, TransportError

if TYPE_CHECKING:
    from scalebox._transport import ConnectTransport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodeContext:
    """A stateful interpreter session. Variables and imports persist across runs."""

    id: str
    language: str = "python"
    cwd: str = DEFAULT_CONTEXT_CWD
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    env_vars: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any], *, language: str) -> CodeContext:
        created_at = payload.get("createdAt") or payload.get("created_at")
        return cls(
            id=str(payload["id"]),
            language=payload.get("language") or language,
            cwd=payload.get("cwd") or DEFAULT_CONTEXT_CWD,
            created_at=(
                datetime.fromisoformat(created_at.replace("Z", "+00:00"))
                if isinstance(created_at, str)
                else datetime.now(UTC)
            ),
            env_vars=dict(payload.get("envVars") or payload.get("env_vars") or {}),
        )


def _stream_error(error: Exception) -> ExecutionError:
    """Describe a failed execution stream as an execution error."""
    name = type(error).__name__
    value = str(error)
    if isinstance(error, TransportError) and error.code == "deadline_exceeded":
        name = "ExecutionTimeoutError"
        value = "Execution timed out - the 'timeout' option can be used to increase this timeout"
    return ExecutionError(
        name=name,
        value=value,
        traceback="".join(traceback_module.format_exception(error)),
    )


class CodeInterpreter:
    """Run code in a sandbox's interpreter service.

    Output streams to the handlers as it arrives. ``run_code`` returns an
    ExecutionResult even when the code, or the stream carrying it, fails:
    check ``result.error`` or ``result.success``.

    Example:
        ```python
        interpreter = CodeInterpreter(transport)
        ctx = await interpreter.create_context(language="python")
        await interpreter.run_code("x = 21", context=ctx)
        result = await interpreter.run_code("x * 2", context=ctx)
        print(result.text)  # "42"
        ```
    """

    def __init__(self, transport: ConnectTransport) -> None:
        self._transport = transport
        self._contexts: dict[str, CodeContext] = {}

    @property
    def contexts(self) -> list[CodeContext]:
        """Contexts created by this interpreter and not yet destroyed."""
        return list(self._contexts.values())

    async def run_code(
        self,
        code: str,
        *,
        language: str = "python",
        context: CodeContext | str | None = None,
        envs: Mapping[str, str] | None = None,
        on_stdout: Handler | None = None,
        on_stderr: Handler | None = None,
        on_result: Handler | None = None,
        on_error: Handler | None = None,
        on_exit: Handler | None = None,
        timeout: float | None = DEFAULT_EXECUTION_TIMEOUT_SECONDS,
    ) -> ExecutionResult:
        """Execute code and aggregate its output.

        Args:
            code: Source code to run
            language: Interpreter language, ignored when ``context`` is a CodeContext
            context: Context (or context ID) to run in. None uses the
                server's default context.
            envs: Environment variables for this run, merged over the context's
            on_stdout: Receives an OutputMessage per stdout chunk
            on_stderr: Receives an OutputMessage per stderr chunk
            on_result: Receives each Result
            on_error: Receives the ExecutionError, if any
            on_exit: Receives the derived exit code once the run finishes
            timeout: Execution timeout in seconds, or None for no limit

        Returns:
            ExecutionResult with logs, results, and the main result's fields
        """
        context_id: str | None = None
        env_vars: dict[str, str] = {}
        match context:
            case CodeContext():
                context_id = context.id
                language = context.language
                env_vars.update(context.env_vars)
            case str():
                context_id = context
        env_vars.update(envs or {})

        execution = Execution()
        start = time.monotonic()
        logger.debug("Executing %s code in context %s", language, context_id or "<default>")
        try:
            async for message in self._transport.execute(
                code,
                language=language,
                context_id=context_id,
                envs=env_vars,
                timeout=timeout or None,
            ):
                await parse_output(
                    execution,
                    message,
                    on_stdout=on_stdout,
                    on_stderr=on_stderr,
                    on_result=on_result,
                    on_error=on_error,
                )
        except ScaleboxError as e:
            logger.warning("Execution stream failed: %s", e)
            execution.error = _stream_error(e)
            if on_error is not None:
                await invoke_callback(on_error, execution.error, name="error")

        result = execution_to_result(
            execution,
            language,
            context_id=context_id,
            execution_time=time.monotonic() - start,
        )
        if on_exit is not None:
            await invoke_callback(on_exit, result.exit_code, name="exit")
        return result

    async def create_context(
        self,
        *,
        language: str = "python",
        cwd: str | None = None,
        timeout: float | None = None,
    ) -> CodeContext:
        """Create a new interpreter context.

        Raises:
            RequestTimeoutError: If the request timed out
            ScaleboxError: If the context service rejects the request
        """
        try:
            payload = await self._transport.create_context(
                language=language, cwd=cwd, timeout=timeout
            )
        except TransportError as e:
            if e.code == "deadline_exceeded":
                raise RequestTimeoutError(
                    "Request timed out - the 'timeout' option can be used to increase this timeout",
                    status_code=e.status_code,
                    code=e.code,
                ) from e
            raise
        context = CodeContext.from_payload(payload, language=language)
        self._contexts[context.id] = context
        logger.debug("Created %s context %s", context.language, context.id)
        return context

    async def destroy_context(self, context: CodeContext | str) -> None:
        """Destroy a context. A context the server no longer knows is not an error.

        The context is forgotten locally even if the server call fails.
        """
        context_id = context.id if isinstance(context, CodeContext) else context
        try:
            await self._transport.destroy_context(context_id)
        except TransportError as e:
            if e.code != "not_found" and "not found" not in str(e).lower():
                raise
            logger.debug("Context %s already gone", context_id)
        finally:
            self._contexts.pop(context_id, None)

    async def close(self) -> None:
        """Destroy every context created by this interpreter."""
        for context_id in list(self._contexts):
            try:
                await self.destroy_context(context_id)
            except ScaleboxError as e:
                logger.warning("Failed to destroy context %s: %s", context_id, e)
