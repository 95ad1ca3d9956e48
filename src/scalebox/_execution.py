# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Aggregation of code-execution event streams.

An execution stream carries any number of ``stdout``/``stderr``/``result``
events and at most one ``error`` event. ``parse_output`` folds one event at
a time into an ``Execution``; ``execution_to_result`` flattens the final
state into an ``ExecutionResult``.
"""

from __future__ import annotations

import json
import logging
import traceback as traceback_module
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from scalebox._charts import Chart, deserialize_chart
from scalebox._process import invoke_callback

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[None] | None]

_MEDIA_FORMATS = ("png", "svg", "html", "jpeg")
_FORMATS = (
    "text",
    "html",
    "markdown",
    "svg",
    "png",
    "jpeg",
    "pdf",
    "latex",
    "json",
    "javascript",
    "data",
    "chart",
)


@dataclass(frozen=True)
class OutputMessage:
    """One stdout or stderr chunk, as delivered to output handlers."""

    content: str
    timestamp: datetime
    type: Literal["stdout", "stderr"]
    error: bool = False


@dataclass(frozen=True)
class ExecutionError:
    """Error raised by the executed code (or a synthetic ParseError)."""

    name: str
    value: str
    traceback: str | None = None

    @property
    def message(self) -> str:
        return self.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "message": self.message,
            "traceback": self.traceback,
        }


def _get(payload: dict[str, Any], snake: str, camel: str, default: Any = None) -> Any:
    if snake in payload:
        return payload[snake]
    return payload.get(camel, default)


@dataclass
class Result:
    """One display output of an execution. Any subset of formats may be set."""

    text: str | None = None
    html: str | None = None
    markdown: str | None = None
    svg: str | None = None
    png: str | None = None
    jpeg: str | None = None
    pdf: str | None = None
    latex: str | None = None
    json: Any = None
    javascript: str | None = None
    data: Any = None
    chart: Chart | None = None
    execution_count: int | None = None
    is_main_result: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Result:
        """Build a Result from a wire payload (camelCase or snake_case keys).

        Raises:
            TypeError: If ``payload`` is not a mapping
        """
        if not isinstance(payload, dict):
            raise TypeError(f"Result payload must be an object, got {type(payload).__name__}")
        execution_count = _get(payload, "execution_count", "executionCount")
        return cls(
            text=payload.get("text"),
            html=payload.get("html"),
            markdown=payload.get("markdown"),
            svg=payload.get("svg"),
            png=payload.get("png"),
            jpeg=payload.get("jpeg"),
            pdf=payload.get("pdf"),
            latex=payload.get("latex"),
            json=payload.get("json"),
            javascript=payload.get("javascript"),
            data=payload.get("data"),
            chart=deserialize_chart(payload.get("chart")),
            execution_count=int(execution_count) if execution_count is not None else None,
            is_main_result=bool(_get(payload, "is_main_result", "isMainResult", False)),
            extra=dict(payload.get("extra") or {}),
        )

    @property
    def has_media(self) -> bool:
        """True if the result carries image or markup content."""
        return any(getattr(self, name) for name in _MEDIA_FORMATS)

    def formats(self) -> list[str]:
        """Names of the formats present in this result, including extra keys."""
        present = [name for name in _FORMATS if getattr(self, name) is not None]
        return present + list(self.extra)

    def to_dict(self) -> dict[str, Any]:
        values = {
            **{name: getattr(self, name) for name in _FORMATS},
            "execution_count": self.execution_count,
            "is_main_result": self.is_main_result,
            "extra": self.extra,
        }
        if self.chart is not None:
            values["chart"] = self.chart.to_dict()
        return {k: v for k, v in values.items() if v is not None}


@dataclass
class Logs:
    stdout: list[str] = field(default_factory=list)
    stderr: list[str] = field(default_factory=list)

    def to_json(self) -> str:
        return json.dumps({"stdout": self.stdout, "stderr": self.stderr})


@dataclass
class Execution:
    """Mutable aggregate of one execution stream.

    Only grows: results and log lines are appended in arrival order. Safe to
    read at any point, including while the stream is still running.
    """

    results: list[Result] = field(default_factory=list)
    logs: Logs = field(default_factory=Logs)
    error: ExecutionError | None = None
    execution_count: int | None = None

    @property
    def text(self) -> str | None:
        """Text of the main result, if one has arrived."""
        for result in self.results:
            if result.is_main_result:
                return result.text
        return None

    def to_json(self) -> str:
        return json.dumps(
            {
                "results": [r.to_dict() for r in self.results],
                "logs": {"stdout": self.logs.stdout, "stderr": self.logs.stderr},
                "error": self.error.to_dict() if self.error is not None else None,
                "execution_count": self.execution_count,
            }
        )


async def parse_output(
    execution: Execution,
    message: dict[str, Any],
    *,
    on_stdout: Handler | None = None,
    on_stderr: Handler | None = None,
    on_result: Handler | None = None,
    on_error: Handler | None = None,
) -> None:
    """Fold one execution event into ``execution`` in place.

    Handler exceptions are logged and swallowed. A malformed event is
    recorded as an ``ExecutionError`` named ``ParseError`` and passed to
    ``on_error``; this function never raises for bad input.

    Args:
        execution: Aggregate to update
        message: Decoded execution event, flat (``{"stdout": {...}}``) or
            nested under ``"event"``
        on_stdout: Receives an OutputMessage per stdout chunk
        on_stderr: Receives an OutputMessage per stderr chunk
        on_result: Receives each Result
        on_error: Receives the ExecutionError
    """
    try:
        body = message.get("event", message)

        stdout = body.get("stdout")
        if stdout and stdout.get("content"):
            content = stdout["content"]
            execution.logs.stdout.append(content)
            if on_stdout is not None:
                output = OutputMessage(content, datetime.now(UTC), "stdout", error=False)
                await invoke_callback(on_stdout, output, name="stdout")

        stderr = body.get("stderr")
        if stderr and stderr.get("content"):
            content = stderr["content"]
            execution.logs.stderr.append(content)
            if on_stderr is not None:
                output = OutputMessage(content, datetime.now(UTC), "stderr", error=True)
                await invoke_callback(on_stderr, output, name="stderr")

        if body.get("result") is not None:
            result = Result.from_payload(body["result"])
            execution.results.append(result)
            if on_result is not None:
                await invoke_callback(on_result, result, name="result")
            if result.is_main_result and result.execution_count is not None:
                execution.execution_count = result.execution_count

        if body.get("error") is not None:
            payload = body["error"]
            error = ExecutionError(
                name=str(payload.get("name", "")),
                value=str(payload.get("value", "")),
                traceback=payload.get("traceback") or None,
            )
            execution.error = error
            if on_error is not None:
                await invoke_callback(on_error, error, name="error")
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.warning("Error parsing execution output: %s", e)
        error = ExecutionError(
            name="ParseError",
            value=f"Failed to parse execution output: {e}",
            traceback="".join(traceback_module.format_exception(e)),
        )
        execution.error = error
        if on_error is not None:
            await invoke_callback(on_error, error, name="error")


@dataclass(frozen=True)
class ExecutionResult:
    """Terminal snapshot of an execution with top-level convenience fields."""

    text: str | None
    stdout: str
    stderr: str
    exit_code: int
    success: bool
    error: ExecutionError | None = None
    png: str | None = None
    svg: str | None = None
    html: str | None = None
    result: Result | None = None
    results: tuple[Result, ...] = ()
    logs: Logs = field(default_factory=Logs)
    execution_time: float = 0.0
    language: str = "python"
    context_id: str | None = None


def _select_main_result(results: list[Result]) -> tuple[Result | None, Result | None]:
    """Pick the main result and the result that supplies display fields.

    1. A result flagged ``is_main_result`` is the main result.
    2. With no flagged result, the first result with image or markup
       content stands in. Plain text never stands in unflagged.
    3. If the main result has neither text nor media, display fields come
       from the first result with media.
    """
    main = next((r for r in results if r.is_main_result), None)
    first_media = next((r for r in results if r.has_media), None)
    if main is None:
        return first_media, first_media
    if not main.text and not main.has_media and first_media is not None:
        return main, first_media
    return main, main


def execution_to_result(
    execution: Execution,
    language: str,
    *,
    context_id: str | None = None,
    execution_time: float = 0.0,
) -> ExecutionResult:
    """Flatten a finished Execution into an ExecutionResult.

    ``exit_code`` is derived: 1 if the execution has an error, else 0.
    """
    main, display = _select_main_result(execution.results)
    stdout = "".join(execution.logs.stdout)
    stderr = "".join(execution.logs.stderr)
    has_error = execution.error is not None

    return ExecutionResult(
        text=(display.text if display is not None else None) or stdout,
        stdout=stdout,
        stderr=stderr,
        exit_code=1 if has_error else 0,
        success=not has_error and any(r.is_main_result or r.text for r in execution.results),
        error=execution.error,
        png=display.png if display is not None else None,
        svg=display.svg if display is not None else None,
        html=display.html if display is not None else None,
        result=main,
        results=tuple(execution.results),
        logs=Logs(stdout=list(execution.logs.stdout), stderr=list(execution.logs.stderr)),
        execution_time=execution_time,
        language=language,
        context_id=context_id,
    )
