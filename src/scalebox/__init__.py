# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""A Python client library for Scalebox sandboxes."""

from scalebox._api import IMPORT_TERMINAL_STATUSES, SandboxApi
from scalebox._charts import (
    BarChart,
    BoxAndWhiskerChart,
    Chart,
    ChartType,
    LineChart,
    PieChart,
    ScatterChart,
    SuperChart,
    deserialize_chart,
)
from scalebox._code_interpreter import CodeContext, CodeInterpreter
from scalebox._commands import Commands
from scalebox._defaults import ConnectionConfig
from scalebox._events import (
    DataEvent,
    EndEvent,
    KeepaliveEvent,
    OutputStream,
    ProcessEvent,
    StartEvent,
    decode_process_event,
)
from scalebox._execution import (
    Execution,
    ExecutionError,
    ExecutionResult,
    Logs,
    OutputMessage,
    Result,
    execution_to_result,
    parse_output,
)
from scalebox._output import OutputAccumulator
from scalebox._polling import StatusSnapshot, poll_until, status_in
from scalebox._process import CommandHandle, HandleState, ProcessHandle, PtyHandle
from scalebox._pty import Pty
from scalebox._transport import ConnectTransport
from scalebox._types import (
    CommandResult,
    ProcessConfig,
    ProcessInfo,
    ProcessSelector,
    PtySize,
    Signal,
)
from scalebox.exceptions import (
    CommandExitError,
    PollCancelledError,
    PollError,
    PollTimeoutError,
    ProcessError,
    ProcessNotFoundError,
    ProcessNotStartedError,
    ProcessResultError,
    RequestTimeoutError,
    SandboxError,
    SandboxFailedError,
    SandboxNotFoundError,
    SandboxTimeoutError,
    ScaleboxAuthenticationError,
    ScaleboxError,
    TransportError,
)

__all__ = [
    "IMPORT_TERMINAL_STATUSES",
    "BarChart",
    "BoxAndWhiskerChart",
    "Chart",
    "ChartType",
    "CodeContext",
    "CodeInterpreter",
    "CommandExitError",
    "CommandHandle",
    "CommandResult",
    "Commands",
    "ConnectTransport",
    "ConnectionConfig",
    "DataEvent",
    "EndEvent",
    "Execution",
    "ExecutionError",
    "ExecutionResult",
    "HandleState",
    "KeepaliveEvent",
    "LineChart",
    "Logs",
    "OutputAccumulator",
    "OutputMessage",
    "OutputStream",
    "PieChart",
    "PollCancelledError",
    "PollError",
    "PollTimeoutError",
    "ProcessConfig",
    "ProcessError",
    "ProcessEvent",
    "ProcessHandle",
    "ProcessInfo",
    "ProcessNotFoundError",
    "ProcessNotStartedError",
    "ProcessResultError",
    "ProcessSelector",
    "Pty",
    "PtyHandle",
    "PtySize",
    "RequestTimeoutError",
    "Result",
    "SandboxApi",
    "SandboxError",
    "SandboxFailedError",
    "SandboxNotFoundError",
    "SandboxTimeoutError",
    "ScaleboxAuthenticationError",
    "ScaleboxError",
    "ScatterChart",
    "Signal",
    "StartEvent",
    "StatusSnapshot",
    "SuperChart",
    "TransportError",
    "decode_process_event",
    "deserialize_chart",
    "execution_to_result",
    "parse_output",
    "poll_until",
    "status_in",
]
