# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Local handles for remote processes (commands and PTY sessions).

A handle is created around the event stream of one ``start`` or ``connect``
call and immediately begins consuming it in a background task. The stream
drives all local state; ``kill``/``send``/``resize`` are independent
requests keyed by pid that never touch the consumption loop.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterable, Awaitable, Callable, Mapping, MutableMapping
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from scalebox._events import (
    DataEvent,
    EndEvent,
    KeepaliveEvent,
    OutputStream,
    ProcessEvent,
    StartEvent,
    decode_process_event,
)
from scalebox._output import OutputAccumulator
from scalebox._types import CommandResult, ProcessInfo, ProcessSelector, PtySize, Signal
from scalebox.exceptions import (
    ProcessError,
    ProcessNotFoundError,
    ProcessNotStartedError,
    ProcessResultError,
)

if TYPE_CHECKING:
    from scalebox._transport import ConnectTransport

logger = logging.getLogger(__name__)

T = TypeVar("T", str, bytes)

OutputCallback = Callable[[T], Awaitable[None] | None]
KillFn = Callable[[int], Awaitable[bool]]
SendInputFn = Callable[[int, bytes], Awaitable[None]]
ResizeFn = Callable[[int, PtySize], Awaitable[None]]

_EVENT_TYPES = (StartEvent, DataEvent, EndEvent, KeepaliveEvent)


class HandleState(StrEnum):
    """Lifecycle of a process handle. TERMINATED and FAILED are final."""

    CREATED = "created"
    STARTED = "started"
    TERMINATED = "terminated"
    FAILED = "failed"


async def invoke_callback(callback: Callable[[Any], Any], data: Any, *, name: str) -> None:
    """Call a user callback, awaiting it if it is async.

    Exceptions are logged and swallowed: a failing consumer must not break
    output accounting or stop the stream.
    """
    try:
        result = callback(data)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("Error in %s callback", name)


class ProcessHandle:
    """Base handle: pid tracking, terminal result, and the consumption loop.

    Subclasses decide which streams they accumulate and which callbacks
    they fire via ``_handle_data``.
    """

    _kind = "process"

    def __init__(
        self,
        events: AsyncIterable[ProcessEvent | dict[str, Any]],
        *,
        kill: KillFn,
        registry: MutableMapping[int, ProcessHandle] | None = None,
    ) -> None:
        self._events = events
        self._kill = kill
        self._registry = registry

        self._pid: int | None = None
        self._state = HandleState.CREATED
        self._result: CommandResult | None = None
        self._iteration_error: BaseException | None = None
        self._done = asyncio.Event()

        self._task = asyncio.create_task(self._consume(), name=f"scalebox-{self._kind}-events")
        self._task.add_done_callback(self._on_task_done)

    # Properties

    @property
    def pid(self) -> int:
        """Remote process ID.

        Raises:
            ProcessNotStartedError: If the start event has not arrived yet
        """
        if self._pid is None:
            raise ProcessNotStartedError(
                f"PID not available yet - wait for the {self._kind} to start"
            )
        return self._pid

    @property
    def state(self) -> HandleState:
        return self._state

    @property
    def done(self) -> bool:
        """True once the consumption loop has stopped for any reason."""
        return self._done.is_set()

    @property
    def result(self) -> CommandResult | None:
        """Terminal result, or None while running or if the stream failed."""
        return self._result

    @property
    def exit_code(self) -> int | None:
        """Exit code, or None if the process has not ended."""
        return self._result.exit_code if self._result is not None else None

    @property
    def iteration_error(self) -> BaseException | None:
        """Error raised by the event stream itself, if any."""
        return self._iteration_error

    @property
    def error(self) -> str | None:
        """Error reported by the process, or the stream error message."""
        if self._result is not None and self._result.error:
            return self._result.error
        if self._iteration_error is not None:
            return str(self._iteration_error)
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} pid={self._pid} state={self._state.value}>"

    # Public API

    async def wait(self) -> CommandResult:
        """Wait for the event stream to finish and return the result.

        Raises:
            Exception: The stream error, if the stream failed
            ProcessResultError: If the stream ended without an end event
        """
        await self._done.wait()
        if self._iteration_error is not None:
            raise self._iteration_error
        if self._result is not None:
            return self._result
        raise ProcessResultError(
            f"{self._kind.capitalize()} execution failed: no result received (PID: {self._pid})"
        )

    async def kill(self) -> bool:
        """Send SIGKILL to the remote process.

        Returns:
            True if the signal was delivered, False if the process was already gone

        Raises:
            ProcessNotStartedError: If the pid is not known yet
        """
        if self._pid is None:
            raise ProcessNotStartedError(f"Cannot kill {self._kind} - PID not available yet")
        return await self._kill(self._pid)

    async def disconnect(self) -> None:
        """Stop consuming events locally. The remote process keeps running.

        Reconnect later with ``connect(pid)``.
        """
        if not self._task.done():
            self._task.cancel()
            await asyncio.wait([self._task])
        # A task cancelled before its first step never runs its own cleanup
        if not self._done.is_set():
            self._mark_disconnected()
            self._done.set()

    # Consumption loop

    async def _consume(self) -> None:
        iterator = aiter(self._events)
        try:
            async for message in iterator:
                event = self._decode(message)
                if event is None:
                    continue

                match event:
                    case StartEvent(pid=pid):
                        self._handle_start(pid)
                    case DataEvent(stream=stream, data=data):
                        await self._handle_data(stream, data)
                    case EndEvent():
                        await self._handle_end(event)
                        break
                    case KeepaliveEvent():
                        pass
        except asyncio.CancelledError:
            self._mark_disconnected()
            raise
        except Exception as e:
            logger.debug("%s event stream failed (pid %s): %s", self._kind, self._pid, e)
            self._iteration_error = e
            self._finish(HandleState.FAILED)
        else:
            if self._result is None:
                logger.warning("%s event stream ended without an end event", self._kind)
                self._finish(HandleState.FAILED)
        finally:
            self._done.set()
            close = getattr(iterator, "aclose", None)
            if close is not None:
                try:
                    await close()
                except Exception:
                    logger.debug("Error closing %s event stream", self._kind, exc_info=True)

    def _decode(self, message: ProcessEvent | dict[str, Any]) -> ProcessEvent | None:
        if isinstance(message, _EVENT_TYPES):
            return message
        try:
            return decode_process_event(message)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed %s event: %s", self._kind, e)
            return None

    def _handle_start(self, pid: int) -> None:
        if self._pid is not None:
            logger.warning("Ignoring duplicate start event (pid %s, already %s)", pid, self._pid)
            return
        self._pid = pid
        self._state = HandleState.STARTED
        if self._registry is not None:
            self._registry[pid] = self
        logger.debug("%s started with pid %s", self._kind, pid)

    async def _handle_data(self, stream: OutputStream, data: bytes) -> None:
        raise NotImplementedError

    async def _handle_end(self, event: EndEvent) -> None:
        self._result = self._build_result(event)
        logger.debug("%s %s exited with code %s", self._kind, self._pid, event.exit_code)
        self._finish(HandleState.TERMINATED)

    def _build_result(self, event: EndEvent) -> CommandResult:
        raise NotImplementedError

    def _finish(self, state: HandleState) -> None:
        self._state = state
        if self._registry is not None and self._pid is not None:
            if self._registry.get(self._pid) is self:
                del self._registry[self._pid]

    def _mark_disconnected(self) -> None:
        if self._state not in (HandleState.TERMINATED, HandleState.FAILED):
            self._iteration_error = ProcessError(f"{self._kind.capitalize()} disconnected")
            self._finish(HandleState.FAILED)

    def _require_pid(self, action: str) -> int:
        if self._pid is None:
            raise ProcessNotStartedError(f"Cannot {action} - PID not available yet")
        return self._pid

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        """Retrieve the task outcome so asyncio never reports it as unhandled."""
        if not task.cancelled():
            task.exception()


class _StreamCallbacks(Generic[T]):
    """Pairs an accumulator with an optional per-chunk callback."""

    def __init__(self, name: str, callback: OutputCallback[T] | None) -> None:
        self.name = name
        self.callback = callback
        self.buffer = OutputAccumulator()


class CommandHandle(ProcessHandle):
    """Handle for a command started with ``Commands.start`` or ``connect``.

    ``stdout`` and ``stderr`` grow as output arrives and can be read at any
    time. Callbacks receive each newly decoded chunk, in arrival order.

    Example:
        ```python
        handle = await commands.start("python train.py", on_stdout=print)
        print(handle.pid)
        result = await handle.wait()
        print(result.exit_code, result.stdout)
        ```
    """

    _kind = "command"

    def __init__(
        self,
        events: AsyncIterable[ProcessEvent | dict[str, Any]],
        *,
        kill: KillFn,
        send_input: SendInputFn | None = None,
        on_stdout: OutputCallback[str] | None = None,
        on_stderr: OutputCallback[str] | None = None,
        registry: MutableMapping[int, ProcessHandle] | None = None,
    ) -> None:
        self._send_input = send_input
        self._stdout = _StreamCallbacks("stdout", on_stdout)
        self._stderr = _StreamCallbacks("stderr", on_stderr)
        super().__init__(events, kill=kill, registry=registry)

    @property
    def stdout(self) -> str:
        return self._stdout.buffer.text

    @property
    def stderr(self) -> str:
        return self._stderr.buffer.text

    async def send_stdin(self, data: str | bytes) -> None:
        """Write to the remote process's stdin.

        Raises:
            ProcessNotStartedError: If the pid is not known yet
        """
        pid = self._require_pid("send stdin")
        if self._send_input is None:
            raise ProcessError("This handle was created without a stdin channel")
        payload = data.encode("utf-8") if isinstance(data, str) else data
        await self._send_input(pid, payload)

    async def _handle_data(self, stream: OutputStream, data: bytes) -> None:
        if self._state in (HandleState.TERMINATED, HandleState.FAILED):
            logger.warning("Ignoring %s data received after the command ended", stream.value)
            return
        match stream:
            case OutputStream.STDOUT:
                target = self._stdout
            case OutputStream.STDERR:
                target = self._stderr
            case OutputStream.PTY:
                logger.warning("Received pty output on a command stream, treating as stdout")
                target = self._stdout
        chunk = target.buffer.append(data)
        if chunk and target.callback is not None:
            await invoke_callback(target.callback, chunk, name=target.name)

    async def _handle_end(self, event: EndEvent) -> None:
        for target in (self._stdout, self._stderr):
            tail = target.buffer.flush()
            if tail and target.callback is not None:
                await invoke_callback(target.callback, tail, name=target.name)
        await super()._handle_end(event)

    def _build_result(self, event: EndEvent) -> CommandResult:
        return CommandResult(
            exit_code=event.exit_code,
            stdout=self.stdout,
            stderr=self.stderr,
            error=event.error,
        )


class PtyHandle(ProcessHandle):
    """Handle for a pseudo-terminal session.

    ``on_data`` receives raw bytes exactly as sent by the terminal. ``data``
    is the decoded terminal output so far.
    """

    _kind = "pty"

    def __init__(
        self,
        events: AsyncIterable[ProcessEvent | dict[str, Any]],
        *,
        kill: KillFn,
        send_input: SendInputFn,
        resize: ResizeFn,
        on_data: OutputCallback[bytes] | None = None,
        registry: MutableMapping[int, ProcessHandle] | None = None,
    ) -> None:
        self._send_input = send_input
        self._resize = resize
        self._output = _StreamCallbacks("pty data", on_data)
        super().__init__(events, kill=kill, registry=registry)

    @property
    def data(self) -> str:
        return self._output.buffer.text

    @property
    def data_bytes(self) -> bytes:
        return self._output.buffer.raw

    async def send(self, data: str | bytes) -> None:
        """Send keystrokes to the terminal.

        Raises:
            ProcessNotStartedError: If the pid is not known yet
        """
        pid = self._require_pid("send data")
        payload = data.encode("utf-8") if isinstance(data, str) else data
        await self._send_input(pid, payload)

    async def resize(self, size: PtySize) -> None:
        """Resize the terminal.

        Raises:
            ProcessNotStartedError: If the pid is not known yet
        """
        pid = self._require_pid("resize PTY")
        await self._resize(pid, size)

    async def _handle_data(self, stream: OutputStream, data: bytes) -> None:
        if self._state in (HandleState.TERMINATED, HandleState.FAILED):
            logger.warning("Ignoring pty data received after the session ended")
            return
        if stream is not OutputStream.PTY:
            logger.debug("Ignoring %s output on a pty stream", stream.value)
            return
        self._output.buffer.append(data)
        if self._output.callback is not None:
            await invoke_callback(self._output.callback, data, name=self._output.name)

    def _build_result(self, event: EndEvent) -> CommandResult:
        self._output.buffer.flush()
        return CommandResult(
            exit_code=event.exit_code,
            stdout=self.data,
            stderr="",
            error=event.error,
        )


class ProcessManager:
    """Shared side channels of the command and PTY managers.

    Owns the map of live handles keyed by pid. Handles add themselves at
    their start event and remove themselves when they reach a final state.
    """

    def __init__(self, transport: ConnectTransport) -> None:
        self._transport = transport
        self._handles: dict[int, ProcessHandle] = {}

    @property
    def handles(self) -> Mapping[int, ProcessHandle]:
        """Read-only view of live handles started or connected by this manager."""
        return MappingProxyType(self._handles)

    async def kill(self, selector: ProcessSelector | int | str) -> bool:
        """Send SIGKILL to a process.

        Returns:
            True if the signal was delivered, False if the process was not found
        """
        try:
            await self._transport.send_signal(ProcessSelector.of(selector), Signal.SIGKILL)
        except ProcessNotFoundError:
            logger.debug("Process %s already gone, nothing to kill", selector)
            return False
        return True

    async def send_signal(self, selector: ProcessSelector | int | str, signal: Signal) -> None:
        await self._transport.send_signal(ProcessSelector.of(selector), Signal(signal))

    async def list(self) -> list[ProcessInfo]:
        """List the processes (commands and PTY sessions) running in the sandbox."""
        return [ProcessInfo.from_payload(p) for p in await self._transport.list()]
