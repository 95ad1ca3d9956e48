# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Unit tests for scalebox._process module."""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from scalebox._events import DataEvent, EndEvent, OutputStream, StartEvent
from scalebox._process import CommandHandle, HandleState, PtyHandle, invoke_callback
from scalebox._types import CommandResult, PtySize
from scalebox.exceptions import (
    ProcessError,
    ProcessNotStartedError,
    ProcessResultError,
    TransportError,
)
from tests.unit.scalebox.conftest import (
    end,
    keepalive,
    pty,
    settle,
    start,
    stderr,
    stdout,
    stream_of,
)


class TestInvokeCallback:
    """Tests for invoke_callback."""

    @pytest.mark.asyncio
    async def test_sync_callback(self) -> None:
        """Test sync callbacks are called with the data."""
        seen: list[str] = []
        await invoke_callback(seen.append, "x", name="stdout")
        assert seen == ["x"]

    @pytest.mark.asyncio
    async def test_async_callback_awaited(self) -> None:
        """Test async callbacks are awaited."""
        callback = AsyncMock()
        await invoke_callback(callback, "x", name="stdout")
        callback.assert_awaited_once_with("x")

    @pytest.mark.asyncio
    async def test_exception_logged_and_swallowed(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test callback errors are logged, not raised."""

        def bad(_: str) -> None:
            raise RuntimeError("callback broke")

        with caplog.at_level(logging.ERROR, logger="scalebox._process"):
            await invoke_callback(bad, "x", name="stdout")
        assert "Error in stdout callback" in caplog.text


class TestCommandHandle:
    """Tests for CommandHandle event consumption."""

    @pytest.mark.asyncio
    async def test_basic_scenario(self) -> None:
        """Test start, two stdout chunks and end resolve to the expected result."""
        handle = CommandHandle(
            stream_of(start(42), stdout("a"), stdout("b"), end(0)),
            kill=AsyncMock(return_value=True),
        )

        result = await handle.wait()

        assert result == CommandResult(exit_code=0, stdout="ab", stderr="", error=None)
        assert handle.pid == 42
        assert handle.exit_code == 0
        assert handle.state is HandleState.TERMINATED
        assert handle.done

    @pytest.mark.asyncio
    async def test_interleaved_streams_keep_order(self) -> None:
        """Test stdout and stderr each preserve arrival order."""
        handle = CommandHandle(
            stream_of(
                start(1),
                stdout("1"),
                stderr("x"),
                stdout("2"),
                keepalive(),
                stderr("y"),
                stdout("3"),
                end(0),
            ),
            kill=AsyncMock(),
        )

        result = await handle.wait()

        assert result.stdout == "123"
        assert result.stderr == "xy"

    @pytest.mark.asyncio
    async def test_accepts_decoded_events(self) -> None:
        """Test already-decoded event objects are consumed directly."""
        handle = CommandHandle(
            stream_of(
                StartEvent(pid=5),
                DataEvent(stream=OutputStream.STDOUT, data=b"hi"),
                EndEvent(exit_code=0),
            ),
            kill=AsyncMock(),
        )
        assert (await handle.wait()).stdout == "hi"

    @pytest.mark.asyncio
    async def test_data_after_end_is_ignored(self, controlled_stream) -> None:
        """Test nothing after the end event changes the result."""
        stream = controlled_stream()
        handle = CommandHandle(stream, kill=AsyncMock())
        stream.push(start(1), stdout("done"), end(0), stdout("late"), stderr("late"))

        result = await handle.wait()
        await settle()

        assert result.stdout == "done"
        assert handle.stdout == "done"
        assert handle.stderr == ""
        assert handle.result is result

    @pytest.mark.asyncio
    async def test_end_error_is_data(self) -> None:
        """Test an end event error is recorded on the result, not raised."""
        handle = CommandHandle(stream_of(start(1), end(1, error="exit status 1")), kill=AsyncMock())

        result = await handle.wait()

        assert result.exit_code == 1
        assert result.error == "exit status 1"
        assert handle.error == "exit status 1"

    @pytest.mark.asyncio
    async def test_callbacks_receive_new_chunks_in_order(self) -> None:
        """Test callbacks get each chunk, not the accumulated buffer."""
        out: list[str] = []
        err: list[str] = []
        handle = CommandHandle(
            stream_of(start(1), stdout("a"), stderr("e"), stdout("b"), end(0)),
            kill=AsyncMock(),
            on_stdout=out.append,
            on_stderr=err.append,
        )
        await handle.wait()
        assert out == ["a", "b"]
        assert err == ["e"]

    @pytest.mark.asyncio
    async def test_async_callback_applies_backpressure(self) -> None:
        """Test an async callback finishes before the next event is processed."""
        order: list[str] = []

        async def slow(chunk: str) -> None:
            order.append(f"begin {chunk}")
            await asyncio.sleep(0.01)
            order.append(f"end {chunk}")

        handle = CommandHandle(
            stream_of(start(1), stdout("a"), stdout("b"), end(0)),
            kill=AsyncMock(),
            on_stdout=slow,
        )
        await handle.wait()
        assert order == ["begin a", "end a", "begin b", "end b"]

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_break_accounting(self) -> None:
        """Test a raising callback leaves buffers and consumption intact."""

        def bad(_: str) -> None:
            raise ValueError("nope")

        handle = CommandHandle(
            stream_of(start(1), stdout("a"), stdout("b"), end(0)),
            kill=AsyncMock(),
            on_stdout=bad,
        )
        result = await handle.wait()
        assert result.stdout == "ab"

    @pytest.mark.asyncio
    async def test_pid_before_start_raises(self, controlled_stream) -> None:
        """Test reading pid before the start event fails fast."""
        stream = controlled_stream()
        handle = CommandHandle(stream, kill=AsyncMock())
        await settle()

        with pytest.raises(ProcessNotStartedError):
            _ = handle.pid
        assert handle.state is HandleState.CREATED

        stream.push(start(9))
        await settle()
        assert handle.pid == 9
        assert handle.state is HandleState.STARTED

        stream.push(end(0))
        await handle.wait()

    @pytest.mark.asyncio
    async def test_output_readable_before_completion(self, controlled_stream) -> None:
        """Test stdout grows while the command is still running."""
        stream = controlled_stream()
        handle = CommandHandle(stream, kill=AsyncMock())
        stream.push(start(1), stdout("partial"))
        await settle()

        assert handle.stdout == "partial"
        assert handle.exit_code is None
        assert not handle.done

        stream.push(end(0))
        await handle.wait()

    @pytest.mark.asyncio
    async def test_stream_error_before_start(self) -> None:
        """Test a stream failure before start fails the handle."""
        error = TransportError("connection reset")
        handle = CommandHandle(stream_of(error=error), kill=AsyncMock())

        with pytest.raises(TransportError, match="connection reset"):
            await handle.wait()
        assert handle.state is HandleState.FAILED
        assert handle.iteration_error is error
        assert handle.result is None

    @pytest.mark.asyncio
    async def test_stream_error_mid_stream(self) -> None:
        """Test a stream failure after start keeps output but raises from wait."""
        handle = CommandHandle(
            stream_of(start(1), stdout("some"), error=TransportError("dropped")),
            kill=AsyncMock(),
        )

        with pytest.raises(TransportError):
            await handle.wait()
        assert handle.stdout == "some"
        assert handle.state is HandleState.FAILED
        assert handle.error == "dropped"

    @pytest.mark.asyncio
    async def test_stream_ends_without_end_event(self) -> None:
        """Test wait raises when the stream stops without a result."""
        handle = CommandHandle(stream_of(start(3), stdout("x")), kill=AsyncMock())

        with pytest.raises(ProcessResultError, match="no result received"):
            await handle.wait()
        assert handle.state is HandleState.FAILED

    @pytest.mark.asyncio
    async def test_malformed_and_unknown_events_skipped(self) -> None:
        """Test protocol noise never stops consumption."""
        handle = CommandHandle(
            stream_of(
                {"event": {"unknown": {}}},
                {"event": {"start": {}}},
                start(4),
                {"event": {"data": {"stdout": 42}}},
                stdout("ok"),
                end(0),
            ),
            kill=AsyncMock(),
        )
        result = await handle.wait()
        assert handle.pid == 4
        assert result.stdout == "ok"

    @pytest.mark.asyncio
    async def test_duplicate_start_ignored(self) -> None:
        """Test a second start event does not change the pid."""
        handle = CommandHandle(stream_of(start(1), start(2), end(0)), kill=AsyncMock())
        await handle.wait()
        assert handle.pid == 1

    @pytest.mark.asyncio
    async def test_kill_uses_pid(self) -> None:
        """Test kill forwards the pid to the kill side channel."""
        kill = AsyncMock(return_value=True)
        handle = CommandHandle(stream_of(start(42), end(0)), kill=kill)
        await handle.wait()

        assert await handle.kill() is True
        kill.assert_awaited_once_with(42)

    @pytest.mark.asyncio
    async def test_kill_after_termination_returns_false(self) -> None:
        """Test kill of an exited process reports False instead of raising."""
        handle = CommandHandle(stream_of(start(42), end(0)), kill=AsyncMock(return_value=False))
        await handle.wait()
        assert await handle.kill() is False

    @pytest.mark.asyncio
    async def test_kill_before_start_raises(self, controlled_stream) -> None:
        """Test kill before start fails fast."""
        stream = controlled_stream()
        handle = CommandHandle(stream, kill=AsyncMock())
        with pytest.raises(ProcessNotStartedError):
            await handle.kill()
        stream.close()
        with pytest.raises(ProcessResultError):
            await handle.wait()

    @pytest.mark.asyncio
    async def test_send_stdin(self) -> None:
        """Test send_stdin encodes text and forwards it with the pid."""
        send_input = AsyncMock()
        handle = CommandHandle(
            stream_of(start(8), end(0)), kill=AsyncMock(), send_input=send_input
        )
        await handle.wait()

        await handle.send_stdin("data\n")

        send_input.assert_awaited_once_with(8, b"data\n")

    @pytest.mark.asyncio
    async def test_send_stdin_before_start_raises(self, controlled_stream) -> None:
        """Test send_stdin before start fails fast without calling the transport."""
        stream = controlled_stream()
        send_input = AsyncMock()
        handle = CommandHandle(stream, kill=AsyncMock(), send_input=send_input)

        with pytest.raises(ProcessNotStartedError):
            await handle.send_stdin("x")
        send_input.assert_not_awaited()
        await handle.disconnect()

    @pytest.mark.asyncio
    async def test_disconnect(self, controlled_stream) -> None:
        """Test disconnect stops consumption without killing the process."""
        stream = controlled_stream()
        kill = AsyncMock()
        handle = CommandHandle(stream, kill=kill)
        stream.push(start(1), stdout("a"))
        await settle()

        await handle.disconnect()

        assert handle.done
        assert handle.state is HandleState.FAILED
        assert handle.stdout == "a"
        kill.assert_not_awaited()
        with pytest.raises(ProcessError, match="disconnected"):
            await handle.wait()

    @pytest.mark.asyncio
    async def test_disconnect_after_end_keeps_result(self) -> None:
        """Test disconnect after termination is a no-op."""
        handle = CommandHandle(stream_of(start(1), end(0)), kill=AsyncMock())
        result = await handle.wait()
        await handle.disconnect()
        assert handle.state is HandleState.TERMINATED
        assert await handle.wait() is result

    @pytest.mark.asyncio
    async def test_registry_bookkeeping(self, controlled_stream) -> None:
        """Test handles register at start and unregister at termination."""
        registry: dict = {}
        stream = controlled_stream()
        handle = CommandHandle(stream, kill=AsyncMock(), registry=registry)
        assert registry == {}

        stream.push(start(11))
        await settle()
        assert registry == {11: handle}

        stream.push(end(0))
        await handle.wait()
        assert registry == {}

    @pytest.mark.asyncio
    async def test_registry_cleared_on_failure(self) -> None:
        """Test a failed handle removes itself from the registry."""
        registry: dict = {}
        handle = CommandHandle(
            stream_of(start(11), error=TransportError("gone")),
            kill=AsyncMock(),
            registry=registry,
        )
        with pytest.raises(TransportError):
            await handle.wait()
        assert registry == {}

    @pytest.mark.asyncio
    async def test_repr(self) -> None:
        """Test repr shows pid and state."""
        handle = CommandHandle(stream_of(start(3), end(0)), kill=AsyncMock())
        await handle.wait()
        assert repr(handle) == "<CommandHandle pid=3 state=terminated>"


class TestPtyHandle:
    """Tests for PtyHandle."""

    def _handle(self, events, **kwargs) -> PtyHandle:
        kwargs.setdefault("kill", AsyncMock(return_value=True))
        kwargs.setdefault("send_input", AsyncMock())
        kwargs.setdefault("resize", AsyncMock())
        return PtyHandle(events, **kwargs)

    @pytest.mark.asyncio
    async def test_data_and_result(self) -> None:
        """Test PTY output accumulates and the result carries it as stdout."""
        chunks: list[bytes] = []
        handle = self._handle(
            stream_of(start(7), pty(b"$ ls\r\n"), pty(b"file\r\n"), end(0)),
            on_data=chunks.append,
        )

        result = await handle.wait()

        assert chunks == [b"$ ls\r\n", b"file\r\n"]
        assert handle.data == "$ ls\r\nfile\r\n"
        assert handle.data_bytes == b"$ ls\r\nfile\r\n"
        assert result == CommandResult(exit_code=0, stdout="$ ls\r\nfile\r\n", stderr="")

    @pytest.mark.asyncio
    async def test_end_error_is_data(self) -> None:
        """Test a PTY end error is recorded on the result."""
        handle = self._handle(stream_of(start(7), end(137, error="killed")))
        result = await handle.wait()
        assert result.exit_code == 137
        assert result.error == "killed"

    @pytest.mark.asyncio
    async def test_non_pty_output_ignored(self) -> None:
        """Test stdout data on a PTY stream is not mixed into terminal data."""
        handle = self._handle(stream_of(start(7), stdout("noise"), pty(b"tty"), end(0)))
        await handle.wait()
        assert handle.data == "tty"

    @pytest.mark.asyncio
    async def test_send_and_resize(self) -> None:
        """Test send and resize forward the pid to the side channels."""
        send_input = AsyncMock()
        resize = AsyncMock()
        handle = self._handle(
            stream_of(start(7), end(0)), send_input=send_input, resize=resize
        )
        await handle.wait()

        await handle.send("ls\n")
        await handle.send(b"\x03")
        await handle.resize(PtySize(cols=120, rows=40))

        assert send_input.await_args_list[0].args == (7, b"ls\n")
        assert send_input.await_args_list[1].args == (7, b"\x03")
        resize.assert_awaited_once_with(7, PtySize(cols=120, rows=40))

    @pytest.mark.asyncio
    async def test_send_before_start_raises(self, controlled_stream) -> None:
        """Test send and resize before start fail fast."""
        stream = controlled_stream()
        handle = self._handle(stream)

        with pytest.raises(ProcessNotStartedError):
            await handle.send("x")
        with pytest.raises(ProcessNotStartedError):
            await handle.resize(PtySize())
        await handle.disconnect()
