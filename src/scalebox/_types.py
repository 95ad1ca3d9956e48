# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from google.protobuf.message import Message

from scalebox._defaults import DEFAULT_PTY_COLS, DEFAULT_PTY_ROWS
from scalebox._proto import process_pb
from scalebox.exceptions import CommandExitError


class Signal(IntEnum):
    """Signals the process service accepts."""

    SIGKILL = 9
    SIGTERM = 15


@dataclass(frozen=True)
class ProcessSelector:
    """Selects a remote process by pid or by tag. Exactly one must be set."""

    pid: int | None = None
    tag: str | None = None

    def __post_init__(self) -> None:
        if (self.pid is None) == (self.tag is None):
            raise ValueError("ProcessSelector must have exactly one of pid or tag")

    @classmethod
    def of(cls, selector: ProcessSelector | int | str) -> ProcessSelector:
        """Coerce a pid, a tag, or an existing selector."""
        if isinstance(selector, ProcessSelector):
            return selector
        if isinstance(selector, bool):
            raise TypeError("pid must be an int, not bool")
        if isinstance(selector, int):
            return cls(pid=selector)
        if isinstance(selector, str):
            return cls(tag=selector)
        raise TypeError(f"Cannot build a ProcessSelector from {type(selector).__name__}")

    def to_proto(self) -> Message:
        if self.pid is not None:
            return process_pb.ProcessSelector(pid=self.pid)
        return process_pb.ProcessSelector(tag=self.tag)


@dataclass(frozen=True)
class PtySize:
    """Terminal size in columns and rows."""

    cols: int = DEFAULT_PTY_COLS
    rows: int = DEFAULT_PTY_ROWS

    def to_proto(self) -> Message:
        pty = process_pb.PTY()
        pty.size.cols = self.cols
        pty.size.rows = self.rows
        return pty


@dataclass(frozen=True)
class ProcessConfig:
    """Command line, environment and working directory of a remote process."""

    cmd: str
    args: tuple[str, ...] = ()
    envs: dict[str, str] = field(default_factory=dict)
    cwd: str | None = None

    def to_proto(self) -> Message:
        return process_pb.ProcessConfig(
            cmd=self.cmd, args=list(self.args), envs=dict(self.envs), cwd=self.cwd or ""
        )

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ProcessConfig:
        return cls(
            cmd=payload.get("cmd", ""),
            args=tuple(payload.get("args") or ()),
            envs=dict(payload.get("envs") or {}),
            cwd=payload.get("cwd") or None,
        )


@dataclass(frozen=True)
class ProcessInfo:
    """A process (command or PTY) running in the sandbox."""

    pid: int
    config: ProcessConfig
    tag: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ProcessInfo:
        return cls(
            pid=int(payload["pid"]),
            config=ProcessConfig.from_payload(payload.get("config") or {}),
            tag=payload.get("tag") or None,
        )


@dataclass(frozen=True)
class CommandResult:
    """Terminal result of a command or PTY session.

    ``error`` is the error reported by the process service in its end event.
    It is part of the result, not raised; use ``check()`` to turn a failed
    command into an exception.
    """

    exit_code: int
    stdout: str
    stderr: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and self.error is None

    def check(self) -> CommandResult:
        """Return self, or raise CommandExitError if the command failed."""
        if not self.ok:
            detail = f": {self.error}" if self.error else ""
            raise CommandExitError(
                f"Command exited with code {self.exit_code}{detail}",
                command_result=self,
            )
        return self
