# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Exception hierarchy for sandbox, process, and polling operations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from scalebox._types import CommandResult


class ScaleboxError(Exception):
    """Base exception for all scalebox client errors."""


class ScaleboxAuthenticationError(ScaleboxError):
    """Raised when no usable credentials are configured or the server rejects them."""


class TransportError(ScaleboxError):
    """Raised when a request to the service fails at the transport level.

    Attributes:
        status_code: HTTP status code, if a response was received
        code: Protocol error code reported by the server (e.g. "not_found")
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class SandboxError(ScaleboxError):
    """Base exception for sandbox operations."""


class SandboxNotFoundError(SandboxError):
    """Raised when a sandbox does not exist."""

    def __init__(self, message: str, *, sandbox_id: str | None = None) -> None:
        super().__init__(message)
        self.sandbox_id = sandbox_id


class SandboxTimeoutError(SandboxError):
    """Raised when a sandbox operation times out."""


class SandboxFailedError(SandboxError):
    """Raised when a sandbox fails to start or encounters a fatal error."""


class ProcessError(ScaleboxError):
    """Base exception for process and PTY operations."""


class ProcessNotStartedError(ProcessError):
    """Raised when an operation needs a pid before the start event arrived."""


class ProcessNotFoundError(ProcessError):
    """Raised when the selected process no longer exists."""


class ProcessResultError(ProcessError):
    """Raised when an event stream stopped without an end event or an error."""


class CommandExitError(ProcessError):
    """Raised by ``CommandResult.check()`` for a non-zero exit code.

    Access execution details via command_result
    """

    def __init__(self, message: str, *, command_result: CommandResult) -> None:
        super().__init__(message)
        self.command_result = command_result

    @property
    def exit_code(self) -> int:
        return self.command_result.exit_code


class PollError(ScaleboxError):
    """Base exception for status polling."""


class PollTimeoutError(PollError, SandboxTimeoutError):
    """Raised when polling hits its deadline before reaching a terminal status.

    ``last_snapshot`` holds the most recently observed status, if any.
    """

    def __init__(self, message: str, *, last_snapshot: Any = None) -> None:
        super().__init__(message)
        self.last_snapshot = last_snapshot


class PollCancelledError(PollError):
    """Raised when the caller cancelled polling."""


class RequestTimeoutError(TransportError):
    """Raised when a unary request exceeds its timeout."""
