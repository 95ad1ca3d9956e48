# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Process event variants and the decoder for process-service stream messages.

A process stream carries, in order: one start event, any number of data
events, and one end event. Keepalive events may appear anywhere and carry
nothing.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class OutputStream(StrEnum):
    """Which remote stream a data event belongs to."""

    STDOUT = "stdout"
    STDERR = "stderr"
    PTY = "pty"


@dataclass(frozen=True)
class StartEvent:
    pid: int


@dataclass(frozen=True)
class DataEvent:
    stream: OutputStream
    data: bytes


@dataclass(frozen=True)
class EndEvent:
    exit_code: int
    exited: bool = False
    status: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class KeepaliveEvent:
    pass


ProcessEvent = StartEvent | DataEvent | EndEvent | KeepaliveEvent


def _decode_bytes(value: Any) -> bytes:
    """Stream payloads arrive as raw bytes or as base64 text (JSON encoding).

    Raises:
        binascii.Error: If text is not valid base64
    """
    if isinstance(value, bytes | bytearray | memoryview):
        return bytes(value)
    if isinstance(value, str):
        return base64.b64decode(value, validate=True)
    raise TypeError(f"Unsupported data payload type: {type(value).__name__}")


def _field(payload: dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in payload:
        return payload[camel]
    return payload.get(snake, default)


def decode_process_event(message: dict[str, Any]) -> ProcessEvent | None:
    """Decode one process-service message into an event variant.

    Accepts both the nested ``{"event": {"start": {...}}}`` shape and the
    flat ``{"start": {...}}`` shape. Returns None for messages that carry no
    known event; consumers skip those.

    Raises:
        TypeError, ValueError, KeyError: If a known variant is malformed
    """
    body = message.get("event", message)
    if not isinstance(body, dict):
        return None

    if "start" in body:
        return StartEvent(pid=int(body["start"]["pid"]))

    if "data" in body:
        data = body["data"] or {}
        output = data.get("output", data)
        for stream in OutputStream:
            if stream.value in output:
                return DataEvent(stream=stream, data=_decode_bytes(output[stream.value]))
        logger.debug("Ignoring data event without a known stream: %s", sorted(output))
        return None

    if "end" in body:
        end = body["end"] or {}
        return EndEvent(
            exit_code=int(_field(end, "exitCode", "exit_code", 0)),
            exited=bool(end.get("exited", False)),
            status=end.get("status") or None,
            error=end.get("error") or None,
        )

    if "keepalive" in body:
        return KeepaliveEvent()

    return None
