# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Messages of the ``process.Process`` service (commands and PTY sessions)."""

from __future__ import annotations

from scalebox._proto._descriptors import (
    BOOL,
    BYTES,
    ENUM,
    MESSAGE,
    SINT32,
    STRING,
    UINT32,
    enum,
    field,
    message,
    message_class,
    register,
    string_map,
)

_envs, _envs_entry = string_map("envs", 3, scope=".process.ProcessConfig")

DESCRIPTOR = register(
    "scalebox/process.proto",
    "process",
    [
        message(
            "PTY",
            [field("size", 1, MESSAGE, type_name=".process.PTY.Size")],
            nested=[message("Size", [field("cols", 1, UINT32), field("rows", 2, UINT32)])],
        ),
        message(
            "ProcessConfig",
            [
                field("cmd", 1, STRING),
                field("args", 2, STRING, repeated=True),
                _envs,
                field("cwd", 4, STRING),
            ],
            nested=[_envs_entry],
        ),
        message(
            "ProcessInfo",
            [
                field("config", 1, MESSAGE, type_name=".process.ProcessConfig"),
                field("pid", 2, UINT32),
                field("tag", 3, STRING),
            ],
        ),
        message(
            "ProcessSelector",
            [field("pid", 1, UINT32, oneof=0), field("tag", 2, STRING, oneof=0)],
            oneofs=["selector"],
        ),
        message(
            "ProcessInput",
            [field("stdin", 1, BYTES, oneof=0), field("pty", 2, BYTES, oneof=0)],
            oneofs=["input"],
        ),
        message(
            "ProcessEvent",
            [
                field("start", 1, MESSAGE, type_name=".process.ProcessEvent.StartEvent", oneof=0),
                field("data", 2, MESSAGE, type_name=".process.ProcessEvent.DataEvent", oneof=0),
                field("end", 3, MESSAGE, type_name=".process.ProcessEvent.EndEvent", oneof=0),
                field("keepalive", 4, MESSAGE, type_name=".process.ProcessEvent.KeepAlive", oneof=0),
            ],
            nested=[
                message("StartEvent", [field("pid", 1, UINT32)]),
                message(
                    "DataEvent",
                    [
                        field("stdout", 1, BYTES, oneof=0),
                        field("stderr", 2, BYTES, oneof=0),
                        field("pty", 3, BYTES, oneof=0),
                    ],
                    oneofs=["output"],
                ),
                message(
                    "EndEvent",
                    [
                        field("exit_code", 1, SINT32),
                        field("exited", 2, BOOL),
                        field("status", 3, STRING),
                        field("error", 4, STRING),
                    ],
                ),
                message("KeepAlive"),
            ],
            oneofs=["event"],
        ),
        message(
            "StartRequest",
            [
                field("process", 1, MESSAGE, type_name=".process.ProcessConfig"),
                field("pty", 2, MESSAGE, type_name=".process.PTY"),
                field("tag", 3, STRING),
            ],
        ),
        message("StartResponse", [field("event", 1, MESSAGE, type_name=".process.ProcessEvent")]),
        message("ConnectRequest", [field("process", 1, MESSAGE, type_name=".process.ProcessSelector")]),
        message("ConnectResponse", [field("event", 1, MESSAGE, type_name=".process.ProcessEvent")]),
        message(
            "UpdateRequest",
            [
                field("process", 1, MESSAGE, type_name=".process.ProcessSelector"),
                field("pty", 2, MESSAGE, type_name=".process.PTY"),
            ],
        ),
        message("UpdateResponse"),
        message(
            "SendInputRequest",
            [
                field("process", 1, MESSAGE, type_name=".process.ProcessSelector"),
                field("input", 2, MESSAGE, type_name=".process.ProcessInput"),
            ],
        ),
        message("SendInputResponse"),
        message(
            "SendSignalRequest",
            [
                field("process", 1, MESSAGE, type_name=".process.ProcessSelector"),
                field("signal", 2, ENUM, type_name=".process.Signal"),
            ],
        ),
        message("SendSignalResponse"),
        message("ListRequest"),
        message(
            "ListResponse",
            [field("processes", 1, MESSAGE, type_name=".process.ProcessInfo", repeated=True)],
        ),
    ],
    enums=[enum("Signal", {"SIGNAL_UNSPECIFIED": 0, "SIGNAL_SIGKILL": 9, "SIGNAL_SIGTERM": 15})],
)

PTY = message_class(DESCRIPTOR, "PTY")
ProcessConfig = message_class(DESCRIPTOR, "ProcessConfig")
ProcessInfo = message_class(DESCRIPTOR, "ProcessInfo")
ProcessSelector = message_class(DESCRIPTOR, "ProcessSelector")
ProcessInput = message_class(DESCRIPTOR, "ProcessInput")
ProcessEvent = message_class(DESCRIPTOR, "ProcessEvent")
StartRequest = message_class(DESCRIPTOR, "StartRequest")
StartResponse = message_class(DESCRIPTOR, "StartResponse")
ConnectRequest = message_class(DESCRIPTOR, "ConnectRequest")
ConnectResponse = message_class(DESCRIPTOR, "ConnectResponse")
UpdateRequest = message_class(DESCRIPTOR, "UpdateRequest")
UpdateResponse = message_class(DESCRIPTOR, "UpdateResponse")
SendInputRequest = message_class(DESCRIPTOR, "SendInputRequest")
SendInputResponse = message_class(DESCRIPTOR, "SendInputResponse")
SendSignalRequest = message_class(DESCRIPTOR, "SendSignalRequest")
SendSignalResponse = message_class(DESCRIPTOR, "SendSignalResponse")
ListRequest = message_class(DESCRIPTOR, "ListRequest")
ListResponse = message_class(DESCRIPTOR, "ListResponse")
