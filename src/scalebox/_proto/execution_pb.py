# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Messages of the ``execution.ExecutionService`` service."""

from __future__ import annotations

from google.protobuf import struct_pb2, timestamp_pb2

from scalebox._proto._descriptors import (
    BOOL,
    INT32,
    MESSAGE,
    STRING,
    field,
    message,
    message_class,
    register,
    string_map,
)

_TIMESTAMP = "." + timestamp_pb2.Timestamp.DESCRIPTOR.full_name
_STRUCT = "." + struct_pb2.Struct.DESCRIPTOR.full_name
_VALUE = "." + struct_pb2.Value.DESCRIPTOR.full_name

_env_vars, _env_vars_entry = string_map("env_vars", 4, scope=".execution.ExecuteRequest")

DESCRIPTOR = register(
    "scalebox/execution.proto",
    "execution",
    [
        message(
            "ExecuteRequest",
            [
                field("context_id", 1, STRING),
                field("code", 2, STRING),
                field("language", 3, STRING),
                _env_vars,
            ],
            nested=[_env_vars_entry],
        ),
        message("Output", [field("content", 1, STRING)]),
        message(
            "Result",
            [
                field("exit_code", 1, INT32),
                field("started_at", 2, MESSAGE, type_name=_TIMESTAMP),
                field("finished_at", 3, MESSAGE, type_name=_TIMESTAMP),
                field("text", 4, STRING),
                field("html", 5, STRING),
                field("markdown", 6, STRING),
                field("svg", 7, STRING),
                field("png", 8, STRING),
                field("jpeg", 9, STRING),
                field("pdf", 10, STRING),
                field("latex", 11, STRING),
                field("json", 12, MESSAGE, type_name=_VALUE),
                field("javascript", 13, STRING),
                field("data", 14, MESSAGE, type_name=_VALUE),
                field("chart", 15, MESSAGE, type_name=_STRUCT),
                field("execution_count", 16, INT32),
                field("is_main_result", 17, BOOL),
                field("extra", 18, MESSAGE, type_name=_STRUCT),
            ],
        ),
        message(
            "Error",
            [field("name", 1, STRING), field("value", 2, STRING), field("traceback", 3, STRING)],
        ),
        message(
            "ExecuteResponse",
            [
                field("stdout", 1, MESSAGE, type_name=".execution.Output", oneof=0),
                field("stderr", 2, MESSAGE, type_name=".execution.Output", oneof=0),
                field("result", 3, MESSAGE, type_name=".execution.Result", oneof=0),
                field("error", 4, MESSAGE, type_name=".execution.Error", oneof=0),
            ],
            oneofs=["event"],
        ),
    ],
    dependencies=[
        struct_pb2.DESCRIPTOR.name,
        timestamp_pb2.DESCRIPTOR.name,
    ],
)

ExecuteRequest = message_class(DESCRIPTOR, "ExecuteRequest")
ExecuteResponse = message_class(DESCRIPTOR, "ExecuteResponse")
Output = message_class(DESCRIPTOR, "Output")
Result = message_class(DESCRIPTOR, "Result")
Error = message_class(DESCRIPTOR, "Error")
