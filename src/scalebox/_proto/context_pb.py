# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Messages of the ``context.ContextService`` service."""

from __future__ import annotations

from google.protobuf import timestamp_pb2

from scalebox._proto._descriptors import (
    BOOL,
    MESSAGE,
    STRING,
    field,
    message,
    message_class,
    register,
    string_map,
)

_env_vars, _env_vars_entry = string_map("env_vars", 5, scope=".context.CreateContextResponse")

DESCRIPTOR = register(
    "scalebox/context.proto",
    "context",
    [
        message("CreateContextRequest", [field("language", 1, STRING), field("cwd", 2, STRING)]),
        message(
            "CreateContextResponse",
            [
                field("id", 1, STRING),
                field("language", 2, STRING),
                field("cwd", 3, STRING),
                field(
                    "created_at",
                    4,
                    MESSAGE,
                    type_name="." + timestamp_pb2.Timestamp.DESCRIPTOR.full_name,
                ),
                _env_vars,
            ],
            nested=[_env_vars_entry],
        ),
        message("DestroyContextRequest", [field("context_id", 1, STRING)]),
        message("DestroyContextResponse", [field("success", 1, BOOL)]),
    ],
    dependencies=[timestamp_pb2.DESCRIPTOR.name],
)

CreateContextRequest = message_class(DESCRIPTOR, "CreateContextRequest")
CreateContextResponse = message_class(DESCRIPTOR, "CreateContextResponse")
DestroyContextRequest = message_class(DESCRIPTOR, "DestroyContextRequest")
DestroyContextResponse = message_class(DESCRIPTOR, "DestroyContextResponse")
