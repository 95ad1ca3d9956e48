# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Protobuf messages and Connect clients for the in-sandbox services.

Importing this package installs a JSON codec that skips unknown fields, so
responses from a newer sandbox daemon still decode. Execution results in
particular grow new output formats over time.
"""

from __future__ import annotations

from typing import TypeVar

import connectrpc._codec as codec_module
from google.protobuf.json_format import Parse
from google.protobuf.message import Message

M = TypeVar("M", bound=Message)


class _SkipUnknownJSONCodec(codec_module.ProtoJSONCodec[M]):
    def decode(self, data: bytes | bytearray, message: M) -> M:
        Parse(bytes(data), message, ignore_unknown_fields=True)
        return message


def _install_json_codec() -> None:
    codec: _SkipUnknownJSONCodec[Message] = _SkipUnknownJSONCodec()
    codec_module._proto_json_codec = codec
    for name in (codec_module.CODEC_NAME_JSON, codec_module.CODEC_NAME_JSON_CHARSET_UTF8):
        codec_module._codecs[name] = codec


_install_json_codec()
