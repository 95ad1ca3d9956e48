# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

from __future__ import annotations

import codecs


class OutputAccumulator:
    """Append-only, ordered buffer for one output stream.

    Keeps the raw chunks and an incrementally decoded UTF-8 view. A
    multi-byte character split across two chunks is emitted with the chunk
    that completes it. Invalid bytes are replaced, never raised.

    Only the owning consumption loop appends; readers see snapshots.
    """

    def __init__(self) -> None:
        self._chunks: list[bytes] = []
        self._text: list[str] = []
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def append(self, chunk: bytes) -> str:
        """Append a chunk and return the text it decoded to."""
        self._chunks.append(chunk)
        text = self._decoder.decode(chunk)
        if text:
            self._text.append(text)
        return text

    def flush(self) -> str:
        """Decode any trailing partial sequence. Called once the stream ends."""
        text = self._decoder.decode(b"", final=True)
        if text:
            self._text.append(text)
        return text

    @property
    def text(self) -> str:
        return "".join(self._text)

    @property
    def raw(self) -> bytes:
        return b"".join(self._chunks)

    @property
    def chunks(self) -> tuple[bytes, ...]:
        return tuple(self._chunks)

    def __len__(self) -> int:
        return sum(len(c) for c in self._chunks)

    def __repr__(self) -> str:
        return f"<OutputAccumulator chunks={len(self._chunks)} bytes={len(self)}>"
