# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Unit tests for scalebox._output module."""

from __future__ import annotations

from scalebox._output import OutputAccumulator


class TestOutputAccumulator:
    """Tests for OutputAccumulator."""

    def test_empty(self) -> None:
        """Test a new accumulator is empty."""
        acc = OutputAccumulator()
        assert acc.text == ""
        assert acc.raw == b""
        assert acc.chunks == ()
        assert len(acc) == 0

    def test_append_returns_new_text_only(self) -> None:
        """Test append returns only the newly decoded chunk."""
        acc = OutputAccumulator()
        assert acc.append(b"hello ") == "hello "
        assert acc.append(b"world") == "world"
        assert acc.text == "hello world"
        assert acc.chunks == (b"hello ", b"world")
        assert len(acc) == 11

    def test_split_multibyte_character(self) -> None:
        """Test a UTF-8 character split across chunks decodes once complete."""
        encoded = "é".encode()
        acc = OutputAccumulator()
        assert acc.append(encoded[:1]) == ""
        assert acc.append(encoded[1:]) == "é"
        assert acc.text == "é"
        assert acc.raw == encoded

    def test_invalid_bytes_replaced(self) -> None:
        """Test invalid UTF-8 is replaced rather than raising."""
        acc = OutputAccumulator()
        acc.append(b"ok\xff")
        assert acc.text == "ok�"

    def test_flush_emits_trailing_partial(self) -> None:
        """Test flush decodes a dangling partial sequence."""
        acc = OutputAccumulator()
        acc.append("€".encode()[:2])
        assert acc.text == ""
        assert acc.flush() == "�"
        assert acc.text == "�"

    def test_repr(self) -> None:
        """Test repr shows chunk and byte counts."""
        acc = OutputAccumulator()
        acc.append(b"abc")
        assert repr(acc) == "<OutputAccumulator chunks=1 bytes=3>"
