# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Unit tests for scalebox._types module."""

from __future__ import annotations

import pytest
from google.protobuf.json_format import MessageToDict

from scalebox._types import (
    CommandResult,
    ProcessConfig,
    ProcessInfo,
    ProcessSelector,
    PtySize,
)
from scalebox.exceptions import CommandExitError


class TestProcessSelector:
    """Tests for ProcessSelector."""

    def test_exactly_one_required(self) -> None:
        with pytest.raises(ValueError):
            ProcessSelector()
        with pytest.raises(ValueError):
            ProcessSelector(pid=1, tag="t")

    def test_of_coerces(self) -> None:
        """Test pids, tags and selectors are accepted."""
        assert ProcessSelector.of(5) == ProcessSelector(pid=5)
        assert ProcessSelector.of("job") == ProcessSelector(tag="job")
        selector = ProcessSelector(pid=1)
        assert ProcessSelector.of(selector) is selector

    def test_of_rejects_other_types(self) -> None:
        with pytest.raises(TypeError):
            ProcessSelector.of(True)
        with pytest.raises(TypeError):
            ProcessSelector.of(1.5)  # type: ignore[arg-type]

    def test_to_proto_sets_one_selector(self) -> None:
        by_pid = ProcessSelector(pid=3).to_proto()
        by_tag = ProcessSelector(tag="x").to_proto()
        assert (by_pid.WhichOneof("selector"), by_pid.pid) == ("pid", 3)
        assert (by_tag.WhichOneof("selector"), by_tag.tag) == ("tag", "x")


class TestProcessConfig:
    """Tests for ProcessConfig and ProcessInfo."""

    def test_to_proto_omits_empty_cwd(self) -> None:
        config = ProcessConfig("/bin/bash", ("-c", "ls"), {"A": "1"})
        assert MessageToDict(config.to_proto()) == {
            "cmd": "/bin/bash",
            "args": ["-c", "ls"],
            "envs": {"A": "1"},
        }

    def test_process_info_from_payload(self) -> None:
        info = ProcessInfo.from_payload(
            {"pid": "7", "tag": "", "config": {"cmd": "sleep", "args": ["1"], "cwd": "/tmp"}}
        )
        assert info.pid == 7
        assert info.tag is None
        assert info.config == ProcessConfig("sleep", ("1",), {}, "/tmp")

    def test_pty_size_defaults(self) -> None:
        assert MessageToDict(PtySize().to_proto()) == {"size": {"cols": 80, "rows": 24}}


class TestCommandResult:
    """Tests for CommandResult."""

    def test_ok(self) -> None:
        assert CommandResult(0, "", "").ok
        assert not CommandResult(1, "", "").ok
        assert not CommandResult(0, "", "", error="signal: killed").ok

    def test_check_returns_self(self) -> None:
        result = CommandResult(0, "out", "")
        assert result.check() is result

    def test_check_raises(self) -> None:
        """Test check raises CommandExitError carrying the result."""
        result = CommandResult(2, "", "boom", error="exit status 2")
        with pytest.raises(CommandExitError, match="code 2: exit status 2") as exc_info:
            result.check()
        assert exc_info.value.command_result is result
        assert exc_info.value.exit_code == 2
