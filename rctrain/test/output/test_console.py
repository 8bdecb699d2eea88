"""Tests for rctrain.output.console module."""

from __future__ import annotations

import pytest

from rctrain.output.console import (
    ConsoleProtocol,
    MockConsole,
    OutputRecord,
    RichConsole,
    Style,
)


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.DIM) == "dim"

    def test_all_styles_exist(self) -> None:
        expected = {"DEFAULT", "SUCCESS", "ERROR", "WARNING", "INFO", "DIM", "BOLD", "HEADER"}
        assert {s.name for s in Style} == expected


class TestMockConsole:
    """Test MockConsole for testing purposes."""

    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("create branch release/1.0.0-rc.0: from main", Style.DIM)
        assert console.outputs == [
            OutputRecord("create branch release/1.0.0-rc.0: from main", Style.DIM)
        ]

    def test_prefixed_helpers(self) -> None:
        console = MockConsole()
        console.success("created")
        console.error("failed")
        console.warning("careful")
        console.info("fyi")
        assert console.messages == ["OK created", "error: failed", "warning: careful", "info: fyi"]

    def test_has_error_and_warning(self) -> None:
        console = MockConsole()
        assert not console.has_error()
        console.warning("w")
        assert console.has_warning()
        assert not console.has_error()
        console.error("e")
        assert console.has_error()

    def test_find_and_text(self) -> None:
        console = MockConsole()
        console.header("Cut release/1.0.0-rc.0")
        console.newline()
        console.print("(dry-run) create branch release/1.0.0-rc.0: from main")
        assert len(console.find("dry-run")) == 1
        assert console.text.splitlines()[0] == "Cut release/1.0.0-rc.0"

    def test_clear(self) -> None:
        console = MockConsole()
        console.print("x")
        console.clear()
        assert console.outputs == []

    def test_satisfies_protocol(self) -> None:
        console: ConsoleProtocol = MockConsole()
        console.print("ok")


class TestRichConsole:
    def test_brackets_are_printed_literally(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.error("push rejected: [remote rejected] (stale info)")
        console.print("[bold]not markup[/bold]", Style.DIM)

        out = capsys.readouterr().out
        assert "[remote rejected]" in out
        assert "[bold]not markup[/bold]" in out

    def test_stderr_target(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole(stderr=True).warning("careful")
        captured = capsys.readouterr()
        assert "careful" in captured.err
        assert captured.out == ""
