"""Tests for the REPL (Read-Eval-Print Loop).

The REPL is the interactive terminal interface.  Since it involves I/O,
we test its pure helpers directly and drive ``run()`` with patched
``input``.
"""

from unittest.mock import patch

import pytest

from py_vramdisk import __version__
from py_vramdisk.config import DiskLimits
from py_vramdisk.devices import BufferSink
from py_vramdisk.disk import VramDisk
from py_vramdisk.fs.fd import OpenMode
from py_vramdisk.repl import build_prompt, format_banner, make_completer, run
from py_vramdisk.shell import Shell


def _disk() -> VramDisk:
    """Create a disk with captured consoles."""
    return VramDisk(stdout_sink=BufferSink(), stderr_sink=BufferSink())


class TestREPLHelpers:
    """Verify REPL helper functions."""

    def test_banner_shows_version(self) -> None:
        """The banner names the program and version."""
        banner = format_banner(_disk())
        assert f"py-vramdisk v{__version__}" in banner

    def test_banner_shows_limits(self) -> None:
        """The banner reports table capacities."""
        disk = VramDisk(limits=DiskLimits(max_files=10, max_fopen=6), stdout_sink=BufferSink())
        banner = format_banner(disk)
        assert "entries:     10 (6 free)" in banner
        assert "descriptors: 6 (2 free)" in banner

    def test_banner_mentions_help(self) -> None:
        """The banner tells the user how to get started."""
        assert "Type 'help'" in format_banner(_disk())

    def test_prompt_counts_open_fds(self) -> None:
        """The prompt shows how many descriptors are open."""
        disk = _disk()
        assert build_prompt(disk) == "vramdisk[4] $ "
        disk.open("a", OpenMode.WRITE_CREATE_TRUNCATE)
        assert build_prompt(disk) == "vramdisk[5] $ "

    def test_completer_matches_prefix(self) -> None:
        """The completer offers commands starting with the typed text."""
        complete = make_completer(Shell(disk=_disk()))
        assert complete("ls", 0) == "ls"
        assert complete("ls", 1) == "lsfd"
        assert complete("ls", 2) is None

    def test_completer_no_match(self) -> None:
        """Unknown prefixes complete to nothing."""
        complete = make_completer(Shell(disk=_disk()))
        assert complete("zz", 0) is None


class TestRun:
    """Drive the loop with scripted input."""

    def test_exit_command(self, capsys: pytest.CaptureFixture[str]) -> None:
        """exit ends the loop and releases the disk."""
        with patch("builtins.input", side_effect=["help", "exit"]):
            run()
        out = capsys.readouterr().out
        assert "Available commands" in out
        assert out.rstrip().endswith("Disk released.")

    def test_eof_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Ctrl+D leaves the loop cleanly."""
        with patch("builtins.input", side_effect=EOFError):
            run()
        assert "Disk released." in capsys.readouterr().out

    def test_interrupt_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Ctrl+C leaves the loop cleanly."""
        with patch("builtins.input", side_effect=KeyboardInterrupt):
            run()
        out = capsys.readouterr().out
        assert "Interrupted." in out
        assert "Disk released." in out
