"""Tests for reserved devices and console sinks.

Devices are exercised directly against bare ``Entry`` objects here;
their wiring into the disk is covered in ``test_disk.py``.
"""

import io
import sys

import pytest

from py_vramdisk.devices import (
    RESERVED_NAMES,
    BufferSink,
    ConsoleDevice,
    InputDevice,
    NullDevice,
    ReservedFd,
    StreamSink,
    device_for_path,
)
from py_vramdisk.errors import ErrorKind, StoreError
from py_vramdisk.fs.entries import Entry

CAPACITY = 8


class TestDevicePaths:
    """Verify reserved path resolution."""

    def test_dev_paths(self) -> None:
        """The /dev spellings name the reserved fds."""
        assert device_for_path("/dev/stdin") is ReservedFd.STDIN
        assert device_for_path("/dev/stdout") is ReservedFd.STDOUT
        assert device_for_path("/dev/stderr") is ReservedFd.STDERR
        assert device_for_path("/dev/null") is ReservedFd.DEVNULL

    def test_entry_names_are_device_paths(self) -> None:
        """The reserved entry names resolve to their device too."""
        for fd, name in RESERVED_NAMES.items():
            assert device_for_path(name) is fd

    def test_regular_path(self) -> None:
        """Ordinary names are not devices."""
        assert device_for_path("notes.txt") is None
        assert device_for_path("/dev/zero") is None


class TestBufferSink:
    """Verify the in-memory sink."""

    def test_collects_bytes(self) -> None:
        """Bytes accumulate in order."""
        sink = BufferSink()
        for byte in b"hi":
            sink.put(byte)
        assert sink.getvalue() == b"hi"

    def test_drain_empties(self) -> None:
        """drain() returns the contents and resets."""
        sink = BufferSink()
        sink.put(ord("x"))
        assert sink.drain() == b"x"
        assert sink.getvalue() == b""


class TestStreamSink:
    """Verify forwarding to the host streams."""

    def test_rejects_unknown_stream(self) -> None:
        """Only stdout and stderr are valid."""
        with pytest.raises(ValueError, match="Unknown stream"):
            StreamSink("stdlog")

    def test_writes_to_stdout(self, capsysbinary: pytest.CaptureFixture[bytes]) -> None:
        """Bytes reach the host stdout."""
        sink = StreamSink("stdout")
        for byte in b"ok\n":
            sink.put(byte)
        assert capsysbinary.readouterr().out == b"ok\n"

    def test_writes_to_stderr(self, capsysbinary: pytest.CaptureFixture[bytes]) -> None:
        """Bytes reach the host stderr."""
        sink = StreamSink("stderr")
        for byte in b"err\n":
            sink.put(byte)
        assert capsysbinary.readouterr().err == b"err\n"

    def test_text_only_stream(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A stream without a byte buffer receives characters."""
        fake = io.StringIO()
        monkeypatch.setattr(sys, "stdout", fake)
        sink = StreamSink("stdout")
        for byte in b"abc":
            sink.put(byte)
        assert fake.getvalue() == "abc"


class TestInputDevice:
    """Verify stdin."""

    def test_reads_nothing(self) -> None:
        """There is never input."""
        device = InputDevice(capacity=CAPACITY)
        assert device.read(Entry(name="__stdin__"), 0, 10) == b""

    def test_write_is_recorded(self) -> None:
        """Writes land in the bookkeeping buffer."""
        device = InputDevice(capacity=CAPACITY)
        entry = Entry(name="__stdin__")
        expected = 3
        assert device.write(entry, b"abc") == expected
        assert entry.data == bytearray(b"abc")

    def test_name(self) -> None:
        """The device is named after its entry."""
        assert InputDevice(capacity=CAPACITY).name == "__stdin__"


class TestConsoleDevice:
    """Verify stdout and stderr."""

    def test_forwards_and_records(self) -> None:
        """A write reaches the sink and the bookkeeping buffer."""
        sink = BufferSink()
        device = ConsoleDevice(ReservedFd.STDOUT, sink, capacity=CAPACITY)
        entry = Entry(name="__stdout__")
        device.write(entry, b"hey")
        assert sink.getvalue() == b"hey"
        assert entry.data == bytearray(b"hey")

    def test_overflow_is_rejected_whole(self) -> None:
        """A write past capacity fails NO_SPACE and sends nothing."""
        sink = BufferSink()
        device = ConsoleDevice(ReservedFd.STDERR, sink, capacity=CAPACITY)
        entry = Entry(name="__stderr__")
        device.write(entry, b"12345")
        with pytest.raises(StoreError) as exc_info:
            device.write(entry, b"6789")
        assert exc_info.value.kind is ErrorKind.NO_SPACE
        assert sink.getvalue() == b"12345"
        expected_size = 5
        assert entry.size == expected_size

    def test_read_is_empty(self) -> None:
        """Consoles cannot be read."""
        device = ConsoleDevice(ReservedFd.STDOUT, BufferSink(), capacity=CAPACITY)
        assert device.read(Entry(name="__stdout__", data=bytearray(b"x")), 0, 1) == b""

    def test_name_follows_fd(self) -> None:
        """stdout and stderr devices carry their own names."""
        assert ConsoleDevice(ReservedFd.STDERR, BufferSink(), capacity=1).name == "__stderr__"


class TestNullDevice:
    """Verify /dev/null."""

    def test_swallows_everything(self) -> None:
        """Writes of any size succeed and store nothing."""
        entry = Entry(name="__devnull__")
        expected = 1000
        assert NullDevice().write(entry, b"x" * 1000) == expected
        assert entry.size == 0

    def test_read_is_empty(self) -> None:
        """Nothing comes out."""
        assert NullDevice().read(Entry(name="__devnull__"), 0, 5) == b""
