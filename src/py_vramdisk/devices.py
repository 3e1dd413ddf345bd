"""Reserved devices and console sinks.

In Unix, **everything is a file**: devices are reached through the
same ``read()``/``write()`` calls as regular files.  The disk reserves
its first four entries and descriptors for devices:

====  ==============  ==============  ======================================
fd    entry name      path            behaviour
====  ==============  ==============  ======================================
0     ``__stdin__``   ``/dev/stdin``  reads report no input
1     ``__stdout__``  ``/dev/stdout`` writes go to the stdout console sink
2     ``__stderr__``  ``/dev/stderr`` writes go to the stderr console sink
3     ``__devnull__`` ``/dev/null``   black hole
====  ==============  ==============  ======================================

A device's entry buffer is bookkeeping, not file content: every byte
a device accepts is recorded there, up to a fixed capacity, so the
caller can see how much was consumed.  Closing the device's
descriptor empties the buffer again.  ``/dev/null`` records nothing.

This module provides:

**Device** (Protocol): the interface every device must implement.
**ConsoleSink** (Protocol): where console bytes end up.
**Concrete devices**: ``InputDevice``, ``ConsoleDevice``, ``NullDevice``.
**Concrete sinks**: ``BufferSink`` (in memory) and ``StreamSink``
    (the host's ``sys.stdout``/``sys.stderr``).
"""

import sys
from enum import IntEnum
from typing import Protocol

from py_vramdisk.errors import ErrorKind, StoreError
from py_vramdisk.fs.entries import Entry


class ReservedFd(IntEnum):
    """The descriptor (and entry slot) of each reserved device."""

    STDIN = 0
    STDOUT = 1
    STDERR = 2
    DEVNULL = 3


RESERVED_NAMES: dict[ReservedFd, str] = {
    ReservedFd.STDIN: "__stdin__",
    ReservedFd.STDOUT: "__stdout__",
    ReservedFd.STDERR: "__stderr__",
    ReservedFd.DEVNULL: "__devnull__",
}

_DEVICE_PATHS: dict[str, ReservedFd] = {
    "/dev/stdin": ReservedFd.STDIN,
    "/dev/stdout": ReservedFd.STDOUT,
    "/dev/stderr": ReservedFd.STDERR,
    "/dev/null": ReservedFd.DEVNULL,
    **{name: fd for fd, name in RESERVED_NAMES.items()},
}


def device_for_path(path: str) -> ReservedFd | None:
    """Return the reserved device a path names, or None for a regular entry."""
    return _DEVICE_PATHS.get(path)


class ConsoleSink(Protocol):
    """Receives console output one byte at a time."""

    def put(self, byte: int) -> None:
        """Accept a single byte."""
        ...  # pragma: no cover


class BufferSink:
    """Collect console bytes in memory.

    Used by the shell and the web UI, which need to show output rather
    than print it.
    """

    def __init__(self) -> None:
        """Create an empty sink."""
        self._buffer = bytearray()

    def put(self, byte: int) -> None:
        """Append one byte."""
        self._buffer.append(byte)

    def getvalue(self) -> bytes:
        """Return everything received so far."""
        return bytes(self._buffer)

    def drain(self) -> bytes:
        """Return everything received so far and empty the sink."""
        data = bytes(self._buffer)
        self._buffer.clear()
        return data


class StreamSink:
    """Forward console bytes to the host's standard streams.

    The stream is resolved on every write so redirection of
    ``sys.stdout``/``sys.stderr`` (for example by pytest) is honoured.
    Output is flushed at each newline.
    """

    def __init__(self, stream: str = "stdout") -> None:
        """Create a sink for ``"stdout"`` or ``"stderr"``.

        Raises:
            ValueError: If ``stream`` names neither.

        """
        if stream not in ("stdout", "stderr"):
            msg = f"Unknown stream '{stream}'"
            raise ValueError(msg)
        self._stream = stream

    def put(self, byte: int) -> None:
        """Write one byte to the host stream."""
        target = getattr(sys, self._stream)
        raw = getattr(target, "buffer", None)
        if raw is not None:
            raw.write(bytes((byte,)))
        else:
            target.write(chr(byte))
        if byte == ord("\n"):
            target.flush()


class Device(Protocol):
    """Interface that every reserved device must satisfy."""

    @property
    def name(self) -> str:
        """Return the device's entry name."""
        ...  # pragma: no cover

    def read(self, entry: Entry, offset: int, count: int) -> bytes:
        """Read up to ``count`` bytes from the device."""
        ...  # pragma: no cover

    def write(self, entry: Entry, data: bytes) -> int:
        """Write ``data`` to the device and return the bytes accepted."""
        ...  # pragma: no cover


def _check_room(entry: Entry, count: int, capacity: int) -> None:
    """Fail if ``count`` more bytes would overflow a device's bookkeeping buffer."""
    if entry.size + count > capacity:
        msg = (
            f"No space left on device '{entry.name}': "
            f"{entry.size + count} bytes exceeds limit of {capacity}"
        )
        raise StoreError(ErrorKind.NO_SPACE, msg)


class InputDevice:
    """Standard input: there is never anything to read.

    Writes are accepted into the bookkeeping buffer like any console.
    """

    def __init__(self, *, capacity: int) -> None:
        """Create stdin with a fixed bookkeeping capacity."""
        self._capacity = capacity

    @property
    def name(self) -> str:
        """Return '__stdin__'."""
        return RESERVED_NAMES[ReservedFd.STDIN]

    def read(self, entry: Entry, offset: int, count: int) -> bytes:  # noqa: ARG002
        """Report zero bytes available."""
        return b""

    def write(self, entry: Entry, data: bytes) -> int:
        """Record ``data`` in the bookkeeping buffer."""
        _check_room(entry, len(data), self._capacity)
        entry.data.extend(data)
        return len(data)


class ConsoleDevice:
    """Standard output or standard error.

    Each write is checked against the bookkeeping capacity first, then
    forwarded byte-by-byte to the sink.  A write that does not fit is
    rejected whole: nothing reaches the sink.
    """

    def __init__(self, fd: ReservedFd, sink: ConsoleSink, *, capacity: int) -> None:
        """Create a console device for ``fd`` writing to ``sink``."""
        self._fd = fd
        self._sink = sink
        self._capacity = capacity

    @property
    def name(self) -> str:
        """Return '__stdout__' or '__stderr__'."""
        return RESERVED_NAMES[self._fd]

    @property
    def sink(self) -> ConsoleSink:
        """Return the sink console bytes are forwarded to."""
        return self._sink

    def read(self, entry: Entry, offset: int, count: int) -> bytes:  # noqa: ARG002
        """Return empty bytes (consoles are output-only)."""
        return b""

    def write(self, entry: Entry, data: bytes) -> int:
        """Forward ``data`` to the sink and record it."""
        _check_room(entry, len(data), self._capacity)
        for byte in data:
            self._sink.put(byte)
        entry.data.extend(data)
        return len(data)


class NullDevice:
    """The black hole: absorbs all writes, reads return empty.

    This is ``/dev/null``.  Always reports the full byte count written
    and never stores anything.
    """

    @property
    def name(self) -> str:
        """Return '__devnull__'."""
        return RESERVED_NAMES[ReservedFd.DEVNULL]

    def read(self, entry: Entry, offset: int, count: int) -> bytes:  # noqa: ARG002
        """Return empty bytes (nothing to read)."""
        return b""

    def write(self, entry: Entry, data: bytes) -> int:  # noqa: ARG002
        """Discard ``data`` and report it all written."""
        return len(data)
