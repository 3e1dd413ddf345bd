"""System call interface: the POSIX-style surface of the disk.

A hosted program has no operating system underneath it.  Its C
runtime still calls ``open``, ``read``, ``write`` and ``close``, plus a
handful of housekeeping calls (``fstat``, ``lseek``, ``getpid``...).
This module is where those calls land:

1. ``SyscallNumber``: an enum of every call the disk answers.  Using
   an IntEnum means each syscall is also a plain int, like a real
   syscall table.

2. ``SyscallError``: the only exception callers ever see.  It is an
   ``OSError``, so ``e.errno`` carries the POSIX code and
   ``e.strerror`` the message, exactly like the ``os`` module.  Internal
   ``StoreError`` failures are translated here and nowhere else.

3. ``dispatch_syscall()``: the trap handler.  It routes the number to
   a handler and wraps internal errors.

Only the four file calls reach the disk's core.  The rest are stubs
with fixed results taken from the disk's ``StubConfig``; ``lseek`` in
particular reports offset 0 and never moves the cursor.
"""

import errno
import os
from enum import IntEnum
from typing import Any

from py_vramdisk.errors import StoreError
from py_vramdisk.fs.fd import OpenMode


class SyscallNumber(IntEnum):
    """Enumerate every system call the disk supports."""

    # File operations
    SYS_OPEN = 10
    SYS_READ = 11
    SYS_WRITE = 12
    SYS_CLOSE = 13

    # File stubs
    SYS_FSTAT = 20
    SYS_STAT = 21
    SYS_LSEEK = 22
    SYS_SYNC = 23
    SYS_UNLINK = 24
    SYS_ISATTY = 25

    # Process and time stubs
    SYS_GETPID = 30
    SYS_KILL = 31
    SYS_GETTIMEOFDAY = 32

    # Introspection
    SYS_LIST_ENTRIES = 50
    SYS_LIST_FDS = 51
    SYS_READ_LOG = 52


class SyscallError(OSError):
    """Raised when a system call fails.

    Constructed as ``SyscallError(errno, message)`` so ``errno`` and
    ``strerror`` are populated like any ``OSError``.
    """


def dispatch_syscall(
    disk: Any,
    number: SyscallNumber,
    **kwargs: Any,
) -> Any:
    """Dispatch a system call to the appropriate handler.

    Args:
        disk: The ``VramDisk`` answering the call.
        number: The syscall number identifying the operation.
        **kwargs: Arguments specific to the syscall.

    Returns:
        The syscall result (type depends on the operation).

    Raises:
        SyscallError: If the syscall fails or the number is unknown.

    """
    handlers: dict[SyscallNumber, Any] = {
        SyscallNumber.SYS_OPEN: _sys_open,
        SyscallNumber.SYS_READ: _sys_read,
        SyscallNumber.SYS_WRITE: _sys_write,
        SyscallNumber.SYS_CLOSE: _sys_close,
        SyscallNumber.SYS_FSTAT: _sys_fstat,
        SyscallNumber.SYS_STAT: _sys_stat,
        SyscallNumber.SYS_LSEEK: _sys_lseek,
        SyscallNumber.SYS_SYNC: _sys_sync,
        SyscallNumber.SYS_UNLINK: _sys_unlink,
        SyscallNumber.SYS_ISATTY: _sys_isatty,
        SyscallNumber.SYS_GETPID: _sys_getpid,
        SyscallNumber.SYS_KILL: _sys_kill,
        SyscallNumber.SYS_GETTIMEOFDAY: _sys_gettimeofday,
        SyscallNumber.SYS_LIST_ENTRIES: _sys_list_entries,
        SyscallNumber.SYS_LIST_FDS: _sys_list_fds,
        SyscallNumber.SYS_READ_LOG: _sys_read_log,
    }

    handler = handlers.get(number)
    if handler is None:
        raise SyscallError(errno.ENOSYS, f"Unknown syscall: {number}")

    return handler(disk, **kwargs)


def _stub_error(code: int, call: str) -> SyscallError:
    """Build the fixed failure of a stubbed call."""
    return SyscallError(code, f"{call}: {os.strerror(code)}")


# -- File syscall handlers ---------------------------------------------------


def _sys_open(disk: Any, **kwargs: Any) -> dict[str, int]:
    """Open a path and return a file descriptor."""
    path: str = kwargs["path"]
    try:
        mode = OpenMode.parse(kwargs["mode"])
        fd = disk.open(path, mode)
    except StoreError as e:
        raise SyscallError(e.errno, str(e)) from e
    return {"fd": fd}


def _sys_read(disk: Any, **kwargs: Any) -> dict[str, Any]:
    """Read bytes from a file descriptor."""
    fd: int = kwargs["fd"]
    count: int = kwargs["count"]
    try:
        data = disk.read(fd, count)
    except StoreError as e:
        raise SyscallError(e.errno, str(e)) from e
    return {"data": data, "count": len(data)}


def _sys_write(disk: Any, **kwargs: Any) -> dict[str, int]:
    """Write bytes to a file descriptor."""
    fd: int = kwargs["fd"]
    data: bytes = kwargs["data"]
    try:
        bytes_written = disk.write(fd, data)
    except StoreError as e:
        raise SyscallError(e.errno, str(e)) from e
    return {"bytes_written": bytes_written}


def _sys_close(disk: Any, **kwargs: Any) -> None:
    """Close a file descriptor."""
    try:
        disk.close(kwargs["fd"])
    except StoreError as e:
        raise SyscallError(e.errno, str(e)) from e


# -- Stub handlers -----------------------------------------------------------


def _sys_fstat(disk: Any, **_kwargs: Any) -> None:
    """Always fail: entries carry no stat metadata."""
    raise _stub_error(disk.stubs.fstat_errno, "fstat")


def _sys_stat(disk: Any, **_kwargs: Any) -> None:
    """Always fail: entries carry no stat metadata."""
    raise _stub_error(disk.stubs.stat_errno, "stat")


def _sys_lseek(disk: Any, **_kwargs: Any) -> dict[str, int]:
    """Report a fixed offset without moving the cursor."""
    return {"offset": disk.stubs.lseek_result}


def _sys_sync(_disk: Any, **_kwargs: Any) -> None:
    """Do nothing: there is no backing store to flush."""


def _sys_unlink(disk: Any, **_kwargs: Any) -> None:
    """Always fail: entries are never deleted."""
    raise _stub_error(disk.stubs.unlink_errno, "unlink")


def _sys_isatty(disk: Any, **kwargs: Any) -> dict[str, bool]:
    """Report whether a descriptor is a terminal."""
    return {"isatty": kwargs["fd"] in disk.stubs.tty_fds}


def _sys_getpid(disk: Any, **_kwargs: Any) -> dict[str, int]:
    """Return the fixed process id."""
    return {"pid": disk.stubs.pid}


def _sys_kill(disk: Any, **_kwargs: Any) -> None:
    """Always fail: there are no other processes to signal."""
    raise _stub_error(disk.stubs.kill_errno, "kill")


def _sys_gettimeofday(disk: Any, **_kwargs: Any) -> None:
    """Always fail: the runtime has no clock."""
    raise _stub_error(disk.stubs.gettimeofday_errno, "gettimeofday")


# -- Introspection handlers --------------------------------------------------


def _sys_list_entries(disk: Any, **_kwargs: Any) -> list[dict[str, Any]]:
    """List every in-use entry."""
    return [
        {"index": info.index, "name": info.name, "size": info.size} for info in disk.list_entries()
    ]


def _sys_list_fds(disk: Any, **_kwargs: Any) -> list[dict[str, Any]]:
    """List every open descriptor."""
    return [
        {
            "fd": fd,
            "name": disk.name_of(descriptor),
            "mode": str(descriptor.mode),
            "offset": descriptor.offset,
        }
        for fd, descriptor in sorted(disk.list_fds().items())
    ]


def _sys_read_log(disk: Any, **kwargs: Any) -> list[str]:
    """Return the audit log as formatted strings, optionally by minimum level."""
    return disk.logger.lines(min_level=kwargs.get("min_level"))
