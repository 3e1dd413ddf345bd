"""The VRAM disk: the single context object behind every file call.

The disk owns and coordinates the subsystems:

    Logger → EntryTable → DescriptorTable → reserved devices

and implements the two pieces of logic that span them:

**Open state machine**: given a path and an ``OpenMode``, decide
whether to locate, create, truncate, or append to an entry, then bind a
descriptor.  The order of checks matters:

    1. Reserved device paths short-circuit: their fds are always open.
    2. The name is validated.
    3. A free descriptor must exist (ENFILE otherwise).
    4. An entry already bound to an open descriptor is refused
       (EACCES) *before* anything is created or truncated, so a failed
       open never mutates the disk.
    5. The mode decides what happens to the entry and where the
       offset starts.

**I/O dispatch**: ``read``/``write``/``close`` validate the descriptor
and its mode, then hand the byte transfer to the entry table or to the
reserved device behind the fd.

Descriptor lifecycle:

    FREE  →  OPEN  (open)
    OPEN  →  FREE  (close, regular entry)
    OPEN  →  OPEN  (close, reserved device: only clears its buffer)

Every public call takes the disk's lock, so the whole multi-step
sequence (lookup, create/clear, bind) is atomic when the disk is
shared between threads.
"""

from __future__ import annotations

import os
import threading
from typing import Any

from py_vramdisk.config import DiskLimits, StubConfig
from py_vramdisk.devices import (
    RESERVED_NAMES,
    ConsoleDevice,
    ConsoleSink,
    Device,
    InputDevice,
    NullDevice,
    ReservedFd,
    StreamSink,
    device_for_path,
)
from py_vramdisk.errors import ErrorKind, StoreError
from py_vramdisk.fs.entries import EntryInfo, EntryTable
from py_vramdisk.fs.fd import Descriptor, DescriptorTable, OpenMode
from py_vramdisk.logging import Logger, LogLevel
from py_vramdisk.syscalls import SyscallNumber, dispatch_syscall


class VramDisk:
    """An in-memory disk with a fixed number of entries and descriptors.

    Create one per hosted program.  Tests call ``reset()`` to return a
    disk to its freshly created state.
    """

    def __init__(
        self,
        *,
        limits: DiskLimits | None = None,
        stubs: StubConfig | None = None,
        stdout_sink: ConsoleSink | None = None,
        stderr_sink: ConsoleSink | None = None,
        logger: Logger | None = None,
    ) -> None:
        """Create a disk with its reserved devices already open.

        Args:
            limits: Table capacities (defaults to ``DiskLimits()``).
            stubs: Results for the collaborator syscalls.
            stdout_sink: Where fd 1 output goes (host stdout by default).
            stderr_sink: Where fd 2 output goes (host stderr by default).
            logger: Audit log to record events in (a new one by default).

        """
        self._limits = limits if limits is not None else DiskLimits()
        self._stubs = stubs if stubs is not None else StubConfig()
        self._logger = logger if logger is not None else Logger()
        self._lock = threading.RLock()

        self._stdout = ConsoleDevice(
            ReservedFd.STDOUT,
            stdout_sink if stdout_sink is not None else StreamSink("stdout"),
            capacity=self._limits.max_fsize,
        )
        self._stderr = ConsoleDevice(
            ReservedFd.STDERR,
            stderr_sink if stderr_sink is not None else StreamSink("stderr"),
            capacity=self._limits.max_fsize,
        )
        self._devices: dict[ReservedFd, Device] = {
            ReservedFd.STDIN: InputDevice(capacity=self._limits.max_fsize),
            ReservedFd.STDOUT: self._stdout,
            ReservedFd.STDERR: self._stderr,
            ReservedFd.DEVNULL: NullDevice(),
        }

        self._entries = EntryTable(
            capacity=self._limits.max_files,
            max_size=self._limits.max_fsize,
        )
        self._fds = DescriptorTable(capacity=self._limits.max_fopen)
        self._install_devices()

    # -- Properties ----------------------------------------------------------

    @property
    def limits(self) -> DiskLimits:
        """Return the disk's fixed capacities."""
        return self._limits

    @property
    def stubs(self) -> StubConfig:
        """Return the collaborator syscall configuration."""
        return self._stubs

    @property
    def logger(self) -> Logger:
        """Return the disk's audit log."""
        return self._logger

    @property
    def entries(self) -> EntryTable:
        """Return the entry table."""
        return self._entries

    @property
    def descriptors(self) -> DescriptorTable:
        """Return the descriptor table."""
        return self._fds

    @property
    def stdout_sink(self) -> ConsoleSink:
        """Return the sink behind fd 1."""
        return self._stdout.sink

    @property
    def stderr_sink(self) -> ConsoleSink:
        """Return the sink behind fd 2."""
        return self._stderr.sink

    # -- Lifecycle -----------------------------------------------------------

    def _install_devices(self) -> None:
        """Create the reserved entries in slots 0–3 and bind fds 0–3 to them."""
        for fd in ReservedFd:
            index = self._entries.create(RESERVED_NAMES[fd])
            self._fds.bind_reserved(fd, index)

    def reset(self) -> None:
        """Drop every entry and descriptor, then reinstall the devices."""
        with self._lock:
            self._entries.reset()
            self._fds.reset()
            self._install_devices()
            self._logger.log(LogLevel.INFO, "Disk reset", source="disk")

    def _fail(
        self,
        kind: ErrorKind,
        message: str,
        *,
        source: str,
        fd: int | None = None,
    ) -> StoreError:
        """Log a failure and return the error for the caller to raise."""
        self._logger.log(LogLevel.WARNING, message, source=source, fd=fd)
        return StoreError(kind, message)

    def _check_name(self, path: str) -> None:
        """Reject names the entry table cannot hold."""
        if not path:
            raise self._fail(ErrorKind.NOT_FOUND, "Empty path", source="open")
        length = len(os.fsencode(path))
        if length > self._limits.max_fname:
            msg = f"Name too long: '{path}' is {length} bytes (limit {self._limits.max_fname})"
            raise self._fail(ErrorKind.NAME_TOO_LONG, msg, source="open")

    # -- Open state machine --------------------------------------------------

    def open(self, path: str, mode: OpenMode | str | int) -> int:
        """Open ``path`` and return a descriptor.

        Args:
            path: The entry name, or a reserved device path.
            mode: How to open it: an ``OpenMode``, its fopen string, or
                ``os.O_*`` flags.

        Returns:
            The descriptor number.  Reserved devices always return
            their fixed fd.

        Raises:
            StoreError: ``UNSUPPORTED_MODE``, ``NAME_TOO_LONG``,
                ``DESCRIPTORS_EXHAUSTED``, ``ALREADY_OPEN_CONFLICT``,
                ``NOT_FOUND``, ``ENTRIES_EXHAUSTED`` or ``FILE_TOO_BIG``.

        """
        with self._lock:
            try:
                mode = OpenMode.parse(mode)
            except StoreError as e:
                self._logger.log(LogLevel.WARNING, str(e), source="open")
                raise

            device = device_for_path(path)
            if device is not None:
                if mode is not OpenMode.READ_WRITE_TRUNCATE:
                    expected = OpenMode.READ_WRITE_TRUNCATE
                    msg = f"Device '{path}' must be opened '{expected}', not '{mode}'"
                    raise self._fail(ErrorKind.UNSUPPORTED_MODE, msg, source="open", fd=device)
                self._logger.log(LogLevel.INFO, f"Opened device '{path}'", source="open", fd=device)
                return int(device)

            self._check_name(path)

            if not self._fds.has_free():
                msg = f"Too many open files: cannot open '{path}'"
                raise self._fail(ErrorKind.DESCRIPTORS_EXHAUSTED, msg, source="open")

            index = self._entries.find(path)
            if index is not None:
                holder = self._fds.bound_to(index)
                if holder is not None:
                    msg = f"'{path}' is already open"
                    raise self._fail(ErrorKind.ALREADY_OPEN_CONFLICT, msg, source="open", fd=holder)

            index, offset = self._resolve_entry(path, mode, index)
            fd = self._fds.allocate(index, mode, offset)
            self._logger.log(
                LogLevel.INFO,
                f"Opened '{path}' mode '{mode}' at offset {offset}",
                source="open",
                fd=fd,
            )
            return fd

    def _resolve_entry(self, path: str, mode: OpenMode, index: int | None) -> tuple[int, int]:
        """Locate, create, truncate, or append as ``mode`` requires.

        Returns:
            The entry index and the descriptor's starting offset.

        """
        match mode:
            case OpenMode.READ | OpenMode.READ_WRITE:
                if index is None:
                    raise self._fail(ErrorKind.NOT_FOUND, f"No such entry: '{path}'", source="open")
                return index, 0

            case OpenMode.WRITE_CREATE_TRUNCATE | OpenMode.READ_WRITE_CREATE_TRUNCATE:
                if index is None:
                    index = self._create(path)
                else:
                    self._entries.clear(index)
                return index, 0

            case OpenMode.WRITE_CREATE_APPEND | OpenMode.READ_WRITE_CREATE_APPEND:
                if index is None:
                    return self._create(path), 0
                size = self._entries.get(index).size
                if size >= self._limits.max_fsize:
                    msg = f"'{path}' is at the size limit ({size} bytes) and cannot be appended to"
                    raise self._fail(ErrorKind.FILE_TOO_BIG, msg, source="open")
                return index, size

            case _:
                msg = f"Unsupported mode '{mode}' for '{path}'"
                raise self._fail(ErrorKind.UNSUPPORTED_MODE, msg, source="open")

    def _create(self, path: str) -> int:
        """Create an entry, logging table exhaustion."""
        try:
            return self._entries.create(path)
        except StoreError as e:
            self._logger.log(LogLevel.WARNING, str(e), source="open")
            raise

    # -- I/O dispatch --------------------------------------------------------

    def _lookup(self, fd: int, *, source: str) -> Descriptor:
        """Return the descriptor for ``fd``, logging a bad fd."""
        try:
            return self._fds.lookup(fd)
        except StoreError as e:
            self._logger.log(LogLevel.WARNING, str(e), source=source, fd=fd)
            raise

    def read(self, fd: int, count: int) -> bytes:
        """Read up to ``count`` bytes and advance the descriptor's offset.

        Reading at end of data returns ``b""``.

        Raises:
            StoreError: ``INVALID_DESCRIPTOR``, ``INVALID_ARGUMENT`` for a
                negative count, or ``WRONG_MODE_ACCESS`` for a write-only fd.

        """
        with self._lock:
            descriptor = self._lookup(fd, source="io")
            if count < 0:
                msg = f"Negative read count: {count}"
                raise self._fail(ErrorKind.INVALID_ARGUMENT, msg, source="io", fd=fd)
            if not descriptor.mode.readable:
                msg = f"fd {fd} is not readable (opened '{descriptor.mode}')"
                raise self._fail(ErrorKind.WRONG_MODE_ACCESS, msg, source="io", fd=fd)

            if descriptor.reserved:
                entry = self._entries.get(descriptor.entry_index)
                data = self._devices[ReservedFd(fd)].read(entry, descriptor.offset, count)
            else:
                data = self._entries.read_at(descriptor.entry_index, descriptor.offset, count)
            descriptor.offset += len(data)
            self._logger.log(
                LogLevel.DEBUG, f"Read {len(data)} of {count} bytes", source="io", fd=fd
            )
            return data

    def write(self, fd: int, data: bytes) -> int:
        """Write ``data`` at the descriptor's offset and advance it.

        Raises:
            StoreError: ``INVALID_DESCRIPTOR``, ``WRONG_MODE_ACCESS`` for a
                read-only fd, or ``NO_SPACE``: in which case neither the
                entry nor the offset changes.

        """
        with self._lock:
            descriptor = self._lookup(fd, source="io")
            if not descriptor.mode.writable:
                msg = f"fd {fd} is not writable (opened '{descriptor.mode}')"
                raise self._fail(ErrorKind.WRONG_MODE_ACCESS, msg, source="io", fd=fd)

            try:
                if descriptor.reserved:
                    entry = self._entries.get(descriptor.entry_index)
                    written = self._devices[ReservedFd(fd)].write(entry, bytes(data))
                else:
                    written = self._entries.write_at(
                        descriptor.entry_index, descriptor.offset, data
                    )
            except StoreError as e:
                self._logger.log(LogLevel.WARNING, str(e), source="io", fd=fd)
                raise
            descriptor.offset += written
            self._logger.log(LogLevel.DEBUG, f"Wrote {written} bytes", source="io", fd=fd)
            return written

    def close(self, fd: int) -> None:
        """Release a descriptor.

        Closing a reserved device keeps its fd open but resets its
        offset and empties its bookkeeping buffer.

        Raises:
            StoreError: ``INVALID_DESCRIPTOR`` if ``fd`` is not open.

        """
        with self._lock:
            self._lookup(fd, source="io")
            descriptor = self._fds.release(fd)
            if descriptor.reserved:
                self._entries.clear(descriptor.entry_index)
            self._logger.log(LogLevel.INFO, "Closed", source="io", fd=fd)

    # -- Introspection -------------------------------------------------------

    def list_entries(self) -> list[EntryInfo]:
        """Return a snapshot of every in-use entry, devices included."""
        with self._lock:
            return self._entries.entries()

    def list_fds(self) -> dict[int, Descriptor]:
        """Return a snapshot of every open descriptor."""
        with self._lock:
            return {
                fd: Descriptor(fd=d.fd, entry_index=d.entry_index, mode=d.mode, offset=d.offset)
                for fd, d in self._fds.list_fds().items()
            }

    def name_of(self, descriptor: Descriptor) -> str:
        """Return the entry name a descriptor is bound to."""
        with self._lock:
            name = self._entries.get(descriptor.entry_index).name
            assert name is not None  # get() only returns in-use entries  # noqa: S101
            return name

    # -- Syscall gateway -----------------------------------------------------

    def syscall(self, number: SyscallNumber, **kwargs: Any) -> Any:
        """Execute a system call through the dispatch table.

        Args:
            number: The syscall number identifying the operation.
            **kwargs: Arguments specific to the syscall.

        Returns:
            The syscall result (type depends on the operation).

        Raises:
            SyscallError: If the syscall fails.

        """
        label = number.name if hasattr(number, "name") else str(number)
        self._logger.log(LogLevel.DEBUG, f"syscall {label}", source="syscall")
        return dispatch_syscall(self, number, **kwargs)
