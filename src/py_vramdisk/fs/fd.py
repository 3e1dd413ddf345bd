"""File descriptors: the session layer over the entry table.

Programs never touch entries directly.  They ``open()`` a name to get a
**file descriptor** (a small integer), ``read()``/``write()`` through it
(the descriptor tracks the current offset), and ``close()`` it when done.

Key concepts:

- **OpenMode**: how a name was opened.  The six fopen-style modes
  (``r``, ``w``, ``a``, ``r+``, ``w+``, ``a+``) plus the special
  ``rwt`` mode used only to re-open a reserved device.
- **Descriptor**: the bookkeeping record behind an fd: which entry it
  is bound to, its mode, and the current byte offset.
- **DescriptorTable**: a fixed number of fd slots.  Fds 0–3 belong to
  stdin, stdout, stderr and ``/dev/null`` forever; closing one of them
  only resets it.  Every other fd is handed out lowest-first and
  returned to a free list on close.
"""

from __future__ import annotations

import heapq
import os
from dataclasses import dataclass
from enum import StrEnum

from py_vramdisk.config import RESERVED_COUNT
from py_vramdisk.errors import ErrorKind, StoreError

_ACCESS_MASK = os.O_RDONLY | os.O_WRONLY | os.O_RDWR


class OpenMode(StrEnum):
    """Access mode requested by ``open`` and stored on a descriptor.

    - READ: read-only, the entry must exist.
    - WRITE_CREATE_TRUNCATE: write-only, create or empty the entry.
    - WRITE_CREATE_APPEND: write-only, create the entry, start at its end.
    - READ_WRITE: read and write, the entry must exist.
    - READ_WRITE_CREATE_TRUNCATE: read and write, create or empty the entry.
    - READ_WRITE_CREATE_APPEND: read and write, create the entry, start at its end.
    - READ_WRITE_TRUNCATE: reserved devices only; never creates anything.
    """

    READ = "r"
    WRITE_CREATE_TRUNCATE = "w"
    WRITE_CREATE_APPEND = "a"
    READ_WRITE = "r+"
    READ_WRITE_CREATE_TRUNCATE = "w+"
    READ_WRITE_CREATE_APPEND = "a+"
    READ_WRITE_TRUNCATE = "rwt"

    @property
    def readable(self) -> bool:
        """Return True if reads are allowed in this mode."""
        return self not in (OpenMode.WRITE_CREATE_TRUNCATE, OpenMode.WRITE_CREATE_APPEND)

    @property
    def writable(self) -> bool:
        """Return True if writes are allowed in this mode."""
        return self is not OpenMode.READ

    @classmethod
    def from_flags(cls, flags: int) -> OpenMode:
        """Translate an ``os.O_*`` flag combination into a mode.

        Only the exact combinations a C runtime passes for the fopen
        modes are understood.  ``O_RDWR | O_TRUNC`` (without
        ``O_CREAT``) is the reserved-device mode.

        Raises:
            StoreError: ``UNSUPPORTED_MODE`` for any other combination.

        """
        mode = _MODES_BY_FLAGS.get(flags)
        if mode is None:
            access = flags & _ACCESS_MASK
            msg = f"Unsupported open flags: {flags:#o} (access {access:#o})"
            raise StoreError(ErrorKind.UNSUPPORTED_MODE, msg)
        return mode

    @classmethod
    def parse(cls, value: OpenMode | str | int) -> OpenMode:
        """Accept a mode, its string form, or ``os.O_*`` flags.

        Raises:
            StoreError: ``UNSUPPORTED_MODE`` if ``value`` names no mode.

        """
        if isinstance(value, OpenMode):
            return value
        if isinstance(value, bool):
            msg = f"Unsupported open mode: {value!r}"
            raise StoreError(ErrorKind.UNSUPPORTED_MODE, msg)
        if isinstance(value, int):
            return cls.from_flags(value)
        try:
            return cls(value)
        except ValueError:
            msg = f"Unsupported open mode: {value!r}"
            raise StoreError(ErrorKind.UNSUPPORTED_MODE, msg) from None


_MODES_BY_FLAGS: dict[int, OpenMode] = {
    os.O_RDONLY: OpenMode.READ,
    os.O_WRONLY | os.O_CREAT | os.O_TRUNC: OpenMode.WRITE_CREATE_TRUNCATE,
    os.O_WRONLY | os.O_CREAT | os.O_APPEND: OpenMode.WRITE_CREATE_APPEND,
    os.O_RDWR: OpenMode.READ_WRITE,
    os.O_RDWR | os.O_CREAT | os.O_TRUNC: OpenMode.READ_WRITE_CREATE_TRUNCATE,
    os.O_RDWR | os.O_CREAT | os.O_APPEND: OpenMode.READ_WRITE_CREATE_APPEND,
    os.O_RDWR | os.O_TRUNC: OpenMode.READ_WRITE_TRUNCATE,
}


@dataclass
class Descriptor:
    """Track an open descriptor's entry, mode, and current offset.

    Not frozen: ``offset`` must be mutable so reads and writes can
    advance the position.
    """

    fd: int
    entry_index: int
    mode: OpenMode
    offset: int = 0

    @property
    def reserved(self) -> bool:
        """Return True for the permanently bound device descriptors."""
        return self.fd < RESERVED_COUNT


class DescriptorTable:
    """Fixed-capacity table mapping fd numbers to descriptors.

    Fds ``0 .. RESERVED_COUNT - 1`` are bound once with
    ``bind_reserved`` and never freed.  Other fds come from a heap so
    ``allocate`` always picks the lowest available number, mimicking
    Unix behaviour.
    """

    def __init__(self, *, capacity: int) -> None:
        """Create an empty table with ``capacity`` fd slots."""
        self._capacity = capacity
        self._slots: list[Descriptor | None] = []
        self._free: list[int] = []
        self._by_entry: dict[int, int] = {}
        self.reset()

    @property
    def capacity(self) -> int:
        """Return the total number of fd slots."""
        return self._capacity

    def reset(self) -> None:
        """Unbind every slot, reserved ones included."""
        self._slots = [None] * self._capacity
        self._free = list(range(RESERVED_COUNT, self._capacity))
        heapq.heapify(self._free)
        self._by_entry = {}

    def bind_reserved(self, fd: int, entry_index: int) -> Descriptor:
        """Permanently bind a reserved fd to its device entry.

        Raises:
            ValueError: If ``fd`` is not a reserved id or is already bound.

        """
        if not 0 <= fd < RESERVED_COUNT:
            msg = f"fd {fd} is not a reserved descriptor"
            raise ValueError(msg)
        if self._slots[fd] is not None:
            msg = f"Reserved fd {fd} is already bound"
            raise ValueError(msg)
        descriptor = Descriptor(fd=fd, entry_index=entry_index, mode=OpenMode.READ_WRITE_TRUNCATE)
        self._slots[fd] = descriptor
        self._by_entry[entry_index] = fd
        return descriptor

    def has_free(self) -> bool:
        """Return True if a non-reserved fd is available."""
        return bool(self._free)

    def allocate(self, entry_index: int, mode: OpenMode, offset: int = 0) -> int:
        """Bind the lowest free fd to an entry.

        Args:
            entry_index: The entry the new descriptor refers to.
            mode: The mode the entry was opened with.
            offset: Initial read/write offset.

        Returns:
            The newly assigned fd number.

        Raises:
            StoreError: ``DESCRIPTORS_EXHAUSTED`` if every fd is in use.

        """
        if not self._free:
            msg = f"Too many open files ({self._capacity} descriptors)"
            raise StoreError(ErrorKind.DESCRIPTORS_EXHAUSTED, msg)
        fd = heapq.heappop(self._free)
        self._slots[fd] = Descriptor(fd=fd, entry_index=entry_index, mode=mode, offset=offset)
        self._by_entry[entry_index] = fd
        return fd

    def lookup(self, fd: int) -> Descriptor:
        """Return the descriptor for an open fd.

        Raises:
            StoreError: ``INVALID_DESCRIPTOR`` if ``fd`` is out of range or
                not open.

        """
        if not 0 <= fd < self._capacity:
            msg = f"Bad file descriptor: {fd} (valid range 0..{self._capacity - 1})"
            raise StoreError(ErrorKind.INVALID_DESCRIPTOR, msg)
        descriptor = self._slots[fd]
        if descriptor is None:
            msg = f"Bad file descriptor: {fd}"
            raise StoreError(ErrorKind.INVALID_DESCRIPTOR, msg)
        return descriptor

    def release(self, fd: int) -> Descriptor:
        """Close an fd.

        Reserved fds stay bound with their offset reset to zero.  Any
        other fd is unbound and returned to the free list.

        Returns:
            The released descriptor.

        Raises:
            StoreError: ``INVALID_DESCRIPTOR`` if ``fd`` is not open.

        """
        descriptor = self.lookup(fd)
        if descriptor.reserved:
            descriptor.offset = 0
            return descriptor
        self._slots[fd] = None
        del self._by_entry[descriptor.entry_index]
        heapq.heappush(self._free, fd)
        return descriptor

    def bound_to(self, entry_index: int) -> int | None:
        """Return the fd currently bound to an entry, or None."""
        return self._by_entry.get(entry_index)

    def list_fds(self) -> dict[int, Descriptor]:
        """Return a snapshot of all open fds.

        Returns:
            A dict mapping fd numbers to descriptors.

        """
        return {fd: d for fd, d in enumerate(self._slots) if d is not None}
