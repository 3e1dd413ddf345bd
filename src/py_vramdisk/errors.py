"""Error taxonomy for the VRAM disk.

Every failure the disk can report is an *expected* outcome of a single
call: a full table, a missing entry, a descriptor used in the wrong
mode.  None of them is fatal, so they are modelled as one exception
type carrying an ``ErrorKind`` rather than a deep class hierarchy.

Internal subsystems (entry table, descriptor table, devices) raise
``StoreError``.  The syscall layer is the only place that translates
a ``StoreError`` into the POSIX errno convention, using ``ERRNO_BY_KIND``.
"""

import errno
from enum import StrEnum


class ErrorKind(StrEnum):
    """Every way a disk operation can fail."""

    NOT_FOUND = "not_found"
    ENTRIES_EXHAUSTED = "entries_exhausted"
    DESCRIPTORS_EXHAUSTED = "descriptors_exhausted"
    INVALID_DESCRIPTOR = "invalid_descriptor"
    WRONG_MODE_ACCESS = "wrong_mode_access"
    ALREADY_OPEN_CONFLICT = "already_open_conflict"
    NO_SPACE = "no_space"
    UNSUPPORTED_MODE = "unsupported_mode"
    NAME_TOO_LONG = "name_too_long"
    FILE_TOO_BIG = "file_too_big"
    INVALID_ARGUMENT = "invalid_argument"


ERRNO_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: errno.ENOENT,
    ErrorKind.ENTRIES_EXHAUSTED: errno.ENOSPC,
    ErrorKind.DESCRIPTORS_EXHAUSTED: errno.ENFILE,
    ErrorKind.INVALID_DESCRIPTOR: errno.EBADF,
    ErrorKind.WRONG_MODE_ACCESS: errno.EBADF,
    ErrorKind.ALREADY_OPEN_CONFLICT: errno.EACCES,
    ErrorKind.NO_SPACE: errno.ENOSPC,
    ErrorKind.UNSUPPORTED_MODE: errno.ENOTSUP,
    ErrorKind.NAME_TOO_LONG: errno.ENAMETOOLONG,
    ErrorKind.FILE_TOO_BIG: errno.EFBIG,
    ErrorKind.INVALID_ARGUMENT: errno.EINVAL,
}


class StoreError(Exception):
    """Raise when a disk operation fails with an expected outcome.

    Attributes:
        kind: Which failure occurred.

    """

    def __init__(self, kind: ErrorKind, message: str) -> None:
        """Create an error of the given kind with a readable message."""
        super().__init__(message)
        self.kind = kind

    @property
    def errno(self) -> int:
        """Return the POSIX errno this failure maps to."""
        return ERRNO_BY_KIND[self.kind]
