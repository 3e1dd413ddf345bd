"""Configuration for a VRAM disk.

Two frozen dataclasses describe a disk before it exists:

- ``DiskLimits``: the fixed capacities of the entry and descriptor
  tables.  The defaults match the limits of the device
  runtime, except ``max_fopen``: four descriptors are permanently
  reserved for stdin/stdout/stderr/null, so a handful more are needed
  for the table to be useful.
- ``StubConfig``: the fixed answers given by the collaborator
  syscalls (``getpid``, ``isatty``, ``lseek``...).  These are
  deliberately unfinished in the runtime, so their results are
  configurable rather than guessed.

``connect_disk`` builds a ready ``VramDisk`` from flat keyword
overrides, rejecting anything it does not recognise.
"""

from __future__ import annotations

import errno
from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from py_vramdisk.disk import VramDisk

DEFAULT_MAX_FILES = 32
DEFAULT_MAX_FSIZE = 4096
DEFAULT_MAX_FNAME = 32
DEFAULT_MAX_FOPEN = 8

# stdin, stdout, stderr, /dev/null
RESERVED_COUNT = 4


@dataclass(frozen=True)
class DiskLimits:
    """Fixed capacities of a disk.

    Attributes:
        max_files: Number of entry slots, reserved devices included.
        max_fsize: Largest size in bytes any entry (or device buffer) may reach.
        max_fname: Longest entry name, in bytes as ``os.fsencode`` gives them.
        max_fopen: Number of descriptor slots, reserved devices included.

    """

    max_files: int = DEFAULT_MAX_FILES
    max_fsize: int = DEFAULT_MAX_FSIZE
    max_fname: int = DEFAULT_MAX_FNAME
    max_fopen: int = DEFAULT_MAX_FOPEN

    def __post_init__(self) -> None:
        """Reject limits that cannot hold the reserved devices."""
        if self.max_files < RESERVED_COUNT:
            msg = f"max_files must be at least {RESERVED_COUNT}, got {self.max_files}"
            raise ValueError(msg)
        if self.max_fopen < RESERVED_COUNT:
            msg = f"max_fopen must be at least {RESERVED_COUNT}, got {self.max_fopen}"
            raise ValueError(msg)
        if self.max_fsize < 0:
            msg = f"max_fsize must not be negative, got {self.max_fsize}"
            raise ValueError(msg)
        if self.max_fname < 1:
            msg = f"max_fname must be positive, got {self.max_fname}"
            raise ValueError(msg)

    @property
    def user_files(self) -> int:
        """Return how many entries are available beyond the reserved devices."""
        return self.max_files - RESERVED_COUNT

    @property
    def user_fds(self) -> int:
        """Return how many descriptors are available beyond the reserved devices."""
        return self.max_fopen - RESERVED_COUNT


@dataclass(frozen=True)
class StubConfig:
    """Fixed results for the collaborator syscalls.

    Attributes:
        pid: Value returned by ``getpid``.
        tty_fds: Descriptors ``isatty`` reports as terminals.
        lseek_result: Offset ``lseek`` reports (the cursor never moves).
        fstat_errno: Error raised by ``fstat``.
        stat_errno: Error raised by ``stat``.
        unlink_errno: Error raised by ``unlink``.
        gettimeofday_errno: Error raised by ``gettimeofday``.
        kill_errno: Error raised by ``kill``.

    """

    pid: int = 0
    tty_fds: frozenset[int] = field(default_factory=lambda: frozenset({1}))
    lseek_result: int = 0
    fstat_errno: int = errno.ENOSYS
    stat_errno: int = errno.EACCES
    unlink_errno: int = errno.ENOSYS
    gettimeofday_errno: int = errno.ENOSYS
    kill_errno: int = errno.ESRCH


def connect_disk(**kwargs: Any) -> VramDisk:
    """Create a disk from flat keyword overrides.

    Keys naming a ``DiskLimits`` field configure the tables, keys naming
    a ``StubConfig`` field configure the stubs.  ``stdout_sink`` and
    ``stderr_sink`` are passed through to the disk.

    Returns:
        A freshly initialised ``VramDisk``.

    Raises:
        ValueError: If an unknown key is given or a limit is invalid.

    Examples:
        >>> disk = connect_disk(max_files=8, pid=42)
        >>> disk.limits.max_files
        8

    """
    from py_vramdisk.disk import VramDisk

    limit_names = {f.name for f in fields(DiskLimits)}
    stub_names = {f.name for f in fields(StubConfig)}
    sink_names = {"stdout_sink", "stderr_sink"}

    unknown = set(kwargs) - limit_names - stub_names - sink_names
    if unknown:
        msg = f"Unexpected arguments for disk: {sorted(unknown)}"
        raise ValueError(msg)

    limits = DiskLimits(**{k: v for k, v in kwargs.items() if k in limit_names})
    stubs = StubConfig(**{k: v for k, v in kwargs.items() if k in stub_names})
    return VramDisk(
        limits=limits,
        stubs=stubs,
        stdout_sink=kwargs.get("stdout_sink"),
        stderr_sink=kwargs.get("stderr_sink"),
    )
