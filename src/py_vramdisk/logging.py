"""Disk audit log.

Every open, close, and refused call leaves a record here, so a test or
the shell's ``log`` command can reconstruct what a hosted program did
to the disk.  Like a kernel's ``dmesg`` ring, the log has a fixed
capacity: once full, the oldest records are discarded and counted.

- **LogLevel**: ordered severities, so ``min_level`` filtering is a
  plain comparison.
- **LogEntry**: one immutable record, tagged with the descriptor it
  concerns when there is one.
- **Logger**: the bounded ring plus queries over it.
"""

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum

DEFAULT_LOG_CAPACITY = 1024


class LogLevel(IntEnum):
    """Severity of a disk event."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """One audit record.

    Attributes:
        level: How serious the event was.
        message: What happened, in words.
        source: Which part of the disk reported it (``"open"``, ``"io"``...).
        fd: The descriptor involved, or None for disk-wide events.

    """

    level: LogLevel
    message: str
    source: str
    fd: int | None = None

    def __str__(self) -> str:
        """Render as ``[LEVEL] source: message (fd N)``."""
        tag = "" if self.fd is None else f" (fd {self.fd})"
        return f"[{self.level.name}] {self.source}: {self.message}{tag}"


class Logger:
    """Fixed-capacity ring of ``LogEntry`` records."""

    def __init__(self, *, capacity: int = DEFAULT_LOG_CAPACITY) -> None:
        """Create an empty log holding at most ``capacity`` records.

        Raises:
            ValueError: If ``capacity`` is not positive.

        """
        if capacity < 1:
            msg = f"Log capacity must be positive, got {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._ring: deque[LogEntry] = deque(maxlen=capacity)
        self._dropped = 0

    @property
    def capacity(self) -> int:
        """Return the most records the log keeps."""
        return self._capacity

    @property
    def dropped(self) -> int:
        """Return how many old records were discarded to make room."""
        return self._dropped

    @property
    def entries(self) -> list[LogEntry]:
        """Return a copy of the retained records, oldest first."""
        return list(self._ring)

    def __len__(self) -> int:
        """Return the number of retained records."""
        return len(self._ring)

    def __iter__(self) -> Iterator[LogEntry]:
        """Iterate over a snapshot of the retained records."""
        return iter(self.entries)

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        fd: int | None = None,
    ) -> None:
        """Record an event, evicting the oldest record if the ring is full."""
        if len(self._ring) == self._capacity:
            self._dropped += 1
        self._ring.append(LogEntry(level=level, message=message, source=source, fd=fd))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
        fd: int | None = None,
    ) -> list[LogEntry]:
        """Return the records matching every given criterion.

        Args:
            min_level: Keep records at or above this severity.
            source: Keep records from this part of the disk.
            fd: Keep records about this descriptor.

        Returns:
            Matching records, oldest first.

        """
        return [
            e
            for e in self._ring
            if (min_level is None or e.level >= min_level)
            and (source is None or e.source == source)
            and (fd is None or e.fd == fd)
        ]

    def lines(self, *, min_level: LogLevel | None = None) -> list[str]:
        """Return the retained records rendered as text."""
        return [str(e) for e in self.filter(min_level=min_level)]

    def clear(self) -> None:
        """Discard every record and reset the dropped count."""
        self._ring.clear()
        self._dropped = 0
