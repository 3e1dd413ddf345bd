"""The entry table: named byte blobs in a fixed number of slots.

An **entry** is the disk's analogue of an inode plus its data: a name
and a resizable byte buffer.  Entries live in a table with a fixed
number of slots, exactly like the statically sized array the device
runtime reserves in VRAM.

Key points:

- A slot is either **free** (``name is None``) or **in use**.  The
  empty string is never used as a sentinel.
- Entries are addressed by **index**.  Descriptors keep the index, not
  a reference to the ``Entry`` object, so slots can be reset or reused
  without leaving stale references behind.
- The table knows nothing about descriptors or modes; it only stores
  bytes.  Running out of slots or space is an expected outcome and is
  reported with ``StoreError``.
"""

import heapq
from dataclasses import dataclass, field

from py_vramdisk.errors import ErrorKind, StoreError


@dataclass
class Entry:
    """One slot of the entry table.

    ``size`` is derived from the buffer, so the two can never disagree.
    """

    name: str | None = None
    data: bytearray = field(default_factory=bytearray)

    @property
    def in_use(self) -> bool:
        """Return True if this slot holds a named entry."""
        return self.name is not None

    @property
    def size(self) -> int:
        """Return the number of bytes stored."""
        return len(self.data)


@dataclass(frozen=True)
class EntryInfo:
    """Read-only snapshot of an in-use entry."""

    index: int
    name: str
    size: int


class EntryTable:
    """Fixed-capacity table of named byte buffers.

    Lookup by name goes through an index map; the lowest free slot is
    kept on a heap so ``create`` never scans the whole table.
    """

    def __init__(self, *, capacity: int, max_size: int) -> None:
        """Create a table with ``capacity`` free slots.

        Args:
            capacity: Number of slots.
            max_size: Largest size in bytes any entry may grow to.

        """
        self._capacity = capacity
        self._max_size = max_size
        self._slots: list[Entry] = []
        self._by_name: dict[str, int] = {}
        self._free: list[int] = []
        self.reset()

    @property
    def capacity(self) -> int:
        """Return the total number of slots."""
        return self._capacity

    @property
    def max_size(self) -> int:
        """Return the largest size an entry may reach."""
        return self._max_size

    def __len__(self) -> int:
        """Return the number of slots in use."""
        return len(self._by_name)

    def reset(self) -> None:
        """Free every slot and drop all data."""
        self._slots = [Entry() for _ in range(self._capacity)]
        self._by_name = {}
        self._free = list(range(self._capacity))
        heapq.heapify(self._free)

    def find(self, name: str) -> int | None:
        """Return the index of the entry called ``name``, or None."""
        return self._by_name.get(name)

    def create(self, name: str) -> int:
        """Claim the lowest free slot for a new, empty entry.

        The caller must already know that no entry called ``name`` exists.

        Args:
            name: The name of the new entry.

        Returns:
            The index of the claimed slot.

        Raises:
            ValueError: If an entry called ``name`` already exists.
            StoreError: ``ENTRIES_EXHAUSTED`` if every slot is in use.

        """
        if name in self._by_name:
            msg = f"Entry '{name}' already exists"
            raise ValueError(msg)
        if not self._free:
            msg = f"Entry table full ({self._capacity} slots)"
            raise StoreError(ErrorKind.ENTRIES_EXHAUSTED, msg)
        index = heapq.heappop(self._free)
        slot = self._slots[index]
        slot.name = name
        slot.data = bytearray()
        self._by_name[name] = index
        return index

    def get(self, index: int) -> Entry:
        """Return the in-use entry at ``index``.

        Raises:
            StoreError: ``NOT_FOUND`` if the index is out of range or free.

        """
        if not 0 <= index < self._capacity or not self._slots[index].in_use:
            msg = f"No entry at index {index}"
            raise StoreError(ErrorKind.NOT_FOUND, msg)
        return self._slots[index]

    def clear(self, index: int) -> None:
        """Drop an entry's data, keeping the slot allocated to its name."""
        self.get(index).data = bytearray()

    def write_at(self, index: int, offset: int, data: bytes) -> int:
        """Write ``data`` into an entry starting at ``offset``.

        Bytes already stored past ``offset`` are overwritten; the buffer
        grows only when the write runs past the current end.

        Args:
            index: The entry to write to.
            offset: Where to start writing (``0 <= offset <= size``).
            data: The bytes to write.

        Returns:
            The number of bytes written.

        Raises:
            StoreError: ``NO_SPACE`` if the entry would exceed ``max_size``;
                the entry is left untouched.

        """
        entry = self.get(index)
        new_size = max(entry.size, offset + len(data))
        if new_size > self._max_size:
            msg = (
                f"No space left in '{entry.name}': "
                f"{new_size} bytes exceeds limit of {self._max_size}"
            )
            raise StoreError(ErrorKind.NO_SPACE, msg)
        entry.data[offset : offset + len(data)] = data
        return len(data)

    def read_at(self, index: int, offset: int, count: int) -> bytes:
        """Return up to ``count`` bytes starting at ``offset``.

        Reading at or past the end yields ``b""``, not an error.
        """
        entry = self.get(index)
        return bytes(entry.data[offset : offset + count])

    def entries(self) -> list[EntryInfo]:
        """Return a snapshot of every in-use entry, ordered by index."""
        return [
            EntryInfo(index=index, name=slot.name, size=slot.size)
            for index, slot in enumerate(self._slots)
            if slot.name is not None
        ]
