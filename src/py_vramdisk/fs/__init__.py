"""Storage subsystem: the entry table and the descriptor table.

Re-exports public symbols so callers can write::

    from py_vramdisk.fs import EntryTable, DescriptorTable
"""

from py_vramdisk.fs.entries import Entry, EntryInfo, EntryTable
from py_vramdisk.fs.fd import Descriptor, DescriptorTable, OpenMode

__all__ = [
    "Descriptor",
    "DescriptorTable",
    "Entry",
    "EntryInfo",
    "EntryTable",
    "OpenMode",
]
