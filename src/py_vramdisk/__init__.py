"""py-vramdisk: an in-memory virtual file store for hosted runtimes.

Gives a program with no operating system underneath the illusion of a
filesystem: stdin/stdout/stderr, ``/dev/null``, and a fixed table of
named byte buffers reached through ``open``/``read``/``write``/``close``.
"""

from py_vramdisk.config import DiskLimits, StubConfig, connect_disk
from py_vramdisk.disk import VramDisk
from py_vramdisk.errors import ErrorKind, StoreError
from py_vramdisk.fs.fd import OpenMode
from py_vramdisk.syscalls import SyscallError, SyscallNumber

__version__ = "0.1.0"

__all__ = [
    "DiskLimits",
    "ErrorKind",
    "OpenMode",
    "StoreError",
    "StubConfig",
    "SyscallError",
    "SyscallNumber",
    "VramDisk",
    "__version__",
    "connect_disk",
]
