"""The shell: a command interpreter for poking at a VRAM disk.

The shell reads a command string, splits it into a command name and
arguments, dispatches to a handler, and returns a string result.

Design choices:
    - **Returns strings, not prints.**  This keeps the shell fully
      testable; the REPL and the web UI decide how to display output.
    - **Command dispatch via a dict.**  Adding a command means writing
      a method and adding one dict entry.
    - **All disk interaction goes through syscalls.**  Handlers call
      ``disk.syscall()`` so the shell sees exactly what a hosted
      program would, errno and all.
"""

import shlex
from collections.abc import Callable
from typing import TypeAlias

from py_vramdisk.disk import VramDisk
from py_vramdisk.logging import LogLevel
from py_vramdisk.syscalls import SyscallError, SyscallNumber

# Type alias for a command handler: takes a list of args, returns output.
_Handler: TypeAlias = Callable[[list[str]], str]

# Chunk size used by ``cat`` when draining an entry.
_CAT_CHUNK = 512


class Shell:
    """Command interpreter operating on one disk."""

    EXIT_SENTINEL = "__EXIT__"

    def __init__(self, *, disk: VramDisk) -> None:
        """Create a shell attached to ``disk``."""
        self._disk = disk
        self._history: list[str] = []

        self._commands: dict[str, _Handler] = {
            "help": self._cmd_help,
            "open": self._cmd_open,
            "close": self._cmd_close,
            "read": self._cmd_read,
            "write": self._cmd_write,
            "cat": self._cmd_cat,
            "ls": self._cmd_ls,
            "lsfd": self._cmd_lsfd,
            "log": self._cmd_log,
            "stat": self._cmd_stat,
            "unlink": self._cmd_unlink,
            "sync": self._cmd_sync,
            "history": self._cmd_history,
            "exit": self._cmd_exit,
        }

    @property
    def disk(self) -> VramDisk:
        """Return the disk this shell operates on."""
        return self._disk

    @property
    def commands(self) -> list[str]:
        """Return the sorted command names."""
        return sorted(self._commands)

    def execute(self, command: str) -> str:
        """Parse and execute a shell command.

        Args:
            command: The raw command string (e.g. ``open notes.txt w``).

        Returns:
            The command output as a string, or an error message.

        """
        stripped = command.strip()
        if not stripped:
            return ""
        self._history.append(stripped)

        try:
            parts = shlex.split(stripped)
        except ValueError as e:
            return f"Error: {e}"

        name, args = parts[0], parts[1:]
        handler = self._commands.get(name)
        if handler is None:
            return f"Unknown command: {name}"
        return handler(args)

    # -- Helpers -------------------------------------------------------------

    @staticmethod
    def _parse_int(value: str, label: str) -> int | str:
        """Return ``value`` as an int, or an error message."""
        try:
            return int(value)
        except ValueError:
            return f"Error: invalid {label} '{value}'"

    # -- Commands ------------------------------------------------------------

    def _cmd_help(self, _args: list[str]) -> str:
        """List available commands."""
        return "Available commands: " + ", ".join(self.commands)

    def _cmd_open(self, args: list[str]) -> str:
        """Open an entry and get a file descriptor."""
        if not args:
            return "Usage: open <path> [r|w|a|r+|w+|a+|rwt]"
        path = args[0]
        mode = args[1] if len(args) > 1 else "r"
        try:
            result: dict[str, int] = self._disk.syscall(
                SyscallNumber.SYS_OPEN, path=path, mode=mode
            )
        except SyscallError as e:
            return f"Error: {e}"
        return f"Opened '{path}' as fd {result['fd']}"

    def _cmd_close(self, args: list[str]) -> str:
        """Close a file descriptor."""
        if not args:
            return "Usage: close <fd>"
        fd = self._parse_int(args[0], "fd")
        if isinstance(fd, str):
            return fd
        try:
            self._disk.syscall(SyscallNumber.SYS_CLOSE, fd=fd)
        except SyscallError as e:
            return f"Error: {e}"
        return f"Closed fd {fd}"

    def _cmd_read(self, args: list[str]) -> str:
        """Read bytes from a file descriptor."""
        min_args = 2
        if len(args) < min_args:
            return "Usage: read <fd> <count>"
        fd = self._parse_int(args[0], "fd")
        if isinstance(fd, str):
            return fd
        count = self._parse_int(args[1], "count")
        if isinstance(count, str):
            return count
        try:
            result: dict[str, object] = self._disk.syscall(
                SyscallNumber.SYS_READ, fd=fd, count=count
            )
        except SyscallError as e:
            return f"Error: {e}"
        data: bytes = result["data"]  # type: ignore[assignment]
        return data.decode(errors="replace")

    def _cmd_write(self, args: list[str]) -> str:
        """Write text to a file descriptor."""
        min_args = 2
        if len(args) < min_args:
            return "Usage: write <fd> <data...>"
        fd = self._parse_int(args[0], "fd")
        if isinstance(fd, str):
            return fd
        content = " ".join(args[1:])
        try:
            result: dict[str, int] = self._disk.syscall(
                SyscallNumber.SYS_WRITE, fd=fd, data=content.encode()
            )
        except SyscallError as e:
            return f"Error: {e}"
        return f"Wrote {result['bytes_written']} bytes to fd {fd}"

    def _cmd_cat(self, args: list[str]) -> str:
        """Print an entry's full contents (open, read to the end, close)."""
        if not args:
            return "Usage: cat <path>"
        try:
            fd: int = self._disk.syscall(SyscallNumber.SYS_OPEN, path=args[0], mode="r")["fd"]
        except SyscallError as e:
            return f"Error: {e}"
        chunks: list[bytes] = []
        try:
            while True:
                result = self._disk.syscall(SyscallNumber.SYS_READ, fd=fd, count=_CAT_CHUNK)
                if not result["count"]:
                    break
                chunks.append(result["data"])
        finally:
            self._disk.syscall(SyscallNumber.SYS_CLOSE, fd=fd)
        return b"".join(chunks).decode(errors="replace")

    def _cmd_ls(self, _args: list[str]) -> str:
        """List every entry with its size."""
        entries: list[dict[str, object]] = self._disk.syscall(SyscallNumber.SYS_LIST_ENTRIES)
        lines = ["IDX  SIZE   NAME"]
        lines.extend(f"{e['index']:<4} {e['size']:<6} {e['name']}" for e in entries)
        return "\n".join(lines)

    def _cmd_lsfd(self, _args: list[str]) -> str:
        """List open file descriptors."""
        fds: list[dict[str, object]] = self._disk.syscall(SyscallNumber.SYS_LIST_FDS)
        lines = ["FD  MODE  OFFSET  NAME"]
        lines.extend(f"{d['fd']:<3} {d['mode']!s:<5} {d['offset']:<7} {d['name']}" for d in fds)
        return "\n".join(lines)

    def _cmd_log(self, args: list[str]) -> str:
        """Show the disk's audit log, optionally from a minimum level up."""
        min_level: LogLevel | None = None
        if args:
            try:
                min_level = LogLevel[args[0].upper()]
            except KeyError:
                levels = "|".join(level.name.lower() for level in LogLevel)
                return f"Usage: log [{levels}]"
        entries: list[str] = self._disk.syscall(SyscallNumber.SYS_READ_LOG, min_level=min_level)
        return "\n".join(entries) if entries else "No log entries."

    def _cmd_stat(self, args: list[str]) -> str:
        """Stat an entry (always fails on this disk)."""
        if not args:
            return "Usage: stat <path>"
        try:
            self._disk.syscall(SyscallNumber.SYS_STAT, path=args[0])
        except SyscallError as e:
            return f"Error: {e}"
        return ""  # pragma: no cover

    def _cmd_unlink(self, args: list[str]) -> str:
        """Remove an entry (always fails on this disk)."""
        if not args:
            return "Usage: unlink <path>"
        try:
            self._disk.syscall(SyscallNumber.SYS_UNLINK, path=args[0])
        except SyscallError as e:
            return f"Error: {e}"
        return ""  # pragma: no cover

    def _cmd_sync(self, _args: list[str]) -> str:
        """Flush the disk (a no-op)."""
        self._disk.syscall(SyscallNumber.SYS_SYNC)
        return ""

    def _cmd_history(self, _args: list[str]) -> str:
        """Show command history."""
        return "\n".join(f"  {i + 1}  {cmd}" for i, cmd in enumerate(self._history))

    def _cmd_exit(self, _args: list[str]) -> str:
        """Signal the REPL to stop."""
        return self.EXIT_SENTINEL
