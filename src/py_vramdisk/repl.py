"""Interactive REPL (Read-Eval-Print Loop) for a VRAM disk.

Creates a disk wired to the terminal (fd 1 and fd 2 print straight to
the host's stdout and stderr), attaches a shell, and loops:

    1. **Read**: display a prompt and read user input.
    2. **Eval**: pass the command to ``shell.execute()``.
    3. **Print**: display the result.
    4. **Loop**: repeat until the shell returns the exit sentinel.

``format_banner`` and ``build_prompt`` are pure and testable; ``run()``
is the I/O entrypoint.
"""

import readline
from collections.abc import Callable

from py_vramdisk import __version__
from py_vramdisk.disk import VramDisk
from py_vramdisk.shell import Shell

_BANNER_WIDTH = 38


def format_banner(disk: VramDisk) -> str:
    """Format the startup banner showing the disk's capacities.

    Args:
        disk: The disk the REPL is attached to.

    Returns:
        A formatted string suitable for printing to the console.

    """
    border = "=" * _BANNER_WIDTH
    limits = disk.limits
    header = f"\n  {border}\n          py-vramdisk v{__version__}\n  {border}\n\n"
    body = (
        f"  entries:     {limits.max_files} ({limits.user_files} free)\n"
        f"  descriptors: {limits.max_fopen} ({limits.user_fds} free)\n"
        f"  entry size:  {limits.max_fsize} bytes\n"
    )
    footer = "\nType 'help' for commands, 'exit' to quit.\n"
    return header + body + footer


def make_completer(shell: Shell) -> Callable[[str, int], str | None]:
    """Return a readline completer over the shell's command names.

    readline calls the completer with increasing ``state`` until it
    returns None.
    """

    def complete(text: str, state: int) -> str | None:
        matches = [name for name in shell.commands if name.startswith(text)]
        return matches[state] if state < len(matches) else None

    return complete


def build_prompt(disk: VramDisk) -> str:
    """Build the prompt string showing how many descriptors are open.

    Returns:
        A prompt string like ``vramdisk[4] $ ``.

    """
    return f"vramdisk[{len(disk.list_fds())}] $ "


def run() -> None:
    """Create a disk and run the interactive REPL.

    Handles Ctrl+C and Ctrl+D by leaving the loop cleanly.
    """
    disk = VramDisk()
    shell = Shell(disk=disk)

    readline.set_completer(make_completer(shell))
    readline.set_completer_delims(" \t")
    readline.parse_and_bind("tab: complete")

    print(format_banner(disk))  # noqa: T201

    try:
        while True:
            try:
                command = input(build_prompt(disk))
            except EOFError:
                # Ctrl+D: graceful exit
                print()  # noqa: T201
                break

            result = shell.execute(command)
            if result == Shell.EXIT_SENTINEL:
                break
            if result:
                print(result)  # noqa: T201

    except KeyboardInterrupt:
        # Ctrl+C: graceful exit
        print("\nInterrupted.")  # noqa: T201

    finally:
        print("Disk released.")  # noqa: T201
