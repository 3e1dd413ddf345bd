"""Flask application factory for the py-vramdisk web UI.

The ``create_app`` function creates a disk (or takes one), attaches a
shell, and returns a Flask app with three endpoints:

- ``GET /``: render the terminal HTML page.
- ``POST /api/execute``: execute a command and return JSON.  After
  ``exit`` the session is closed and later commands are refused.
- ``GET /api/status``: return the entry and descriptor tables and
  everything written to fd 1 and fd 2 so far.
"""

from __future__ import annotations

from flask import Flask, Response, jsonify, render_template, request

from py_vramdisk.devices import BufferSink
from py_vramdisk.disk import VramDisk
from py_vramdisk.shell import Shell
from py_vramdisk.syscalls import SyscallNumber

_HTTP_BAD_REQUEST = 400


def _console_text(sink: object) -> str:
    """Return captured console output, or empty for a non-buffering sink."""
    if isinstance(sink, BufferSink):
        return sink.getvalue().decode(errors="replace")
    return ""


def create_app(disk: VramDisk | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        disk: The disk to serve.  By default a new disk is created with
            its console output captured in memory.

    Returns:
        A configured Flask application ready to serve.

    """
    if disk is None:
        disk = VramDisk(stdout_sink=BufferSink(), stderr_sink=BufferSink())
    shell = Shell(disk=disk)
    session = {"closed": False}

    app = Flask(__name__)

    @app.route("/")
    def index() -> str:  # pyright: ignore[reportUnusedFunction]
        """Render the terminal HTML page."""
        return render_template("index.html", limits=disk.limits)

    @app.route("/api/execute", methods=["POST"])
    def execute() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Execute a shell command and return JSON output.

        Expects JSON body: ``{"command": "..."}``

        Returns:
            JSON with ``output`` and ``exited`` fields.

        """
        data = request.get_json(silent=True)
        if data is None or "command" not in data:
            return jsonify({"error": "Missing 'command' field"}), _HTTP_BAD_REQUEST

        if session["closed"]:
            return jsonify({"output": "Session closed.", "exited": True})

        command: str = data["command"]
        result = shell.execute(command)
        if result == Shell.EXIT_SENTINEL:
            session["closed"] = True
            return jsonify({"output": "Session closed.", "exited": True})
        return jsonify({"output": result, "exited": False})

    @app.route("/api/status")
    def status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the disk's tables and captured console output.

        Returns:
            JSON with ``entries``, ``fds``, ``stdout`` and ``stderr`` fields.

        """
        return jsonify(
            {
                "entries": disk.syscall(SyscallNumber.SYS_LIST_ENTRIES),
                "fds": disk.syscall(SyscallNumber.SYS_LIST_FDS),
                "stdout": _console_text(disk.stdout_sink),
                "stderr": _console_text(disk.stderr_sink),
            }
        )

    return app


def main() -> None:
    """Run the web UI development server.

    This is the ``py-vramdisk-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
