"""Browser-based inspection UI for py-vramdisk.

This package provides a Flask application that exposes a disk and its
shell through a web browser.  It is an **optional** extra: install
with::

    pip install py-vramdisk[web]

The ``create_app`` factory in ``app.py`` creates a disk whose console
output is captured in memory, and serves three endpoints:

- ``GET /``: HTML terminal page.
- ``POST /api/execute``: execute a shell command and return JSON.
- ``GET /api/status``: entry table, descriptor table, and console output.
"""
