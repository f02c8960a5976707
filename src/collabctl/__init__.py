"""collabctl: command-line administration client for a collaboration server.

Each subcommand maps onto one REST endpoint (or a short sequence of calls)
of the server's v4 API, with results rendered to the terminal.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("collabctl")
except PackageNotFoundError:
    __version__ = "0.1.0"
