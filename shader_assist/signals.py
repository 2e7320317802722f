"""
Command channel between the control surface and the watch loop.

Two independent signal cells, each a threading.Event:
- recompile: force every eligible shader to compile on the next pass
- exit: stop the watch loop before its next pass

No lock spans both cells; they are never updated together.
"""
from __future__ import annotations

import threading
from typing import Optional


class CommandChannel:
    """
    Thread-safe signals written by the CLI thread and read by the watcher.

    Example:
        >>> channel = CommandChannel()
        >>> channel.request_recompile()
        >>> channel.recompile_requested
        True
    """

    def __init__(self):
        self._recompile = threading.Event()
        self._exit = threading.Event()

    @property
    def recompile_requested(self) -> bool:
        return self._recompile.is_set()

    def request_recompile(self) -> None:
        """Ask for one forced full recompile pass."""
        self._recompile.set()

    def clear_recompile(self) -> None:
        """Called by the watch loop once a forced pass has completed."""
        self._recompile.clear()

    @property
    def exit_requested(self) -> bool:
        return self._exit.is_set()

    def request_exit(self) -> None:
        """Ask the watch loop to stop. Cannot be undone."""
        self._exit.set()

    def wait_for_exit(self, timeout: Optional[float] = None) -> bool:
        """Block until exit is requested or timeout elapses. Returns the exit flag."""
        return self._exit.wait(timeout)
