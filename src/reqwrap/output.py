"""Diagnostic output for reqwrap.

Everything reqwrap prints is a diagnostic, so all of it goes to **stderr**;
stdout is left to the application. Colour follows the usual conventions:
Rich markup by default, plain text when ``NO_COLOR`` is set or
``TERM=dumb``.

The module exposes two layers:

1. :class:`OutputManager` -- a stateful object holding the Rich console and
   the quiet/verbose flags. Applications that want different behaviour
   create one and install it via :func:`set_output`.
2. Module-level convenience functions (:func:`info`, :func:`warning`,
   :func:`error`, :func:`debug`, :func:`log_request`, :func:`log_cached`)
   that delegate to the global ``OutputManager`` so callers do not need to
   pass the manager around.
"""

from __future__ import annotations

import math
import os
import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape

from reqwrap.constants import UNSPECIFIED_METHOD


class OutputManager:
    """Central manager for reqwrap diagnostics.

    Args:
        no_color: Disable all colour and Rich markup.
        quiet: Suppress informational messages (request log lines included).
            Warnings and errors are still shown.
        verbose: Enable debug-level messages.
    """

    def __init__(
        self,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._stderr = Console(
            file=sys.stderr,
            no_color=self._no_color,
            stderr=True,
        )

    @property
    def is_quiet(self) -> bool:
        """Whether quiet mode is enabled."""
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        """Whether verbose mode is enabled."""
        return self._verbose

    def info(self, message: str) -> None:
        """Print an informational message. Suppressed in quiet mode."""
        if not self._quiet:
            if self._no_color:
                print(message, file=sys.stderr, flush=True)
            else:
                self._stderr.print(escape(message))

    def warning(self, message: str) -> None:
        """Print a yellow warning. NOT suppressed in quiet mode."""
        if self._no_color:
            print(f"Warning: {message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        """Print a bold-red error. Never suppressed."""
        if self._no_color:
            print(f"Error: {message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(f"[bold red]Error:[/bold red] {escape(message)}")

    def debug(self, message: str) -> None:
        """Print a debug message. Only shown in verbose mode."""
        if self._verbose:
            if self._no_color:
                print(f"[debug] {message}", file=sys.stderr, flush=True)
            else:
                self._stderr.print(f"[dim]\\[debug] {escape(message)}[/dim]")

    def request(
        self,
        status: int,
        url: str,
        duration_ms: float,
        method: Optional[str] = None,
    ) -> None:
        """Print the log line for a completed request.

        Format: ``METHOD STATUS: URL (N ms.)`` with the duration rounded up.
        """
        self.info(
            f"{method or UNSPECIFIED_METHOD} {status}: {url} ({math.ceil(duration_ms)} ms.)"
        )

    def cached(self, status: int, url: str, method: Optional[str] = None) -> None:
        """Print the log line for a request answered from the cache."""
        self.info(f"{method or UNSPECIFIED_METHOD} {status}: {url} (cached)")


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def _should_disable_color() -> bool:
    """Return True when NO_COLOR env var is set (any value) or TERM=dumb."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    return False


# ------------------------------------------------------------------ #
# Global output instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager` instance.

    If no instance has been installed via :func:`set_output`, a default
    ``OutputManager`` is created lazily.
    """
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager` instance."""
    global _output
    _output = output


def reset_output() -> None:
    """Reset the global :class:`OutputManager` to ``None``.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _output
    _output = None


# ------------------------------------------------------------------ #
# Convenience functions that use the global instance
# ------------------------------------------------------------------ #


def info(message: str) -> None:
    """Print info message to stderr via the global OutputManager."""
    get_output().info(message)


def warning(message: str) -> None:
    """Print warning to stderr via the global OutputManager."""
    get_output().warning(message)


def error(message: str) -> None:
    """Print error to stderr via the global OutputManager."""
    get_output().error(message)


def debug(message: str) -> None:
    """Print debug message to stderr via the global OutputManager."""
    get_output().debug(message)


def log_request(
    status: int,
    url: str,
    duration_ms: float,
    method: Optional[str] = None,
) -> None:
    """Log a completed request via the global OutputManager."""
    get_output().request(status, url, duration_ms, method)


def log_cached(status: int, url: str, method: Optional[str] = None) -> None:
    """Log a cache hit via the global OutputManager."""
    get_output().cached(status, url, method)
