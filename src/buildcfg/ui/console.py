"""Console output formatting utilities for buildcfg."""

from __future__ import annotations

import sys
import threading
import traceback
from typing import Optional, TextIO

from ..model import ExecutionResult, StatusKind


class Console:
    """
    Centralized console output.

    Every public method emits its whole block with a single write while
    holding a lock, so reports from concurrently finishing tasks never
    interleave partial lines.
    """

    def __init__(self, debug: bool = False, out: Optional[TextIO] = None, err: Optional[TextIO] = None):
        """
        Initialize console formatter.

        Args:
            debug: If True, show debug messages and full tracebacks
            out: stream for regular output (defaults to the current sys.stdout)
            err: stream for errors and debug output (defaults to the current sys.stderr)
        """
        self.debug = debug
        self._out = out
        self._err = err
        self._lock = threading.Lock()

    def _write(self, text: str, err: bool = False) -> None:
        # resolve sys streams lazily so redirected/captured streams are honoured
        stream = (self._err or sys.stderr) if err else (self._out or sys.stdout)
        if not text.endswith("\n"):
            text += "\n"
        with self._lock:
            stream.write(text)
            stream.flush()

    def print_info(self, message: str) -> None:
        """Print informational message."""
        self._write(f"info: {message}")

    def print_task_result(self, result: ExecutionResult) -> None:
        """Print a task's status line followed by its captured output."""
        status = result.status
        name = result.task
        if status.kind is StatusKind.SUCCESS:
            lines = [f"task({name}): finished"]
            output = [status.stdout, status.stderr]
        elif status.kind is StatusKind.NONZERO:
            lines = [f"task({name}): failed (exit code {status.code})"]
            output = [status.stdout, status.stderr]
        elif status.kind is StatusKind.SPAWN_FAILED:
            lines = [f"task({name}): failed to execute ({status.reason})"]
            output = []
        else:
            lines = [f"task({name}): {status.reason}"]
            output = []

        for chunk in output:
            if chunk:
                lines.append(chunk.rstrip("\n"))
        self._write("\n".join(lines))

    def print_task_list(self, rows: list[tuple[str, str]]) -> None:
        """Print `name: command` rows (used by --list)."""
        if not rows:
            return
        width = max(len(name) for name, _ in rows)
        self._write("\n".join(f"{name.ljust(width)} : {cmd}" for name, cmd in rows))

    def print_error(
        self,
        title: str,
        message: str = "",
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title, printed after `error: `
            message: Optional second line
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        lines = [f"error: {title}"]
        if message:
            lines.append(message)
        for detail in details or []:
            lines.append(f"  {detail}")
        if suggestion:
            lines.append("")
            lines.append(suggestion)
        self._write("\n".join(lines), err=True)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            text = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            self._write(text, err=True)
        else:
            self._write(f"error: {exc}", err=True)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            self._write(f"[DEBUG] {message}", err=True)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
