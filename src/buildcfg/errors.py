# errors.py
from __future__ import annotations

from dataclasses import dataclass


class BuildError(Exception):
    """Base class for every error raised by buildcfg."""


@dataclass
class ConfigError(BuildError):
    """
    The configuration could not be read, parsed or validated.

    Always raised before any task runs. `line` is 1-based and is None for
    errors that are not tied to a particular line (e.g. unreadable file).
    """
    source: str
    line: int | None
    reason: str

    def __str__(self) -> str:
        if self.line is None:
            return f"{self.source}: {self.reason}"
        return f"{self.source}:{self.line}: {self.reason}"


@dataclass
class ResolutionError(BuildError):
    """A command template references a variable that is not defined."""
    task: str
    variable: str

    def __str__(self) -> str:
        return f"task({self.task}): undefined variable '${self.variable}'"
