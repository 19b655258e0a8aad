# shell.py
from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .model import ExitStatus


class ShellKind(str, Enum):
    DEFAULT = "default"
    ALTERNATE = "alternate"


def _is_windows() -> bool:
    return os.name == "nt"


# (executable, flag) per platform
_POSIX = {
    ShellKind.DEFAULT: ("/bin/sh", "-c"),
    ShellKind.ALTERNATE: ("bash", "-c"),
}
_WINDOWS = {
    ShellKind.DEFAULT: (os.environ.get("COMSPEC", "cmd.exe"), "/C"),
    ShellKind.ALTERNATE: ("powershell", "-Command"),
}


@dataclass(frozen=True)
class ShellAdapter:
    """
    Runs a resolved command line through a command interpreter.

    Chosen once per run via `select()` and used for every task of that
    run. `executable` overrides the interpreter binary of the selected
    kind (e.g. `zsh` instead of `bash`).
    """
    kind: ShellKind = ShellKind.DEFAULT
    executable: Optional[str] = None

    @classmethod
    def select(cls, alternate: bool = False, executable: Optional[str] = None) -> ShellAdapter:
        if alternate:
            return cls(kind=ShellKind.ALTERNATE, executable=executable)
        return cls(kind=ShellKind.DEFAULT)

    def argv(self, command: str) -> List[str]:
        table = _WINDOWS if _is_windows() else _POSIX
        exe, flag = table[self.kind]
        argv = [self.executable or exe]
        if _is_windows() and self.kind is ShellKind.ALTERNATE:
            argv.append("-NoProfile")
        argv += [flag, command]
        return argv

    @property
    def interpreter(self) -> str:
        return self.argv("")[0]

    def run(self, command: str) -> ExitStatus:
        """
        Run `command` to completion and map the result to an ExitStatus.

        Output is captured so it can be reported as one block with the
        task's status line.
        """
        try:
            proc = subprocess.run(
                self.argv(command),
                text=True,
                errors="replace",
                capture_output=True,
            )
        except OSError as e:
            # interpreter missing, not executable, ...
            reason = f"{self.interpreter}: {e.strerror or e}"
            return ExitStatus.spawn_failed(reason)
        except ValueError as e:
            # argv the OS cannot take, e.g. an embedded NUL byte
            return ExitStatus.spawn_failed(f"{self.interpreter}: {e}")

        if proc.returncode == 0:
            return ExitStatus.success(stdout=proc.stdout, stderr=proc.stderr)

        code = proc.returncode
        if code < 0:
            # killed by signal N -> 128 + N, same as the shells report it
            code = 128 - code
        return ExitStatus.nonzero(code, stdout=proc.stdout, stderr=proc.stderr)
