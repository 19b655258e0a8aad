# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

EXIT_UNRESOLVED = 1
EXIT_CONFIG_ERROR = 78  # sysexits EX_CONFIG
EXIT_SPAWN_FAILED = 127

# name -> literal value
VariableTable = Mapping[str, str]


@dataclass(frozen=True)
class Variable:
    """A `$name = value` binding from the top level of the config."""
    name: str
    value: str
    line: int = 0


@dataclass(frozen=True)
class Task:
    """A named command template, the unit of execution."""
    name: str
    command: str
    line: int = 0


# name -> Task
TaskTable = Mapping[str, Task]


@dataclass(frozen=True)
class BuildConfig:
    """
    Everything the parser produces: variable table, task table and the
    ordered execution plan. Read-only once built, so it can be shared by
    concurrently running tasks without locking.
    """
    source: str
    variables: VariableTable
    tasks: TaskTable
    plan: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # freeze the tables handed in by the parser
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))
        object.__setattr__(self, "tasks", MappingProxyType(dict(self.tasks)))
        object.__setattr__(self, "plan", tuple(self.plan))

    def unused_tasks(self) -> List[str]:
        planned = set(self.plan)
        return [name for name in self.tasks if name not in planned]


class StatusKind(str, Enum):
    SUCCESS = "success"
    NONZERO = "nonzero"
    SPAWN_FAILED = "spawn_failed"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class ExitStatus:
    """
    Outcome of one task attempt.

    `code` is only meaningful for NONZERO; `reason` is set for
    SPAWN_FAILED and UNRESOLVED. Captured process output travels along so
    it can be echoed together with the task report.
    """
    kind: StatusKind
    code: int = 0
    reason: Optional[str] = None
    stdout: str = ""
    stderr: str = ""

    @classmethod
    def success(cls, stdout: str = "", stderr: str = "") -> ExitStatus:
        return cls(StatusKind.SUCCESS, stdout=stdout, stderr=stderr)

    @classmethod
    def nonzero(cls, code: int, stdout: str = "", stderr: str = "") -> ExitStatus:
        return cls(StatusKind.NONZERO, code=code, stdout=stdout, stderr=stderr)

    @classmethod
    def spawn_failed(cls, reason: str) -> ExitStatus:
        return cls(StatusKind.SPAWN_FAILED, reason=reason)

    @classmethod
    def unresolved(cls, reason: str) -> ExitStatus:
        return cls(StatusKind.UNRESOLVED, reason=reason)

    @property
    def ok(self) -> bool:
        return self.kind is StatusKind.SUCCESS

    @property
    def exit_code(self) -> int:
        """Process exit code this status maps to."""
        if self.kind is StatusKind.SUCCESS:
            return 0
        if self.kind is StatusKind.NONZERO:
            return self.code
        if self.kind is StatusKind.SPAWN_FAILED:
            return EXIT_SPAWN_FAILED
        return EXIT_UNRESOLVED


@dataclass(frozen=True)
class ExecutionResult:
    task: str
    index: int                  # position in the execution plan
    command: Optional[str]      # None when resolution failed
    status: ExitStatus
    order: int                  # completion order, 0-based

    @property
    def ok(self) -> bool:
        return self.status.ok


@dataclass
class RunOutcome:
    """Aggregated result of a run, results in reporting order."""
    results: List[ExecutionResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(r.ok for r in self.results)

    @property
    def failures(self) -> List[ExecutionResult]:
        return sorted((r for r in self.results if not r.ok), key=lambda r: r.index)

    @property
    def exit_code(self) -> int:
        # first failure in plan order decides
        failures = self.failures
        if not failures:
            return 0
        return failures[0].status.exit_code
