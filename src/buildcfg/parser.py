# parser.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .errors import ConfigError
from .model import BuildConfig, Task, Variable

# ----------------------------------------------------------------------
# Grammar
# ----------------------------------------------------------------------
#   $name = value        top level only
#   [task]               opens a task section, body: command = <template>
#   [execute]            body: one task name per line, order = run order
#
# Blank lines are ignored everywhere; anything else is an error.

EXECUTE_SECTION = "execute"
COMMAND_KEY = "command"

IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_]*"
TASK_NAME = r"[A-Za-z_][A-Za-z0-9_.\-]*"

_VARIABLE_RE = re.compile(rf"^\$({IDENTIFIER})\s*=(.*)$")
_SECTION_RE = re.compile(rf"^\[\s*({TASK_NAME})\s*\]$")
_KEY_RE = re.compile(r"^([^=\s]+)\s*=(.*)$")
_ENTRY_RE = re.compile(rf"^{TASK_NAME}$")


@dataclass
class _TaskBlock:
    name: str
    line: int
    command: Optional[str] = None


@dataclass
class _Collected:
    """Raw parse result, before cross-reference validation."""
    variables: List[Variable] = field(default_factory=list)
    tasks: List[_TaskBlock] = field(default_factory=list)
    plan: List[Tuple[str, int]] = field(default_factory=list)


def _collect(text: str, source: str) -> _Collected:
    """First pass: line syntax only."""
    out = _Collected()
    section: Optional[str] = None   # None = top level
    current: Optional[_TaskBlock] = None
    execute_line: Optional[int] = None

    def fail(lineno: int, reason: str) -> ConfigError:
        return ConfigError(source=source, line=lineno, reason=reason)

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue

        m = _SECTION_RE.match(line)
        if m:
            name = m.group(1)
            if name == EXECUTE_SECTION:
                if execute_line is not None:
                    raise fail(lineno, f"duplicate [{EXECUTE_SECTION}] section (first at line {execute_line})")
                execute_line = lineno
                current = None
            else:
                current = _TaskBlock(name=name, line=lineno)
                out.tasks.append(current)
            section = name
            continue

        m = _VARIABLE_RE.match(line)
        if m:
            if section is not None:
                raise fail(lineno, f"variable '${m.group(1)}' must be defined outside of sections")
            out.variables.append(Variable(name=m.group(1), value=m.group(2).strip(), line=lineno))
            continue

        if section is None:
            raise fail(lineno, f"unexpected line outside of any section: {line!r}")

        if section == EXECUTE_SECTION:
            if not _ENTRY_RE.match(line):
                raise fail(lineno, f"expected a task name in [{EXECUTE_SECTION}], got {line!r}")
            out.plan.append((line, lineno))
            continue

        # inside a task section
        assert current is not None
        m = _KEY_RE.match(line)
        if not m:
            raise fail(lineno, f"expected '{COMMAND_KEY} = <template>' in task '{current.name}', got {line!r}")
        key, value = m.group(1), m.group(2).strip()
        if key != COMMAND_KEY:
            raise fail(lineno, f"unknown field '{key}' in task '{current.name}'")
        if current.command is not None:
            raise fail(lineno, f"task '{current.name}' defines '{COMMAND_KEY}' more than once")
        if not value:
            raise fail(lineno, f"task '{current.name}' has an empty command")
        current.command = value

    return out


def _validate(collected: _Collected, source: str) -> None:
    """Second pass: names and cross references. Raises the earliest problem."""
    problems: List[Tuple[int, str]] = []

    seen_vars: Dict[str, int] = {}
    for var in collected.variables:
        if var.name in seen_vars:
            problems.append((var.line, f"duplicate variable '${var.name}' (first defined at line {seen_vars[var.name]})"))
        else:
            seen_vars[var.name] = var.line

    seen_tasks: Dict[str, int] = {}
    for block in collected.tasks:
        if block.name in seen_tasks:
            problems.append((block.line, f"duplicate task '{block.name}' (first defined at line {seen_tasks[block.name]})"))
        else:
            seen_tasks[block.name] = block.line
        if block.command is None:
            problems.append((block.line, f"task '{block.name}' has no '{COMMAND_KEY}'"))

    for name, lineno in collected.plan:
        if name not in seen_tasks:
            problems.append((lineno, f"[{EXECUTE_SECTION}] references undefined task '{name}'"))

    if problems:
        lineno, reason = min(problems, key=lambda p: p[0])
        raise ConfigError(source=source, line=lineno, reason=reason)


def parse_config(text: str, source: str = "build.cfg") -> BuildConfig:
    """
    Parse and validate configuration text.

    Args:
        text: full configuration text
        source: name used in diagnostics

    Returns:
        BuildConfig with variable table, task table and execution plan

    Raises:
        ConfigError: on the first syntax or validation problem; no partial
        tables are ever returned
    """
    collected = _collect(text, source)
    _validate(collected, source)

    return BuildConfig(
        source=source,
        variables={v.name: v.value for v in collected.variables},
        tasks={
            b.name: Task(name=b.name, command=b.command or "", line=b.line)
            for b in collected.tasks
        },
        plan=tuple(name for name, _ in collected.plan),
    )


def ensure_config(path: str | Path) -> bool:
    """
    Create an empty config file if none exists.

    Returns:
        True if the file was created
    """
    cfg_path = Path(path)
    if cfg_path.exists():
        return False
    try:
        cfg_path.touch()
    except OSError as e:
        raise ConfigError(source=str(path), line=None, reason=f"failed to create config: {e.strerror or e}") from e
    return True


def load_config(path: str | Path) -> BuildConfig:
    """Read and parse a config file. Unreadable files raise ConfigError."""
    source = str(path)
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        reason = getattr(e, "strerror", None) or str(e)
        raise ConfigError(source=source, line=None, reason=f"failed to read config: {reason}") from e
    return parse_config(text, source=source)
