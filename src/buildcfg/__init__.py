__version__ = "0.1.0"

from .engine import ExecutionEngine, run_plan
from .errors import BuildError, ConfigError, ResolutionError
from .model import BuildConfig, ExecutionResult, ExitStatus, RunOutcome, Task
from .parser import load_config, parse_config
from .resolver import resolve_command
from .shell import ShellAdapter, ShellKind

__all__ = [
    "ExecutionEngine",
    "run_plan",
    "BuildError",
    "ConfigError",
    "ResolutionError",
    "BuildConfig",
    "ExecutionResult",
    "ExitStatus",
    "RunOutcome",
    "Task",
    "load_config",
    "parse_config",
    "resolve_command",
    "ShellAdapter",
    "ShellKind",
]
