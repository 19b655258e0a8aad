# engine.py
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional, Tuple

from .errors import ResolutionError
from .model import BuildConfig, ExecutionResult, ExitStatus, RunOutcome
from .resolver import resolve_command
from .shell import ShellAdapter
from .ui.console import Console, get_console


class ExecutionEngine:
    """
    Runs the execution plan of a parsed config.

    Sequential mode (default) runs entries one at a time in plan order and
    stops at the first failure. Concurrent mode submits every entry at
    once, reports results as they complete and waits for all of them;
    a failure never cancels siblings.
    """

    def __init__(
        self,
        config: BuildConfig,
        shell: ShellAdapter,
        *,
        concurrent: bool = False,
        console: Optional[Console] = None,
        max_workers: Optional[int] = None,
    ):
        self.config = config
        self.shell = shell
        self.concurrent = concurrent
        self.console = console or get_console()
        self.max_workers = max_workers

    # ------------------------------------------------------------------
    # Execution primitives
    # ------------------------------------------------------------------

    def _attempt(self, name: str) -> Tuple[Optional[str], ExitStatus]:
        """Resolve and run one task. Never raises for task-level failures."""
        task = self.config.tasks[name]
        try:
            command = resolve_command(task.command, self.config.variables, task=name)
        except ResolutionError as e:
            return None, ExitStatus.unresolved(f"undefined variable '${e.variable}'")

        self.console.print_debug(f"task({name}): {command}")
        return command, self.shell.run(command)

    def _record(self, outcome: RunOutcome, index: int, name: str, command: Optional[str], status: ExitStatus) -> ExecutionResult:
        result = ExecutionResult(
            task=name,
            index=index,
            command=command,
            status=status,
            order=len(outcome.results),
        )
        outcome.results.append(result)
        self.console.print_task_result(result)
        return result

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def _run_sequential(self) -> RunOutcome:
        outcome = RunOutcome()
        for index, name in enumerate(self.config.plan):
            command, status = self._attempt(name)
            result = self._record(outcome, index, name, command, status)
            if not result.ok:
                remaining = len(self.config.plan) - index - 1
                if remaining:
                    self.console.print_debug(f"stopping: {remaining} task(s) not started")
                break
        return outcome

    def _run_concurrent(self) -> RunOutcome:
        outcome = RunOutcome()
        plan = self.config.plan
        if not plan:
            return outcome

        workers = self.max_workers or len(plan)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {
                pool.submit(self._attempt, name): (index, name)
                for index, name in enumerate(plan)
            }
            for fut in as_completed(futures):
                index, name = futures[fut]
                command, status = fut.result()
                self._record(outcome, index, name, command, status)

        return outcome

    def run(self) -> RunOutcome:
        mode = "concurrent" if self.concurrent else "sequential"
        self.console.print_debug(
            f"running {len(self.config.plan)} task(s), {mode}, shell={self.shell.interpreter}"
        )
        if self.concurrent:
            return self._run_concurrent()
        return self._run_sequential()


def run_plan(
    config: BuildConfig,
    *,
    alternate_shell: bool = False,
    shell_executable: Optional[str] = None,
    concurrent: bool = False,
    console: Optional[Console] = None,
    max_workers: Optional[int] = None,
) -> RunOutcome:
    """Select the shell once for the whole run, then execute the plan."""
    shell = ShellAdapter.select(alternate=alternate_shell, executable=shell_executable)
    engine = ExecutionEngine(
        config,
        shell,
        concurrent=concurrent,
        console=console,
        max_workers=max_workers,
    )
    return engine.run()
