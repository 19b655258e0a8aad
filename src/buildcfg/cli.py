# cli.py
from __future__ import annotations

import sys

import click

from buildcfg import __version__
from buildcfg.engine import run_plan
from buildcfg.errors import ConfigError, ResolutionError
from buildcfg.model import EXIT_CONFIG_ERROR, BuildConfig
from buildcfg.parser import ensure_config, load_config
from buildcfg.resolver import resolve_command
from buildcfg.ui.console import Console, set_console


def _list_tasks(console: Console, config: BuildConfig) -> None:
    rows = []
    for name, task in config.tasks.items():
        try:
            command = resolve_command(task.command, config.variables, task=name)
        except ResolutionError as e:
            command = f"<undefined variable '${e.variable}'>"
        rows.append((name, command))
    console.print_task_list(rows)


@click.command()
@click.option(
    "-f",
    "--file",
    "config_file",
    default="build.cfg",
    envvar="BUILDCFG_FILE",
    show_default=True,
    help="Build config to read (created empty if missing)",
)
@click.option("--alt-shell", is_flag=True, default=False, help="Run every task with the alternate shell")
@click.option(
    "--alt-shell-path",
    default=None,
    envvar="BUILDCFG_ALT_SHELL",
    help="Interpreter used by --alt-shell (defaults to bash, powershell on Windows)",
)
@click.option("-c", "--concurrent", is_flag=True, default=False, help="Start all tasks at once instead of one after another")
@click.option(
    "--workers",
    default=None,
    envvar="BUILDCFG_WORKERS",
    type=click.IntRange(min=1),
    help="Max parallel tasks with --concurrent",
)
@click.option("--list", "list_only", is_flag=True, default=False, help="Print tasks with resolved commands and exit")
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show resolved commands and stack traces)",
)
@click.version_option(version=__version__, prog_name="buildcfg")
def cli(config_file, alt_shell, alt_shell_path, concurrent, workers, list_only, debug):
    """Run the tasks listed in a build config."""
    console = Console(debug=debug)
    set_console(console)

    console.print_info(f"reading {config_file}...")
    try:
        if ensure_config(config_file):
            console.print_info(f"{config_file} created!")
        config = load_config(config_file)
    except ConfigError as e:
        console.print_error(str(e))
        sys.exit(EXIT_CONFIG_ERROR)

    console.print_info(f"found {len(config.variables)} var(s) and {len(config.tasks)} task(s)")
    for name in config.unused_tasks():
        console.print_debug(f"task({name}) is never executed")

    if list_only:
        _list_tasks(console, config)
        return

    if not config.plan:
        console.print_info("execute task is empty")
        return

    try:
        outcome = run_plan(
            config,
            alternate_shell=alt_shell,
            shell_executable=alt_shell_path,
            concurrent=concurrent,
            console=console,
            max_workers=workers,
        )
    except KeyboardInterrupt:
        console.print_info("interrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    sys.exit(outcome.exit_code)


if __name__ == "__main__":
    cli()
