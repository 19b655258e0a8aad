"""End-to-end tests for the buildcfg command."""

import os
from pathlib import Path

import pytest
from click.testing import CliRunner

from buildcfg.cli import cli
from buildcfg.model import EXIT_CONFIG_ERROR

pytestmark = pytest.mark.skipif(os.name == "nt", reason="POSIX shell semantics")


CANONICAL = """\
$sources = test/main.txt
$output = test/test.out

[build]
command = cp $sources $output

[run]
command = cat $output

[execute]
build
run
"""


@pytest.fixture
def runner():
    return CliRunner()


def _write(text, name="build.cfg"):
    Path(name).write_text(text)


class TestRun:
    def test_canonical_example(self, runner):
        with runner.isolated_filesystem():
            Path("test").mkdir()
            Path("test/main.txt").write_text("Hello, World!\n")
            _write(CANONICAL)

            result = runner.invoke(cli, [])

            assert result.exit_code == 0
            assert result.output.splitlines() == [
                "info: reading build.cfg...",
                "info: found 2 var(s) and 2 task(s)",
                "task(build): finished",
                "task(run): finished",
                "Hello, World!",
            ]

    def test_task_failure_exit_code(self, runner):
        with runner.isolated_filesystem():
            _write("[bad]\ncommand = exit 9\n[never]\ncommand = touch never\n[execute]\nbad\nnever\n")
            result = runner.invoke(cli, [])
            assert result.exit_code == 9
            assert "task(bad): failed (exit code 9)" in result.output
            assert "task(never)" not in result.output
            assert not Path("never").exists()

    def test_concurrent_flag(self, runner):
        with runner.isolated_filesystem():
            _write("[bad]\ncommand = exit 9\n[slow]\ncommand = sleep 0.2 && touch done\n[execute]\nbad\nslow\n")
            result = runner.invoke(cli, ["--concurrent"])
            assert result.exit_code == 9
            assert Path("done").exists()
            assert "task(slow): finished" in result.output

    def test_undefined_variable(self, runner):
        with runner.isolated_filesystem():
            _write("[build]\ncommand = g++ $typo\n[execute]\nbuild\n")
            result = runner.invoke(cli, [])
            assert result.exit_code == 1
            assert "task(build): undefined variable '$typo'" in result.output

    def test_alternate_shell_flag(self, runner, tmp_path):
        with runner.isolated_filesystem():
            _write("[a]\ncommand = true\n[execute]\na\n")
            missing = str(tmp_path / "nope-shell")
            result = runner.invoke(cli, ["--alt-shell", "--alt-shell-path", missing])
            assert result.exit_code == 127
            assert "task(a): failed to execute (" in result.output

    def test_flags_are_order_independent(self, runner):
        with runner.isolated_filesystem():
            _write("[a]\ncommand = true\n[execute]\na\n")
            first = runner.invoke(cli, ["-c", "--alt-shell", "--alt-shell-path", "/bin/sh"])
            second = runner.invoke(cli, ["--alt-shell-path", "/bin/sh", "--alt-shell", "-c"])
            assert first.exit_code == second.exit_code == 0
            assert first.output == second.output

    def test_custom_file(self, runner):
        with runner.isolated_filesystem():
            _write("[a]\ncommand = true\n[execute]\na\n", name="other.cfg")
            result = runner.invoke(cli, ["--file", "other.cfg"])
            assert result.exit_code == 0
            assert result.output.splitlines()[0] == "info: reading other.cfg..."


class TestConfigHandling:
    def test_parse_error_exit_code(self, runner):
        with runner.isolated_filesystem():
            _write("[a]\ncommand = touch ran\nbogus = 1\n[execute]\na\n")
            result = runner.invoke(cli, [])
            assert result.exit_code == EXIT_CONFIG_ERROR
            assert "error: build.cfg:3: unknown field 'bogus' in task 'a'" in result.output
            assert not Path("ran").exists()

    def test_duplicate_task_runs_nothing(self, runner):
        with runner.isolated_filesystem():
            _write("[a]\ncommand = touch ran\n[a]\ncommand = true\n[execute]\na\n")
            result = runner.invoke(cli, [])
            assert result.exit_code == EXIT_CONFIG_ERROR
            assert "info: found" not in result.output
            assert not Path("ran").exists()

    def test_missing_config_is_created(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, [])
            assert result.exit_code == 0
            assert result.output.splitlines() == [
                "info: reading build.cfg...",
                "info: build.cfg created!",
                "info: found 0 var(s) and 0 task(s)",
                "info: execute task is empty",
            ]
            assert Path("build.cfg").exists()

    def test_list_tasks(self, runner):
        with runner.isolated_filesystem():
            _write("$cc = gcc\n[build]\ncommand = $cc main.c\n[odd]\ncommand = echo $nope\n")
            result = runner.invoke(cli, ["--list"])
            assert result.exit_code == 0
            lines = result.output.splitlines()
            assert "build : gcc main.c" in lines
            assert "odd   : <undefined variable '$nope'>" in lines

    def test_debug_reports_unused_tasks(self, runner):
        with runner.isolated_filesystem():
            _write("[a]\ncommand = true\n[b]\ncommand = true\n[execute]\na\n")
            result = runner.invoke(cli, ["--debug"])
            assert result.exit_code == 0
            assert "[DEBUG] task(b) is never executed" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "buildcfg" in result.output


class TestEnvironment:
    def test_config_file_from_env(self, runner):
        with runner.isolated_filesystem():
            _write("[a]\ncommand = true\n[execute]\na\n", name="env.cfg")
            result = runner.invoke(cli, [], env={"BUILDCFG_FILE": "env.cfg"})
            assert result.exit_code == 0
            assert result.output.splitlines()[0] == "info: reading env.cfg..."

    def test_invalid_workers_is_a_usage_error(self, runner):
        with runner.isolated_filesystem():
            _write("[a]\ncommand = true\n[execute]\na\n")
            result = runner.invoke(cli, ["-c"], env={"BUILDCFG_WORKERS": "abc"})
            assert result.exit_code == 2
            assert "Invalid value" in result.output
            assert "task(a)" not in result.output

    def test_workers_from_env(self, runner):
        with runner.isolated_filesystem():
            _write("[a]\ncommand = true\n[b]\ncommand = true\n[execute]\na\nb\n")
            result = runner.invoke(cli, ["-c"], env={"BUILDCFG_WORKERS": "1"})
            assert result.exit_code == 0
            assert "task(a): finished" in result.output
            assert "task(b): finished" in result.output


class TestUnexpectedErrors:
    def _boom(self, *args, **kwargs):
        raise RuntimeError("engine exploded")

    def test_reported_in_one_line(self, runner, monkeypatch):
        monkeypatch.setattr("buildcfg.cli.run_plan", self._boom)
        with runner.isolated_filesystem():
            _write("[a]\ncommand = true\n[execute]\na\n")
            result = runner.invoke(cli, [])
            assert result.exit_code == 1
            assert "error: engine exploded" in result.output
            assert "Traceback" not in result.output

    def test_traceback_with_debug(self, runner, monkeypatch):
        monkeypatch.setattr("buildcfg.cli.run_plan", self._boom)
        with runner.isolated_filesystem():
            _write("[a]\ncommand = true\n[execute]\na\n")
            result = runner.invoke(cli, ["--debug"])
            assert result.exit_code == 1
            assert "Traceback (most recent call last):" in result.output
            assert "RuntimeError: engine exploded" in result.output
