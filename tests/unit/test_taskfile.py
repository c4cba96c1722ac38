"""Tests for command-backed task files."""

from pathlib import Path

import pytest

from depgate import Failed, Resolved, Skipped, run_tasks
from depgate.config.settings import CommandConfig
from depgate.exceptions import CommandFailedError, TaskFileError
from depgate.taskfile import CommandTask, CommandTaskSpec, load_task_file


class TestLoadTaskFile:
    """Test parsing and validation of task files."""

    def test_load_preserves_order_and_dependencies(self, write_task_file):
        path = write_task_file(
            "tasks:\n"
            "  second:\n"
            "    command: echo two\n"
            "    dependencies: [first]\n"
            "  first:\n"
            "    command: [echo, one]\n"
        )

        tasks = load_task_file(path)

        assert list(tasks) == ["second", "first"]
        assert tasks["second"].dependencies == ("first",)
        assert isinstance(tasks["first"].body, CommandTask)

    def test_single_string_dependency(self, write_task_file):
        path = write_task_file("tasks:\n  a:\n    command: 'true'\n    dependencies: b\n")

        assert load_task_file(path)["a"].dependencies == ("b",)

    def test_missing_file(self, tmp_path):
        with pytest.raises(TaskFileError, match="Cannot read"):
            load_task_file(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, write_task_file):
        path = write_task_file("tasks: [unclosed")

        with pytest.raises(TaskFileError, match="Invalid YAML"):
            load_task_file(path)

    def test_not_a_mapping(self, write_task_file):
        path = write_task_file("- a\n- b\n")

        with pytest.raises(TaskFileError, match="YAML object"):
            load_task_file(path)

    def test_empty_command_rejected(self, write_task_file):
        path = write_task_file("tasks:\n  a:\n    command: '  '\n")

        with pytest.raises(TaskFileError, match="Invalid task file"):
            load_task_file(path)

    def test_missing_command_rejected(self, write_task_file):
        path = write_task_file("tasks:\n  a:\n    dependencies: []\n")

        with pytest.raises(TaskFileError):
            load_task_file(path)


class TestCommandTask:
    """Test command execution as a task body."""

    @pytest.mark.asyncio
    async def test_shell_command_resolves_to_stdout(self):
        task = CommandTask("a", CommandTaskSpec(command="echo hello"), CommandConfig())

        assert await task() == "hello"

    @pytest.mark.asyncio
    async def test_dependency_values_appended_as_arguments(self):
        task = CommandTask("a", CommandTaskSpec(command=["echo", "got"]), CommandConfig())

        assert await task("x y", 3) == "got x y 3"

    @pytest.mark.asyncio
    async def test_shell_arguments_are_quoted(self):
        task = CommandTask("a", CommandTaskSpec(command="printf '%s|'"), CommandConfig())

        assert await task("two words", "$HOME") == "two words|$HOME|"

    @pytest.mark.asyncio
    async def test_non_shell_string_is_split(self):
        task = CommandTask("a", CommandTaskSpec(command="echo 'a b'"), CommandConfig(shell=False))

        assert await task("c") == "a b c"

    @pytest.mark.asyncio
    async def test_non_zero_exit_raises(self):
        task = CommandTask("a", CommandTaskSpec(command="echo bad >&2; exit 4"), CommandConfig())

        with pytest.raises(CommandFailedError) as exc_info:
            await task()

        assert exc_info.value.returncode == 4
        assert exc_info.value.stderr.strip() == "bad"

    @pytest.mark.asyncio
    async def test_cwd_override(self, tmp_path):
        spec = CommandTaskSpec(command="pwd", cwd=str(tmp_path))
        task = CommandTask("a", spec, CommandConfig(cwd="/"))

        assert Path(await task()).resolve() == tmp_path.resolve()


@pytest.mark.asyncio
async def test_task_file_run_end_to_end(write_task_file):
    """Command outputs flow into dependents, and failures cascade."""
    path = write_task_file(
        "tasks:\n"
        "  version:\n"
        "    command: echo 1.2.3\n"
        "  tag:\n"
        "    command: echo v\n"
        "    dependencies: [version]\n"
        "  broken:\n"
        "    command: exit 1\n"
        "  publish:\n"
        "    command: echo publishing\n"
        "    dependencies: [tag, broken]\n"
    )

    results = await run_tasks(load_task_file(path))

    assert results["version"] == Resolved("1.2.3")
    assert results["tag"] == Resolved("v 1.2.3")
    assert isinstance(results["broken"], Failed)
    assert isinstance(results["broken"].reason, CommandFailedError)
    assert results["publish"] == Skipped(("broken",))
