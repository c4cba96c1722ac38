"""Unit tests for the depgate CLI.

This module tests:
- The run command (text and JSON output, exit codes)
- The validate command
- Configuration and task file error handling
"""

import json

import pytest
from click.testing import CliRunner

from depgate.main import EXIT_SUCCESS, EXIT_TASKS_INCOMPLETE, EXIT_USAGE_ERROR, cli


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def passing_task_file(write_task_file):
    return write_task_file(
        "tasks:\n"
        "  first:\n"
        "    command: echo one\n"
        "  second:\n"
        "    command: echo two\n"
        "    dependencies: [first]\n"
    )


@pytest.fixture
def failing_task_file(write_task_file):
    return write_task_file(
        "tasks:\n"
        "  ok:\n"
        "    command: echo fine\n"
        "  broken:\n"
        "    command: exit 3\n"
        "  after:\n"
        "    command: echo never\n"
        "    dependencies: [broken, ok]\n"
        "  loop:\n"
        "    command: echo loop\n"
        "    dependencies: [loop]\n"
    )


class TestRunCommand:
    """Test `depgate run`."""

    def test_all_resolved(self, cli_runner, passing_task_file):
        result = cli_runner.invoke(cli, ["run", str(passing_task_file)])

        assert result.exit_code == EXIT_SUCCESS
        assert "[RESOLVED] first: one" in result.stdout
        assert "[RESOLVED] second: two one" in result.stdout
        assert "2 resolved, 0 failed, 0 skipped" in result.stdout

    def test_failures_set_exit_code(self, cli_runner, failing_task_file):
        result = cli_runner.invoke(cli, ["run", str(failing_task_file)])

        assert result.exit_code == EXIT_TASKS_INCOMPLETE
        assert "[FAILED] broken: Command for task 'broken' exited with status 3" in result.stdout
        assert "[SKIPPED] after: unresolved: broken" in result.stdout
        assert "[SKIPPED] loop: unresolved: loop" in result.stdout

    def test_json_output(self, cli_runner, failing_task_file):
        result = cli_runner.invoke(cli, ["--log-level", "CRITICAL", "run", str(failing_task_file), "--json"])

        document = json.loads(result.stdout)
        assert list(document) == ["ok", "broken", "after", "loop"]
        assert document["ok"] == {"status": "resolved", "value": "fine"}
        assert document["broken"]["status"] == "failed"
        assert "status 3" in document["broken"]["reason"]
        assert document["after"] == {"status": "skipped", "unresolved_dependencies": ["broken"]}

    def test_invalid_task_file(self, cli_runner, write_task_file):
        path = write_task_file("tasks:\n  a: {}\n")

        result = cli_runner.invoke(cli, ["run", str(path)])

        assert result.exit_code == EXIT_USAGE_ERROR
        assert "Error: Invalid task file" in result.output

    def test_missing_task_file(self, cli_runner, tmp_path):
        result = cli_runner.invoke(cli, ["run", str(tmp_path / "missing.yaml")])

        assert result.exit_code != EXIT_SUCCESS


class TestValidateCommand:
    """Test `depgate validate`."""

    def test_valid_graph(self, cli_runner, passing_task_file):
        result = cli_runner.invoke(cli, ["validate", str(passing_task_file)])

        assert result.exit_code == EXIT_SUCCESS
        assert "Execution order: first -> second" in result.stdout

    def test_reports_cycles_and_undefined(self, cli_runner, write_task_file):
        path = write_task_file(
            "tasks:\n"
            "  a:\n"
            "    command: 'true'\n"
            "    dependencies: [b]\n"
            "  b:\n"
            "    command: 'true'\n"
            "    dependencies: [a, ghost]\n"
        )

        result = cli_runner.invoke(cli, ["validate", str(path)])

        assert result.exit_code == EXIT_TASKS_INCOMPLETE
        assert "undefined dependency: ghost" in result.stdout
        assert "cycle detected: b <- a <- b" in result.stdout


class TestConfigOption:
    """Test the global --config option."""

    def test_config_file_applied(self, cli_runner, passing_task_file, tmp_path):
        config = tmp_path / "depgate.yaml"
        config.write_text("logging:\n  level: ERROR\n  format: console\nexecutor:\n  max_concurrency: 1\n")

        result = cli_runner.invoke(cli, ["--config", str(config), "run", str(passing_task_file)])

        assert result.exit_code == EXIT_SUCCESS

    def test_missing_config_file(self, cli_runner, passing_task_file, tmp_path):
        result = cli_runner.invoke(cli, ["--config", str(tmp_path / "nope.yaml"), "run", str(passing_task_file)])

        assert result.exit_code == EXIT_USAGE_ERROR
        assert "Configuration file not found" in result.output
