"""
YAML task files whose task bodies are shell commands.

A task file looks like::

    tasks:
      fetch:
        command: curl -s https://example.com/version
      build:
        command: ["make", "build"]
        dependencies: [fetch]

Each command receives the stripped stdout of its dependencies as extra
arguments, in declared order, and resolves to its own stripped stdout. A
non-zero exit status fails the task with ``CommandFailedError``.
"""

from __future__ import annotations

import shlex
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from depgate.config.settings import CommandConfig
from depgate.exceptions import CommandFailedError, TaskFileError
from depgate.models.domain import TaskDefinition
from depgate.utils.async_subprocess import run_command, run_shell_command

log = structlog.get_logger(__name__)


class CommandTaskSpec(BaseModel):
    """One task entry of a task file."""

    command: str | list[str] = Field(..., description="Command line or argv list")
    dependencies: list[str] = Field(default_factory=list, description="Keys this task depends on")
    timeout: float | None = Field(default=None, gt=0, description="Overrides the configured timeout")
    cwd: str | None = Field(default=None, description="Overrides the configured working directory")

    @field_validator("dependencies", mode="before")
    @classmethod
    def _single_dependency(cls, value: object) -> object:
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("command")
    @classmethod
    def _non_empty_command(cls, value: str | list[str]) -> str | list[str]:
        if not value or (isinstance(value, str) and not value.strip()):
            raise ValueError("command must not be empty")
        return value


class TaskFileSpec(BaseModel):
    """Top-level task file document."""

    tasks: dict[str, CommandTaskSpec] = Field(default_factory=dict)


class CommandTask:
    """Task body that runs an external command.

    Attributes:
        key: Task key, used in error messages
        spec: The task file entry
        config: Command defaults from settings
    """

    def __init__(self, key: str, spec: CommandTaskSpec, config: CommandConfig) -> None:
        self.key = key
        self.spec = spec
        self.config = config

    async def __call__(self, *dependency_values: object) -> str:
        extra = [str(value) for value in dependency_values]
        timeout = self.spec.timeout or self.config.timeout
        cwd = self.spec.cwd or self.config.cwd

        log.info("command_started", task=self.key)

        if isinstance(self.spec.command, list):
            stdout, stderr, code = await run_command(
                *self.spec.command, *extra, cwd=cwd, check=False, timeout=timeout
            )
        elif self.config.shell:
            command = " ".join([self.spec.command, *(shlex.quote(value) for value in extra)])
            stdout, stderr, code = await run_shell_command(command, cwd=cwd, check=False, timeout=timeout)
        else:
            stdout, stderr, code = await run_command(
                *shlex.split(self.spec.command), *extra, cwd=cwd, check=False, timeout=timeout
            )

        if code != 0:
            raise CommandFailedError(self.key, code, stderr)
        return stdout.strip()


def load_task_file(path: str | Path, config: CommandConfig | None = None) -> dict[str, TaskDefinition]:
    """Load a task file into a task map for ``run_tasks``.

    Args:
        path: Path to the YAML task file
        config: Command defaults, taken from settings

    Returns:
        Task map in file order

    Raises:
        TaskFileError: If the file is missing, not valid YAML, or fails validation
    """
    config = config or CommandConfig()
    task_path = Path(path)

    try:
        content = task_path.read_text()
    except OSError as e:
        raise TaskFileError(f"Cannot read task file: {task_path}") from e

    try:
        document = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise TaskFileError(f"Invalid YAML syntax in {task_path}: {e}") from e

    if not isinstance(document, dict):
        raise TaskFileError("Task file must be a YAML object with a 'tasks' key")

    try:
        spec = TaskFileSpec.model_validate(document)
    except ValidationError as e:
        raise TaskFileError(f"Invalid task file {task_path}: {e}") from e

    log.debug("task_file_loaded", path=str(task_path), tasks=len(spec.tasks))
    return {
        key: TaskDefinition(dependencies=tuple(entry.dependencies), body=CommandTask(key, entry, config))
        for key, entry in spec.tasks.items()
    }
