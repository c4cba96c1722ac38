"""Pytest configuration and shared fixtures."""

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
import structlog

from depgate.models.domain import TaskDefinition


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Undo any logging configuration a test (or CLI invocation) applied."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def call_counts() -> dict[str, int]:
    """Number of times each task body was invoked."""
    return {}


@pytest.fixture
def spy_on_task_calls(call_counts: dict[str, int]) -> Callable[[dict[str, Any]], dict[str, TaskDefinition]]:
    """Wrap every task body so invocations are counted in ``call_counts``."""

    def wrap(tasks: dict[str, Any]) -> dict[str, TaskDefinition]:
        wrapped: dict[str, TaskDefinition] = {}
        for key, raw in tasks.items():
            definition = TaskDefinition.coerce(raw)

            def body(*args: Any, _key: str = key, _body: Any = definition.body) -> Any:
                call_counts[_key] = call_counts.get(_key, 0) + 1
                return _body(*args)

            wrapped[key] = TaskDefinition(dependencies=definition.dependencies, body=body)
        return wrapped

    return wrap


@pytest.fixture
def write_task_file(tmp_path: Path) -> Callable[[str], Path]:
    """Write YAML content to a task file and return its path."""

    def write(content: str, name: str = "tasks.yaml") -> Path:
        path = tmp_path / name
        path.write_text(content)
        return path

    return write
