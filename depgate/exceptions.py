"""Custom exception hierarchy for depgate.

Exception Hierarchy:
    DepgateError (base)
    ├── ConfigurationError
    ├── InvalidTaskError
    ├── CycleDetectedError
    ├── OutcomeAlreadySettledError
    └── TaskFileError
        └── CommandFailedError

Only ``InvalidTaskError`` ever escapes ``run_tasks``. Task body failures and
dependency cycles are recorded as outcomes instead of being raised.

Example Usage:
    >>> from depgate.exceptions import ConfigurationError
    >>> try:
    ...     load_config(path)
    ... except FileNotFoundError as e:
    ...     raise ConfigurationError(f"Config file not found: {path}") from e
"""

from collections.abc import Sequence


class DepgateError(Exception):
    """Base exception for all depgate errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(DepgateError):
    """Configuration-related errors.

    Raised when configuration files are invalid, missing, or contain
    incompatible settings.
    """

    pass


class InvalidTaskError(DepgateError):
    """A task map is malformed.

    Raised while the graph is built, before any task body runs. This is the
    only error class that aborts a whole run.

    Attributes:
        key: The offending task key, if one could be identified
    """

    def __init__(self, message: str, key: object | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            key: The offending task key
        """
        self.key = key
        super().__init__(message)


class CycleDetectedError(DepgateError):
    """A dependency edge would close a cycle.

    Raised by ``DependencyGraph.add_dependency_edge``. The graph build step
    catches it and dooms the dependent vertex, so it never reaches callers
    of ``run_tasks``.

    Attributes:
        dependent: Key of the vertex that declared the dependency
        dependency: Key of the declared dependency
        path: Keys on the cycle, starting and ending at ``dependent``
    """

    def __init__(self, dependent: str, dependency: str, path: Sequence[str]) -> None:
        """Initialize exception.

        Args:
            dependent: Vertex declaring the dependency
            dependency: The dependency that would close the cycle
            path: Keys participating in the cycle
        """
        self.dependent = dependent
        self.dependency = dependency
        self.path = tuple(path)
        super().__init__("cycle detected: " + " <- ".join(self.path))


class OutcomeAlreadySettledError(DepgateError):
    """An outcome was written twice for the same vertex in one run."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Outcome for task '{key}' is already settled")


class TaskFileError(DepgateError):
    """Task file could not be loaded or validated."""

    pass


class CommandFailedError(TaskFileError):
    """A command-backed task exited with a non-zero status.

    Attributes:
        key: Task key the command belongs to
        returncode: Process exit code
        stderr: Captured standard error
    """

    def __init__(self, key: str, returncode: int, stderr: str = "") -> None:
        """Initialize exception.

        Args:
            key: Task key
            returncode: Process exit code
            stderr: Captured standard error
        """
        self.key = key
        self.returncode = returncode
        self.stderr = stderr

        full_message = f"Command for task '{key}' exited with status {returncode}"
        if stderr.strip():
            full_message = f"{full_message}: {stderr.strip()}"
        super().__init__(full_message)
