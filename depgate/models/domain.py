"""
Domain models for depgate.

This module contains the task definition handed in by callers and the three
outcome shapes a task can settle into. Outcomes are immutable: once the
executor writes one it is never replaced.

Example:
    Describing two tasks where ``b`` consumes the value of ``a``::

        tasks = {
            "a": TaskDefinition(body=lambda: 4),
            "b": TaskDefinition(dependencies=["a"], body=lambda a: a * 2),
        }
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class OutcomeStatus(str, Enum):
    """Terminal status of a task after a run."""

    RESOLVED = "resolved"
    """Body ran and produced a value."""

    FAILED = "failed"
    """Body ran and raised."""

    SKIPPED = "skipped"
    """Body never ran because a dependency did not resolve."""

    def __str__(self) -> str:
        return self.value


class TaskFailure(Exception):
    """Raise from a task body to fail with an arbitrary payload.

    The executor records ``payload`` as the failure reason exactly as given,
    including ``None``. Any other exception is recorded as the reason itself.

    Example:
        >>> def body():
        ...     raise TaskFailure({"code": 3})
    """

    def __init__(self, payload: Any = None) -> None:
        self.payload = payload
        super().__init__(payload)


@dataclass(frozen=True)
class TaskDefinition:
    """A unit of work and the keys it depends on.

    Attributes:
        dependencies: Keys this task needs, in order. Resolved values are
            passed to ``body`` positionally in this order.
        body: Callable invoked with the dependency values. It may return a
            value or an awaitable.
    """

    dependencies: Sequence[str] = field(default_factory=tuple)
    body: Callable[..., Any] | None = None

    @classmethod
    def coerce(cls, raw: Any) -> "TaskDefinition":
        """Build a definition from a ``TaskDefinition`` or a plain mapping.

        Mappings may name the callable ``body`` or ``task``.
        """
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, Mapping):
            body = raw.get("body")
            if body is None:
                body = raw.get("task")
            return cls(dependencies=raw.get("dependencies") or (), body=body)
        raise TypeError(f"Unsupported task definition type: {type(raw).__name__}")


@dataclass(frozen=True)
class Resolved:
    """Outcome of a body that returned normally."""

    value: Any = None
    status: OutcomeStatus = field(default=OutcomeStatus.RESOLVED, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status.value, "value": self.value}


@dataclass(frozen=True)
class Failed:
    """Outcome of a body that raised. ``reason`` is the untouched payload."""

    reason: Any = None
    status: OutcomeStatus = field(default=OutcomeStatus.FAILED, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status.value, "reason": self.reason}


@dataclass(frozen=True)
class Skipped:
    """Outcome of a task whose body never ran.

    Attributes:
        unresolved_dependencies: Declared dependencies that did not resolve,
            in declared order
    """

    unresolved_dependencies: tuple[str, ...] = ()
    status: OutcomeStatus = field(default=OutcomeStatus.SKIPPED, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "unresolved_dependencies": list(self.unresolved_dependencies),
        }


Outcome = Resolved | Failed | Skipped
