"""depgate: dependency-gated concurrent task execution."""

from depgate.engine.runner import run_tasks
from depgate.models.domain import (
    Failed,
    Outcome,
    OutcomeStatus,
    Resolved,
    Skipped,
    TaskDefinition,
    TaskFailure,
)

__version__ = "0.1.0"

__all__ = [
    "Failed",
    "Outcome",
    "OutcomeStatus",
    "Resolved",
    "Skipped",
    "TaskDefinition",
    "TaskFailure",
    "run_tasks",
]
