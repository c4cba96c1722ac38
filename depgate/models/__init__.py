"""Domain models for depgate."""

from depgate.models.domain import (
    Failed,
    Outcome,
    OutcomeStatus,
    Resolved,
    Skipped,
    TaskDefinition,
    TaskFailure,
)

__all__ = [
    "Failed",
    "Outcome",
    "OutcomeStatus",
    "Resolved",
    "Skipped",
    "TaskDefinition",
    "TaskFailure",
]
