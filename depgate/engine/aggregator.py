"""Assemble the final result map of a run."""

from collections.abc import Iterable, Mapping

from depgate.engine.executor import RunState
from depgate.engine.graph import DependencyGraph
from depgate.models.domain import Outcome, OutcomeStatus, Resolved, Skipped


def aggregate_outcomes(
    graph: DependencyGraph,
    state: RunState,
    keys: Iterable[str],
) -> dict[str, Outcome]:
    """Collect outcomes for ``keys`` in the given order.

    Skip lists are recomputed against the settled table: a skipped task lists
    exactly those declared dependencies whose final outcome is not resolved,
    in declared order. Keys that were referenced but never defined count as
    unresolved.

    Args:
        graph: Graph the run executed
        state: Settled run state
        keys: Requested task keys, in caller order

    Returns:
        Mapping from each requested key to its outcome
    """
    results: dict[str, Outcome] = {}

    for key in keys:
        outcome = state.outcomes[key]
        if isinstance(outcome, Skipped):
            outcome = Skipped(
                tuple(
                    dependency
                    for dependency in graph[key].dependency_keys
                    if not isinstance(state.outcomes.get(dependency), Resolved)
                )
            )
        results[key] = outcome

    return results


def summarize_outcomes(results: Mapping[str, Outcome]) -> dict[str, int]:
    """Count outcomes by status.

    Returns:
        Dictionary mapping every status name to its count
    """
    summary = {status.value: 0 for status in OutcomeStatus}
    for outcome in results.values():
        summary[outcome.status.value] += 1
    return summary
