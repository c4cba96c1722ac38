"""Entry point that runs a task map end to end."""

import time
from collections.abc import Mapping
from typing import Any

import structlog

from depgate.config.settings import ExecutorSettings
from depgate.engine.aggregator import aggregate_outcomes, summarize_outcomes
from depgate.engine.executor import TaskExecutor
from depgate.engine.graph import build_graph
from depgate.models.domain import Outcome

log = structlog.get_logger(__name__)


async def run_tasks(
    tasks: Mapping[str, Any],
    settings: ExecutorSettings | None = None,
) -> dict[str, Outcome]:
    """Run every task in ``tasks`` once its dependencies resolve.

    Each call builds its own graph and run state. Task failures and
    dependency cycles are reported as outcomes, never raised.

    Args:
        tasks: Mapping from task key to a ``TaskDefinition`` (or a mapping
            with ``dependencies`` and ``body``/``task`` keys)
        settings: Optional executor settings

    Returns:
        Mapping from each key of ``tasks``, in the same order, to its outcome

    Raises:
        InvalidTaskError: If a key is empty or a definition is malformed

    Example:
        >>> results = await run_tasks({
        ...     "a": {"dependencies": [], "body": lambda: 4},
        ...     "b": {"dependencies": ["a"], "body": lambda a: a + 1},
        ... })
        >>> results["b"].to_dict()
        {'status': 'resolved', 'value': 5}
    """
    settings = settings or ExecutorSettings()
    graph = build_graph(tasks)

    log.info(
        "run_started",
        tasks=len(tasks),
        vertices=len(graph),
        cycles=len(graph.cycles),
        max_concurrency=settings.max_concurrency,
    )
    start_time = time.monotonic()

    state = await TaskExecutor(graph, max_concurrency=settings.max_concurrency).execute()
    results = aggregate_outcomes(graph, state, tasks.keys())

    log.info(
        "run_completed",
        duration=round(time.monotonic() - start_time, 3),
        invocations=state.invocations,
        **summarize_outcomes(results),
    )
    return results
