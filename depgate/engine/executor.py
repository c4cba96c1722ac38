"""
Concurrent, dependency-gated execution of a ``DependencyGraph``.

Every vertex gets its own asyncio task (a "driver") and its own completion
future. A driver awaits only the futures of its own declared dependencies,
then decides whether to run its body or skip it, and finally settles its own
future. Dependents waiting on that future wake up as soon as it settles.
There is no polling loop and no round-based barrier. Independent bodies run
concurrently on the event loop.

Execution Rules:
    1. Undefined (referenced-only) and doomed vertices settle as skipped
       immediately.
    2. Otherwise the driver awaits each declared dependency in order.
    3. If every dependency resolved, the body is called with their values as
       positional arguments. Awaitable results are awaited.
    4. If any dependency did not resolve, the body is never called.

Failure Handling:
    - ``TaskFailure(payload)`` records ``payload`` as the failure reason
    - Any other ``Exception`` is recorded as the reason itself
    - Cancellation and other ``BaseException``s propagate and cancel the run

All mutable state lives in a ``RunState`` created per ``execute()`` call, so
concurrent or successive runs never share outcomes.
"""

import asyncio
import contextlib
import inspect
from dataclasses import dataclass, field
from typing import Any

import structlog

from depgate.engine.graph import DependencyGraph, Vertex
from depgate.exceptions import InvalidTaskError, OutcomeAlreadySettledError
from depgate.models.domain import Failed, Outcome, Resolved, Skipped, TaskFailure

log = structlog.get_logger(__name__)


@dataclass
class RunState:
    """Outcome table and completion futures owned by a single run.

    Attributes:
        futures: One completion future per vertex key
        outcomes: Settled outcomes, written once per key
        invocations: Number of body invocations performed in this run
    """

    futures: dict[str, asyncio.Future[Outcome]] = field(default_factory=dict)
    outcomes: dict[str, Outcome] = field(default_factory=dict)
    invocations: int = 0

    def settle(self, key: str, outcome: Outcome) -> None:
        """Write the terminal outcome of ``key`` and wake its dependents.

        Raises:
            OutcomeAlreadySettledError: If ``key`` already has an outcome
        """
        if key in self.outcomes:
            raise OutcomeAlreadySettledError(key)
        self.outcomes[key] = outcome
        self.futures[key].set_result(outcome)


class TaskExecutor:
    """Drive every vertex of a graph to a terminal outcome.

    Attributes:
        graph: Graph to execute
        max_concurrency: Upper bound on bodies running at once, or None for
            no bound. Skip decisions never count against the bound.

    Example:
        >>> executor = TaskExecutor(build_graph(tasks))
        >>> state = await executor.execute()
        >>> state.outcomes["a"]
        Resolved(value=4, status=<OutcomeStatus.RESOLVED: 'resolved'>)
    """

    def __init__(self, graph: DependencyGraph, max_concurrency: int | None = None) -> None:
        """Initialize the executor.

        Args:
            graph: Graph to execute
            max_concurrency: Optional cap on concurrently running bodies
        """
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.graph = graph
        self.max_concurrency = max_concurrency

    async def execute(self) -> RunState:
        """Run the graph and return the settled run state.

        Returns:
            RunState with one outcome per vertex
        """
        loop = asyncio.get_running_loop()
        state = RunState(futures={vertex.key: loop.create_future() for vertex in self.graph})
        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None

        drivers = [
            asyncio.create_task(self._drive(vertex, state, semaphore), name=f"depgate:{vertex.key}")
            for vertex in self.graph
        ]

        try:
            await asyncio.gather(*drivers)
        except BaseException:
            for driver in drivers:
                driver.cancel()
            await asyncio.gather(*drivers, return_exceptions=True)
            raise

        return state

    async def _drive(
        self,
        vertex: Vertex,
        state: RunState,
        semaphore: asyncio.Semaphore | None,
    ) -> None:
        if not vertex.defined:
            outcome: Outcome = Skipped()
        elif vertex.doomed:
            # The aggregator narrows this to the dependencies that stayed unresolved
            outcome = Skipped(vertex.dependency_keys)
            log.info("task_skipped", task=vertex.key, reason="dependency_cycle")
        else:
            outcome = await self._evaluate(vertex, state, semaphore)

        state.settle(vertex.key, outcome)

    async def _evaluate(
        self,
        vertex: Vertex,
        state: RunState,
        semaphore: asyncio.Semaphore | None,
    ) -> Outcome:
        values: list[Any] = []
        unresolved: list[str] = []

        for dependency in vertex.dependency_keys:
            dependency_outcome = await state.futures[dependency]
            if isinstance(dependency_outcome, Resolved):
                values.append(dependency_outcome.value)
            else:
                unresolved.append(dependency)

        if unresolved:
            log.info("task_skipped", task=vertex.key, unresolved_dependencies=unresolved)
            return Skipped(tuple(unresolved))

        async with semaphore or contextlib.nullcontext():
            return await self._invoke(vertex, values, state)

    async def _invoke(self, vertex: Vertex, values: list[Any], state: RunState) -> Outcome:
        body = vertex.body
        if not callable(body):
            error = InvalidTaskError(f"Task '{vertex.key}' has no callable body", key=vertex.key)
            log.error("task_failed", task=vertex.key, error=error.message)
            return Failed(error)

        state.invocations += 1
        log.debug("task_started", task=vertex.key, arguments=len(values))

        try:
            result = body(*values)
            if inspect.isawaitable(result):
                result = await result
        except TaskFailure as e:
            log.error("task_failed", task=vertex.key, error=repr(e.payload))
            return Failed(e.payload)
        except Exception as e:
            log.error("task_failed", task=vertex.key, error=str(e), error_type=type(e).__name__)
            return Failed(e)

        log.debug("task_resolved", task=vertex.key)
        return Resolved(result)
