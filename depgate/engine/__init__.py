"""Dependency graph, executor and result aggregation."""

from depgate.engine.aggregator import aggregate_outcomes, summarize_outcomes
from depgate.engine.cycles import find_cycle_path
from depgate.engine.executor import RunState, TaskExecutor
from depgate.engine.graph import DependencyGraph, Vertex, build_graph
from depgate.engine.runner import run_tasks

__all__ = [
    "DependencyGraph",
    "RunState",
    "TaskExecutor",
    "Vertex",
    "aggregate_outcomes",
    "build_graph",
    "find_cycle_path",
    "run_tasks",
    "summarize_outcomes",
]
