"""
Dependency graph construction.

A ``DependencyGraph`` holds one ``Vertex`` per task key and the dependency
edges between them. Edges that would create a cycle are rejected at insertion
time, which keeps the accepted edge set acyclic. Every wait the executor
performs therefore eventually completes.

Vertices remember two views of their dependencies:

- ``dependency_keys``: every key the task declared, in order. Used to build
  the body's positional arguments and the skip list.
- ``edges``: the subset of declared keys whose edge was accepted.

A vertex whose declared dependency was rejected is ``doomed``: it can never
run and settles as skipped without waiting on anything.
"""

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from depgate.engine.cycles import find_cycle_path
from depgate.exceptions import CycleDetectedError, InvalidTaskError
from depgate.models.domain import TaskDefinition

log = structlog.get_logger(__name__)


@dataclass
class Vertex:
    """Scheduling node for one task key.

    Attributes:
        key: Task key
        dependency_keys: Declared dependencies in declared order
        edges: Accepted dependency edges (acyclic)
        body: Task callable, None for keys that were only referenced
        defined: False when the key never appeared in the task map
        doomed: True when a declared dependency closed a cycle
    """

    key: str
    dependency_keys: tuple[str, ...] = ()
    edges: list[str] = field(default_factory=list)
    body: Callable[..., Any] | None = None
    defined: bool = False
    doomed: bool = False


class DependencyGraph:
    """Vertices and acyclic dependency edges for a single run.

    Example:
        >>> graph = DependencyGraph()
        >>> graph.add_dependency_edge("b", "a")
        >>> graph.add_dependency_edge("a", "b")
        Traceback (most recent call last):
        ...
        depgate.exceptions.CycleDetectedError: cycle detected: a <- b <- a
    """

    def __init__(self) -> None:
        self._vertices: dict[str, Vertex] = {}
        self.cycles: list[tuple[str, ...]] = []

    def __contains__(self, key: object) -> bool:
        return key in self._vertices

    def __iter__(self) -> Iterator[Vertex]:
        return iter(self._vertices.values())

    def __len__(self) -> int:
        return len(self._vertices)

    def __getitem__(self, key: str) -> Vertex:
        return self._vertices[key]

    def add_vertex(self, key: str) -> Vertex:
        """Return the vertex for ``key``, creating it on first use.

        Raises:
            InvalidTaskError: If ``key`` is empty or not a string
        """
        if not isinstance(key, str) or not key:
            raise InvalidTaskError(f"Task key must be a non-empty string, got {key!r}", key=key)

        vertex = self._vertices.get(key)
        if vertex is None:
            vertex = Vertex(key=key)
            self._vertices[key] = vertex
        return vertex

    def add_dependency_edge(self, dependent: str, dependency: str) -> None:
        """Record that ``dependent`` requires ``dependency``.

        Both vertices are created if needed. Duplicate edges are ignored.

        Raises:
            CycleDetectedError: If the edge would close a cycle. The graph is
                left unchanged.
        """
        vertex = self.add_vertex(dependent)
        self.add_vertex(dependency)

        if dependency in vertex.edges:
            return

        path = find_cycle_path(self.dependencies_of, dependent, dependency)
        if path is not None:
            raise CycleDetectedError(dependent, dependency, path)

        vertex.edges.append(dependency)

    def dependencies_of(self, key: str) -> list[str]:
        """Accepted dependency edges of ``key``."""
        return self._vertices[key].edges

    def topological_order(self) -> list[str]:
        """Order keys so every vertex follows its accepted dependencies.

        Vertices are visited in insertion order, and a post-order DFS is
        performed with an explicit stack.
        """
        order: list[str] = []
        visited: set[str] = set()

        for root in self._vertices:
            if root in visited:
                continue
            visited.add(root)
            stack: list[tuple[str, Iterator[str]]] = [(root, iter(self._vertices[root].edges))]
            while stack:
                key, pending = stack[-1]
                for next_key in pending:
                    if next_key not in visited:
                        visited.add(next_key)
                        stack.append((next_key, iter(self._vertices[next_key].edges)))
                        break
                else:
                    stack.pop()
                    order.append(key)

        return order


def build_graph(tasks: Mapping[str, Any]) -> DependencyGraph:
    """Build a fresh graph from a task map.

    Each value may be a ``TaskDefinition`` or a mapping with ``dependencies``
    and ``body`` (or ``task``) keys. Cyclic edges are not raised: the
    dependent vertex is marked doomed and the cycle is recorded on
    ``graph.cycles``.

    Raises:
        InvalidTaskError: If a key is empty or a definition is malformed
    """
    graph = DependencyGraph()

    for key, raw in tasks.items():
        try:
            definition = TaskDefinition.coerce(raw)
        except TypeError as e:
            raise InvalidTaskError(f"Invalid definition for task {key!r}: {e}", key=key) from e

        dependencies = definition.dependencies
        if isinstance(dependencies, str):
            dependencies = (dependencies,)

        try:
            dependency_keys = tuple(dependencies or ())
        except TypeError as e:
            raise InvalidTaskError(f"Invalid dependencies for task {key!r}: {e}", key=key) from e

        vertex = graph.add_vertex(key)
        vertex.dependency_keys = dependency_keys
        vertex.body = definition.body
        vertex.defined = True

    for vertex in list(graph):
        for dependency in vertex.dependency_keys:
            try:
                graph.add_dependency_edge(vertex.key, dependency)
            except CycleDetectedError as e:
                vertex.doomed = True
                graph.cycles.append(e.path)
                log.warning(
                    "dependency_cycle_rejected",
                    task=vertex.key,
                    dependency=dependency,
                    cycle=list(e.path),
                )

    log.debug("graph_built", vertices=len(graph), cycles=len(graph.cycles))
    return graph
