"""Cycle detection for dependency edge insertion.

The check runs once per candidate edge, before the edge is recorded. It walks
only the part of the graph reachable from the candidate dependency, so its cost
does not grow with unrelated vertices. The walk uses an explicit stack because
dependency chains can be thousands of vertices deep.
"""

from collections.abc import Callable, Sequence


def find_cycle_path(
    dependencies_of: Callable[[str], Sequence[str]],
    dependent: str,
    dependency: str,
) -> list[str] | None:
    """Check whether ``dependent`` requiring ``dependency`` would close a cycle.

    Starting at ``dependency``, follows existing dependency edges looking for
    ``dependent``. If it is reachable, the new edge would make ``dependent``
    (transitively) depend on itself.

    Args:
        dependencies_of: Returns the accepted dependency keys of a vertex
        dependent: Vertex declaring the dependency
        dependency: Vertex being depended on

    Returns:
        The keys on the cycle, starting and ending at ``dependent``, or None
        when the edge is safe to add.

    Example:
        >>> edges = {"a": ["b"], "b": []}
        >>> find_cycle_path(edges.__getitem__, "b", "a")
        ['b', 'a', 'b']
    """
    if dependent == dependency:
        return [dependent, dependency]

    parents: dict[str, str | None] = {dependency: None}
    stack = [dependency]

    while stack:
        key = stack.pop()
        if key == dependent:
            chain: list[str] = []
            node: str | None = key
            while node is not None:
                chain.append(node)
                node = parents[node]
            chain.reverse()
            return [dependent, *chain]

        # Reversed so the first declared dependency is explored first
        for next_key in reversed(dependencies_of(key)):
            if next_key not in parents:
                parents[next_key] = key
                stack.append(next_key)

    return None
