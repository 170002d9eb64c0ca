"""
Dependency ordering for resolved imports.

Edges point from a parent document to the imports it declares. The order
puts every child before its parent; among nodes that are ready at the same
time, identities are taken in ascending lexicographic order. The result is a
single, reproducible total order for a given graph.
"""

from __future__ import annotations

import heapq
from typing import Iterable, Mapping

from mdflow.parser.errors import CircularImportError


def topological_order(
    nodes: Iterable[str],
    children: Mapping[str, Iterable[str]],
) -> list[str]:
    """
    Order import identities dependency-first.

    Args:
        nodes: Every identity in the graph.
        children: Identity -> identities it imports. Children missing from
            ``nodes`` (e.g. skipped optional imports) are ignored.

    Returns:
        Identities with children before parents, ties broken alphabetically.

    Raises:
        CircularImportError: If the graph has a cycle.

    Example:
        >>> topological_order(
        ...     ["a", "b", "c", "d", "e", "f"],
        ...     {"a": ["c", "d"], "b": ["e"], "c": ["f"]},
        ... )
        ['d', 'e', 'b', 'f', 'c', 'a']
    """
    node_set = set(nodes)

    # parents[x] = nodes that import x; pending[x] = unprocessed children of x
    parents: dict[str, set[str]] = {node: set() for node in node_set}
    pending: dict[str, int] = {node: 0 for node in node_set}

    for parent in node_set:
        for child in set(children.get(parent, ())):
            if child not in node_set:
                continue
            parents[child].add(parent)
            pending[parent] += 1

    ready = [node for node, count in pending.items() if count == 0]
    heapq.heapify(ready)

    order: list[str] = []
    while ready:
        node = heapq.heappop(ready)
        order.append(node)
        for parent in parents[node]:
            pending[parent] -= 1
            if pending[parent] == 0:
                heapq.heappush(ready, parent)

    if len(order) != len(node_set):
        raise CircularImportError(_find_cycle(node_set, children))

    return order


def _find_cycle(node_set: set[str], children: Mapping[str, Iterable[str]]) -> list[str]:
    """Return one cycle (first node repeated at the end) using a three-color DFS."""
    WHITE, GRAY, BLACK = 0, 1, 2  # noqa: N806
    color = {node: WHITE for node in node_set}

    def dfs(node: str, path: list[str]) -> list[str] | None:
        color[node] = GRAY
        path.append(node)
        for child in sorted(set(children.get(node, ()))):
            if child not in node_set:
                continue
            if color[child] == GRAY:
                return path[path.index(child) :] + [child]
            if color[child] == WHITE:
                result = dfs(child, path)
                if result is not None:
                    return result
        path.pop()
        color[node] = BLACK
        return None

    for node in sorted(node_set):
        if color[node] == WHITE:
            cycle = dfs(node, [])
            if cycle is not None:
                return cycle
    return []
