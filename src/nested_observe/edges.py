"""Edge index — which (parent, key) edges make a node reachable.

One index per watcher. Edges are kept in discovery order both ways:
child -> incoming edges, used to compute paths, and parent -> outgoing
(key, child) pairs, used to sweep subtrees on release.

Keyed edges are unique per (parent, key). Sequence edges are a multiset:
a node sitting twice in one list has two SEQUENCE edges from it, and the
k-th edge resolves to the k-th position of the node in that list.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Iterator

from nested_observe.shape import SEQUENCE, occurrences


@dataclass(frozen=True, slots=True, eq=False)
class Edge:
    parent: Any
    key: Any

    def matches(self, parent: Any, key: Any) -> bool:
        return self.parent is parent and (self.key is key or self.key == key)


class EdgeIndex:
    """Parent/child bookkeeping for the nodes one watcher tracks."""

    def __init__(self) -> None:
        self._incoming: dict[int, list[Edge]] = {}
        self._outgoing: dict[int, list[tuple[Any, Any]]] = {}

    def add(self, child: Any, parent: Any, key: Any) -> bool:
        """Record an edge. Returns False if the keyed edge already exists."""
        edges = self._incoming.setdefault(id(child), [])
        if key is not SEQUENCE and any(e.matches(parent, key) for e in edges):
            return False
        edges.append(Edge(parent, key))
        self._outgoing.setdefault(id(parent), []).append((key, child))
        return True

    def remove(self, child: Any, parent: Any, key: Any) -> bool:
        """Drop the earliest matching edge. Returns False if there was none."""
        edges = self._incoming.get(id(child))
        if not edges:
            return False
        for i, edge in enumerate(edges):
            if edge.matches(parent, key):
                del edges[i]
                break
        else:
            return False
        if not edges:
            del self._incoming[id(child)]
        self._drop_outgoing(parent, key, child)
        return True

    def discard(self, node: Any) -> None:
        """Remove every edge into and out of node."""
        for key, child in self._outgoing.pop(id(node), ()):
            edges = self._incoming.get(id(child), [])
            for i, edge in enumerate(edges):
                if edge.matches(node, key):
                    del edges[i]
                    break
            if not edges:
                self._incoming.pop(id(child), None)
        for edge in self._incoming.pop(id(node), ()):
            self._drop_outgoing(edge.parent, edge.key, node)

    def _drop_outgoing(self, parent: Any, key: Any, child: Any) -> None:
        pairs = self._outgoing.get(id(parent), [])
        for i, (k, c) in enumerate(pairs):
            if c is child and (k is key or k == key):
                del pairs[i]
                break
        if not pairs:
            self._outgoing.pop(id(parent), None)

    def incoming(self, child: Any) -> list[Edge]:
        return list(self._incoming.get(id(child), ()))

    def outgoing(self, parent: Any) -> list[tuple[Any, Any]]:
        return list(self._outgoing.get(id(parent), ()))

    def count(self, child: Any, parent: Any, key: Any) -> int:
        """Number of (parent, key) edges into child."""
        return sum(1 for e in self._incoming.get(id(child), ()) if e.matches(parent, key))

    def descendants(self, node: Any) -> dict[int, Any]:
        """node plus everything reachable from it through outgoing edges."""
        found = {id(node): node}
        queue = deque([node])
        while queue:
            current = queue.popleft()
            for _, child in self._outgoing.get(id(current), ()):
                if id(child) not in found:
                    found[id(child)] = child
                    queue.append(child)
        return found

    # --- Paths ---

    def paths(self, node: Any, root: Any) -> list[list]:
        """Key paths from root to node, one per incoming edge.

        Each edge is extended by the shortest route from root to its
        parent. Edges whose only route passes back through node (cycles)
        yield nothing. The root itself has the empty path.
        """
        found = [[]] if node is root else []
        for edge, token in self._resolved(node):
            trail = self._route(edge.parent, root, avoid=node)
            if trail is not None:
                found.append(trail + [token])
        return found

    def _route(self, start: Any, root: Any, avoid: Any) -> list | None:
        if start is avoid:
            return None
        visited = {id(start), id(avoid)}
        queue = deque([(start, [])])
        while queue:
            current, trail = queue.popleft()
            if current is root:
                return trail
            for edge, token in self._resolved(current):
                if id(edge.parent) in visited:
                    continue
                visited.add(id(edge.parent))
                queue.append((edge.parent, [token] + trail))
        return None

    def _resolved(self, node: Any) -> Iterator[tuple[Edge, Any]]:
        """Incoming edges of node with their concrete path token."""
        seen: dict[int, int] = {}
        for edge in self._incoming.get(id(node), ()):
            if edge.key is not SEQUENCE:
                yield edge, edge.key
                continue
            nth = seen.get(id(edge.parent), 0)
            seen[id(edge.parent)] = nth + 1
            positions = occurrences(edge.parent, node)
            if nth < len(positions):
                yield edge, positions[nth]

    def __len__(self) -> int:
        return sum(len(edges) for edges in self._incoming.values())
