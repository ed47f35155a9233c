"""Graph walker — attaches and detaches watches as a structure changes.

A Watcher is the live state of one (root, callback) registration. It owns
the edge index for its root and keeps three things in step: the edges it
has seen, its membership in the delegate's registry, and the delegate's
low-level subscriptions with the notifier.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING, Any

from nested_observe import _notifier
from nested_observe.edges import EdgeIndex
from nested_observe.records import ChangeType
from nested_observe.shape import SEQUENCE, is_composite

if TYPE_CHECKING:
    from nested_observe.delegate import Delegate

logger = logging.getLogger("nested_observe.walker")

SEQUENCE_ACCEPT = frozenset(
    {ChangeType.ADD, ChangeType.UPDATE, ChangeType.DELETE, ChangeType.SPLICE}
)


class Watcher:
    """Tracking state for one root under one delegate."""

    __slots__ = ("root", "delegate", "accept", "edges", "closed")

    def __init__(self, root: Any, delegate: Delegate, accept: frozenset | None = None) -> None:
        self.root = root
        self.delegate = delegate
        self.accept = accept
        self.edges = EdgeIndex()
        self.closed = False

    def tracks(self, node: Any) -> bool:
        return self.delegate.registry.has(node, self)

    def observe(self, node: Any, parent: Any = None, key: Any = None) -> None:
        """Track node and everything reachable from it.

        The (parent, key) edge is recorded even when node is already
        tracked; only untracked nodes are expanded, so each node is walked
        at most once and cycles terminate.
        """
        registry = self.delegate.registry
        queue = deque([(node, parent, key)])
        while queue:
            node, parent, key = queue.popleft()
            if not is_composite(node):
                continue
            tracked = registry.has(node, self)
            if parent is not None:
                self.edges.add(node, parent, key)
            if tracked:
                continue

            if not registry.has(node):
                logger.debug("watch %r for %r", node, self.delegate.callback)
            registry.add(node, self)
            self._subscribe(node)

            sequence = node._sequence
            for child_key, child in node._children():
                if is_composite(child):
                    queue.append((child, node, SEQUENCE if sequence else child_key))

    def unobserve(self, node: Any = None, parent: Any = None, key: Any = None) -> None:
        """Drop an edge into node and release whatever became unreachable.

        Without arguments, releases the whole root.
        """
        if node is None:
            node = self.root
            self.closed = True
        if not self.tracks(node):
            return
        if parent is not None and not self.edges.remove(node, parent, key):
            return
        self._sweep(node)

    def _sweep(self, start: Any) -> None:
        """Release nodes under start that no surviving edge reaches.

        Only start and its descendants can have lost their last route to
        the root. Among them, a node survives if it is the live root or has
        an edge from outside the subtree; anything survivors reach lives too.
        """
        candidates = self.edges.descendants(start)
        queue = deque(
            node for node in candidates.values() if self._anchored(node, candidates)
        )
        alive: set[int] = set()
        while queue:
            node = queue.popleft()
            if id(node) in alive:
                continue
            alive.add(id(node))
            for _, child in self.edges.outgoing(node):
                if id(child) in candidates:
                    queue.append(child)

        for node_id, node in candidates.items():
            if node_id not in alive:
                self._release(node)

    def _anchored(self, node: Any, candidates: dict[int, Any]) -> bool:
        if node is self.root and not self.closed:
            return True
        return any(id(e.parent) not in candidates for e in self.edges.incoming(node))

    def _release(self, node: Any) -> None:
        registry = self.delegate.registry
        self.edges.discard(node)
        registry.remove(node, self)
        if registry.has(node):
            self._subscribe(node)
        else:
            _notifier.unwatch(node, self.delegate.handle)
            logger.debug("unwatch %r for %r", node, self.delegate.callback)

    def _subscribe(self, node: Any) -> None:
        """(Re)subscribe the delegate to node with every tracking watcher's types."""
        wanted = [w._accept_for(node) for w in self.delegate.registry.get(node)]
        if any(accept is None for accept in wanted):
            accept = None
        else:
            accept = frozenset().union(*wanted)
        _notifier.watch(node, self.delegate.handle, accept)

    def accepts(self, record: Any) -> bool:
        accept = self._accept_for(record.object)
        return accept is None or record.type in accept

    def _accept_for(self, node: Any) -> frozenset | None:
        if self.accept is None and node._sequence:
            return SEQUENCE_ACCEPT
        return self.accept

    def __repr__(self) -> str:
        state = "closed" if self.closed else "active"
        return f"Watcher({self.root!r}, {state})"
