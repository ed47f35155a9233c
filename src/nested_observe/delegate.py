"""Delegates — one per user callback, shared by all of its roots.

The notifier only ever sees the delegate's handle(). A batch for one node
is fanned out to every watcher of this callback that tracks the node, the
results are flattened in batch order, and the callback runs once.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from nested_observe.registry import ObservationRegistry
from nested_observe.transform import transform

logger = logging.getLogger("nested_observe.delegate")

# Whether to log exceptions raised during change record delivery.
_debug = False


def set_debug(enabled: bool) -> None:
    """Log delivery failures through the `nested_observe.delegate` logger."""
    global _debug
    _debug = bool(enabled)


def is_debug() -> bool:
    return _debug


class Delegate:
    """Transforms raw batches for a callback's watchers and calls it once."""

    __slots__ = ("callback", "watchers", "registry")

    def __init__(self, callback: Callable[[list], Any]) -> None:
        self.callback = callback
        self.watchers: dict[int, Any] = {}  # id(root) -> Watcher
        self.registry = ObservationRegistry()

    def handle(self, records: list) -> None:
        try:
            changes = []
            for record in records:
                for watcher in self.registry.get(record.object):
                    if not watcher.accepts(record):
                        continue
                    changes.extend(transform(watcher, record))
            if changes:
                self.callback(changes)
        except Exception:
            if _debug:
                logger.exception("Change delivery to %r failed", self.callback)

    def __repr__(self) -> str:
        return f"Delegate({self.callback!r}, {len(self.watchers)} roots)"
