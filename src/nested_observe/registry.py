"""Observation registry — which watchers of one delegate track a node."""

from __future__ import annotations

from typing import Any


class ObservationRegistry:
    """node -> watchers, in registration order, each listed once.

    Holds the tracked nodes themselves so their ids stay valid for as long
    as any watcher tracks them.
    """

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[int, tuple[Any, dict]] = {}

    def add(self, node: Any, watcher: Any) -> None:
        _, watchers = self._entries.setdefault(id(node), (node, {}))
        watchers[watcher] = None

    def remove(self, node: Any, watcher: Any) -> None:
        entry = self._entries.get(id(node))
        if entry is None:
            return
        entry[1].pop(watcher, None)
        if not entry[1]:
            del self._entries[id(node)]

    def has(self, node: Any, watcher: Any = None) -> bool:
        entry = self._entries.get(id(node))
        if entry is None:
            return False
        return watcher is None or watcher in entry[1]

    def get(self, node: Any) -> list:
        entry = self._entries.get(id(node))
        return list(entry[1]) if entry else []

    def __len__(self) -> int:
        return len(self._entries)
