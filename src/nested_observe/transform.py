"""Change transformation — from one flat record to root-relative records.

For one watcher, a raw record becomes one ChangeRecord per route from the
root to the mutated node. Transforming also keeps tracking in step with
the mutation: every value the mutation wrote or dropped has its edges from
the mutated node reconciled with what the node holds now.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from nested_observe import pointer
from nested_observe.records import ChangeRecord, ChangeType, RawChangeRecord
from nested_observe.shape import SEQUENCE, is_composite, occurrences

if TYPE_CHECKING:
    from nested_observe.walker import Watcher


def transform(watcher: Watcher, raw: RawChangeRecord) -> list[ChangeRecord]:
    node = raw.object
    key = raw.key

    # Paths are taken before relinking changes the edges.
    records = [
        ChangeRecord.annotate(raw, watcher.root, pointer.compile(trail + [key]))
        for trail in watcher.edges.paths(node, watcher.root)
    ]

    touched = list(raw.dropped()) + list(raw.written())
    if raw.type is ChangeType.RECONFIGURE:
        touched.append(node._lookup(raw.name))
    seen: set[int] = set()
    for value in touched:
        if is_composite(value) and id(value) not in seen:
            seen.add(id(value))
            _reconcile(watcher, node, raw.key, value)
    return records


def _reconcile(watcher: Watcher, node: Any, key: Any, child: Any) -> None:
    """Make the node -> child edges match what node currently holds.

    A batch is delivered after all of its mutations, so the target is the
    node's present content, not the state right after this record.
    """
    if node._sequence:
        key = SEQUENCE
        target = len(occurrences(node, child))
    else:
        held = node._lookup(key) is child and node._is_enumerable(key)
        target = 1 if held else 0
    current = watcher.edges.count(child, node, key)

    while current > target:
        watcher.unobserve(child, node, key)
        current -= 1
    while current < target and watcher.tracks(node):
        watcher.observe(child, node, key)
        current += 1
