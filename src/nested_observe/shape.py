"""Composite capability — what the graph walker needs from a node.

Any value that can report its children by key, look one up, and tell
whether a key is enumerable can be tracked. The walker never inspects
concrete types; it only talks to this interface.
"""

from __future__ import annotations

import weakref
from typing import Any, Iterator

from nested_observe import _anchor

MISSING = object()


class _Sequence:
    """Edge key marking membership in a sequence.

    The concrete index is resolved when a path is computed, because splices
    shift positions between a mutation and its delivery.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return "SEQUENCE"


SEQUENCE = _Sequence()


class Composite:
    """Base for every trackable node.

    Subclasses keep their state in _anchor and call _notifier.notify()
    after each mutation. `_sequence` is True when children are positional.
    """

    __slots__ = ("_id", "__weakref__")

    _sequence = False

    def __init__(self) -> None:
        self._id = _anchor.new_id()
        weakref.finalize(self, _anchor.release, self._id)

    def _children(self) -> Iterator[tuple[Any, Any]]:
        """Yield (key, value) for every enumerable child."""
        raise NotImplementedError

    def _lookup(self, key: Any, default: Any = MISSING) -> Any:
        """Current value at key, or default when absent."""
        raise NotImplementedError

    def _is_enumerable(self, key: Any) -> bool:
        return True


def is_composite(value: Any) -> bool:
    return isinstance(value, Composite)


def occurrences(parent: Composite, child: Any) -> list:
    """Keys at which child currently sits inside parent, in order."""
    return [key for key, value in parent._children() if value is child]
