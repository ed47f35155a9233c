"""Public API — observe(), unobserve(), deliver_change_records().

The nested counterparts of Object.observe(): instead of forwarding the
callback to the notifier directly, each callback gets a Delegate that
annotates records with a root and path before passing them on.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

from nested_observe import _notifier
from nested_observe.delegate import Delegate
from nested_observe.records import ChangeType
from nested_observe.walker import Watcher

Callback = Callable[[list], Any]

# Maps a callback to its delegate, for deliver_change_records(callback).
# Delegates are never dropped, so delivery keeps working between roots.
_delegates: dict[Callback, Delegate] = {}


def observe(root: Any, callback: Callback, accept: Iterable | None = None) -> None:
    """Report changes anywhere below root to callback.

    accept restricts the reported change types (ChangeType members or
    their names). Observing the same root with the same callback twice is
    a no-op.

    Usage:
        state = ObservableObject()
        observe(state, lambda records: print([r.path for r in records]))
        state.user = ObservableObject()   # ['/user']
        state.user.name = "ada"           # ['/user/name']
    """
    with _notifier.lock:
        delegate = _delegates.get(callback)
        if delegate is None:
            delegate = _delegates[callback] = Delegate(callback)
        if id(root) in delegate.watchers:
            return

        if accept is not None:
            accept = frozenset(ChangeType(t) for t in accept)
        watcher = Watcher(root, delegate, accept)
        delegate.watchers[id(root)] = watcher
        watcher.observe(root)


def unobserve(root: Any, callback: Callback) -> None:
    """Stop reporting changes below root to callback. Safe to repeat."""
    with _notifier.lock:
        delegate = _delegates.get(callback)
        if delegate is None:
            return
        watcher = delegate.watchers.pop(id(root), None)
        if watcher is None:
            return
        watcher.unobserve()


def deliver_change_records(callback: Callback) -> None:
    """Deliver callback's pending records now instead of at the next quantum."""
    if not callable(callback):
        raise TypeError(f"Callback must be a function, given: {callback!r}")
    with _notifier.lock:
        delegate = _delegates.get(callback)
        if delegate is None:
            return
        _notifier.flush(delegate.handle)
