"""Mutation notifier — the host primitive the tracking engine builds on.

Containers call notify() after every mutation. Records are queued per
subscribed handler and delivered as one batch per mutation quantum: a
single mutation, or everything inside an @action / `with transaction()`.

Delivery is synchronous by default. set_scheduler() defers it to a host
loop (asyncio's call_soon, Textual's call_from_thread, ...) the way
Object.observe hands batches to the microtask queue; flush() is the
explicit synchronization point.
"""

from __future__ import annotations

import threading
from typing import Callable, Iterable

from nested_observe import _anchor
from nested_observe.records import ChangeType, RawChangeRecord

Handler = Callable[[list], None]

# Guards all engine and host state. Re-entrant: handlers may call back in.
lock = threading.RLock()

# Batch depth counter. When > 0, delivery is deferred.
_batch_depth: int = 0

_scheduler: Callable[[Callable[[], None]], object] | None = None
_scheduled: bool = False
_delivering: bool = False


def set_scheduler(scheduler) -> None:
    """Set the global scheduler used to deliver change batches.

    Call once from the main/UI thread:
        nested_observe.set_scheduler(loop.call_soon)

    Batches are then handed to scheduler(deliver) instead of running at the
    end of the mutation. Pass None to go back to synchronous delivery.
    """
    global _scheduler, _scheduled
    with lock:
        _scheduler = scheduler
        _scheduled = False


def watch(node, handler: Handler, accept: Iterable | None = None) -> None:
    """Deliver records for mutations of node to handler.

    accept restricts the reported change types; None reports all of them.
    Watching an already watched pair replaces its accept set.
    """
    with lock:
        _anchor.subscriptions.setdefault(node._id, {})[handler] = _accept_set(accept)


def unwatch(node, handler: Handler) -> None:
    """Stop delivering records for node to handler. Idempotent."""
    with lock:
        subs = _anchor.subscriptions.get(node._id)
        if subs is None:
            return
        subs.pop(handler, None)
        if not subs:
            del _anchor.subscriptions[node._id]


def is_watched(node, handler: Handler | None = None) -> bool:
    """Whether node has any subscription (or one for handler)."""
    subs = _anchor.subscriptions.get(node._id)
    if not subs:
        return False
    return handler is None or handler in subs


def notify(record: RawChangeRecord) -> None:
    """Queue record for every subscriber that accepts its type."""
    with lock:
        subs = _anchor.subscriptions.get(record.object._id)
        if not subs:
            return
        for handler, accept in list(subs.items()):
            if accept is None or record.type in accept:
                _anchor.pending.setdefault(handler, []).append(record)
        if _batch_depth == 0:
            _schedule()


def flush(handler: Handler) -> None:
    """Synchronously deliver handler's pending batch, if any."""
    with lock:
        records = _anchor.pending.pop(handler, None)
        if records:
            handler(records)


def begin_batch() -> None:
    """Enter a batching scope. Nested batches are supported."""
    global _batch_depth
    with lock:
        _batch_depth += 1


def end_batch() -> None:
    """Exit a batching scope. When the outermost scope exits, deliver."""
    global _batch_depth
    with lock:
        _batch_depth -= 1
        if _batch_depth == 0 and _anchor.pending:
            _schedule()


def get_pending_count() -> int:
    """Number of records waiting for delivery. Useful for testing."""
    return sum(len(records) for records in _anchor.pending.values())


def _schedule() -> None:
    global _scheduled
    if _scheduler is None:
        _deliver_pending()
    elif not _scheduled:
        _scheduled = True
        _scheduler(_deliver_scheduled)


def _deliver_scheduled() -> None:
    global _scheduled
    with lock:
        _scheduled = False
        _deliver_pending()


def _deliver_pending() -> None:
    """Deliver every pending batch. Handles batches queued during delivery."""
    global _delivering
    if _delivering:
        # The outer loop picks up whatever gets queued now.
        return
    _delivering = True
    try:
        while _anchor.pending:
            handler = next(iter(_anchor.pending))
            records = _anchor.pending.pop(handler)
            handler(records)
    finally:
        _delivering = False


def _accept_set(accept: Iterable | None) -> frozenset | None:
    if accept is None:
        return None
    return frozenset(ChangeType(t) for t in accept)
