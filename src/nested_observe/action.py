"""Actions and transactions — batched container mutations.

Wrapping mutations in an @action or `with transaction()` holds back change
delivery until the outermost scope exits, so every observer receives the
whole group as a single batch instead of one batch per mutation.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Callable, Iterator, ParamSpec, TypeVar

from nested_observe import _notifier

P = ParamSpec("P")
R = TypeVar("R")


@contextmanager
def transaction() -> Iterator[None]:
    """Group the mutations made inside the block into one batch.

    Scopes nest; only the outermost one delivers. Records are delivered
    even when the block raises, since the mutations already happened.

    Usage:
        with transaction():
            state.first = 1
            state.second = 2
        # one batch with both records arrives here
    """
    _notifier.begin_batch()
    try:
        yield
    finally:
        _notifier.end_batch()


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: run fn inside a transaction().

    Usage:
        @action
        def move(src, dst, key):
            dst[key] = src.pop(key)
        # observers see the delete and the add together
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with transaction():
            return fn(*args, **kwargs)

    return wrapper
