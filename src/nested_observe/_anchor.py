"""Data anchor — plain Python structures that hold all host-side state.

Containers are thin handles holding an _id; their contents, the
subscriptions registered against them, and the batches waiting for
delivery all live here, keyed by id or by handler.
"""

import itertools

# Container state
values: dict[int, object] = {}  # node_id -> backing dict/list
hidden: dict[int, set] = {}  # node_id -> non-enumerable attribute names

# Subscription state
subscriptions: dict[int, dict] = {}  # node_id -> {handler: accept}
pending: dict[object, list] = {}  # handler -> queued raw records

# Node ids; itertools.count is atomic under the GIL
_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)


def release(node_id: int) -> None:
    """Forget everything held for a collected container."""
    values.pop(node_id, None)
    hidden.pop(node_id, None)
    subscriptions.pop(node_id, None)
