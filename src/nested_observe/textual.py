"""Textual integration for nested_observe. Opt-in — requires textual.

// [LAW:single-enforcer] Guard + NoMatches + thread-marshal enforced here, not at callsites.
// [LAW:locality-or-seam] Textual coupling isolated in this module; the engine never imports textual.
// [LAW:no-shared-mutable-globals] _paused_apps and _bridges have a single owner (this module),
//   explicit API (pause/is_safe/observe/unobserve).
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches
from nested_observe.subscription import observe as _observe, unobserve as _unobserve

# Paused apps, keyed by id(app).
_paused_apps: set[int] = set()

# (id(app), callback) -> (guarded callback, ids of the roots it observes).
_bridges: dict[tuple, tuple] = {}


@contextmanager
def pause(app):
    """Drop change deliveries during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def observe(app, root, callback, accept=None):
    """observe() that safely bridges change records to Textual widgets.

    Skips delivery during pause/not-running, catches NoMatches from widget
    queries, and marshals cross-thread deliveries via call_from_thread.
    Returns the guarded callback the engine sees.
    """
    key = (id(app), callback)
    if key not in _bridges:
        _bridges[key] = (_guard(app, callback), set())
    guarded, roots = _bridges[key]
    roots.add(id(root))
    _observe(root, guarded, accept)
    return guarded


def unobserve(app, root, callback) -> None:
    """Counterpart of observe(app, root, callback).

    The bridge is forgotten once its last root is released.
    """
    key = (id(app), callback)
    if key not in _bridges:
        return
    guarded, roots = _bridges[key]
    _unobserve(root, guarded)
    roots.discard(id(root))
    if not roots:
        del _bridges[key]


def _guard(app, callback):
    _main = threading.get_ident()

    def _guarded(records):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, records)
        else:
            _safe(records)

    def _safe(records):
        try:
            callback(records)
        except NoMatches:
            pass

    return _guarded
