"""Shared fixtures: a recording callback and a clean engine per test."""

import pytest

from nested_observe import _anchor, set_debug, set_scheduler


class Recorder:
    """Callback that keeps every batch it receives."""

    def __init__(self):
        self.batches = []

    def __call__(self, records):
        self.batches.append(list(records))

    @property
    def records(self):
        return [r for batch in self.batches for r in batch]

    def take(self):
        """Flattened records received so far, then forget them."""
        out = self.records
        self.batches.clear()
        return out

    def paths(self):
        return [r.path for r in self.take()]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def make_recorder():
    return Recorder


@pytest.fixture(autouse=True)
def _clean_engine():
    yield
    set_scheduler(None)
    set_debug(False)
    _anchor.pending.clear()
