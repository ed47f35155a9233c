"""nested_observe: deep change observation for mutable object graphs."""

from importlib.metadata import version as _version

__version__ = _version("nested-observe")

from nested_observe._notifier import get_pending_count, set_scheduler
from nested_observe.action import action, transaction
from nested_observe.containers import (
    ObservableDict,
    ObservableList,
    ObservableObject,
    define_property,
)
from nested_observe.delegate import is_debug, set_debug
from nested_observe.records import ChangeRecord, ChangeType, RawChangeRecord
from nested_observe.shape import SEQUENCE, Composite
from nested_observe.subscription import deliver_change_records, observe, unobserve
from nested_observe import pointer
# textual is opt-in, import nested_observe.textual explicitly

__all__ = [
    "observe",
    "unobserve",
    "deliver_change_records",
    "set_debug",
    "is_debug",
    "set_scheduler",
    "get_pending_count",
    "action",
    "transaction",
    "ObservableObject",
    "ObservableList",
    "ObservableDict",
    "define_property",
    "ChangeRecord",
    "ChangeType",
    "RawChangeRecord",
    "Composite",
    "SEQUENCE",
    "pointer",
]
