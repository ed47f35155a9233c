"""Change records — flat host events and their root-relative annotations.

A RawChangeRecord describes one mutation of one node. A ChangeRecord is the
same event seen from an observed root: it carries the root and a pointer
from that root to the mutated location. Both are frozen so consumers can
keep them around without corrupting shared bookkeeping.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any


class ChangeType(str, Enum):
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"
    RECONFIGURE = "reconfigure"
    SPLICE = "splice"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class RawChangeRecord:
    """One mutation of one node, as emitted by the host.

    ``name`` is set for keyed mutations (attributes, mapping keys, in-range
    sequence assignment). ``index``, ``removed`` and ``added_count`` are set
    for splices. ``old_value`` is set for update and delete.

    ``value`` (add/update) and ``added`` (splice) capture what was written
    at mutation time. Positions shift while a batch waits for delivery, so
    tracking relinks from these instead of reading the container. They are
    not part of the wire shape.
    """

    object: Any
    type: ChangeType
    name: Any = None
    index: int | None = None
    old_value: Any = None
    removed: tuple | None = None
    added_count: int | None = None
    value: Any = field(default=None, repr=False, metadata={"wire": False})
    added: tuple | None = field(default=None, repr=False, metadata={"wire": False})

    @property
    def key(self) -> Any:
        """The location inside ``object`` that changed."""
        return self.index if self.type is ChangeType.SPLICE else self.name

    def written(self) -> tuple:
        """Values this mutation put into ``object``."""
        if self.type is ChangeType.SPLICE:
            return self.added or ()
        if self.type in (ChangeType.ADD, ChangeType.UPDATE):
            return (self.value,)
        return ()

    def dropped(self) -> tuple:
        """Values this mutation took out of ``object``."""
        if self.type is ChangeType.SPLICE:
            return self.removed or ()
        if self.type in (ChangeType.UPDATE, ChangeType.DELETE):
            return (self.old_value,)
        return ()

    def as_dict(self) -> dict[str, Any]:
        """Wire shape: every field that is set, absent ones omitted."""
        out = {}
        for f in fields(self):
            if not f.metadata.get("wire", True):
                continue
            value = getattr(self, f.name)
            if value is None:
                continue
            out[f.name] = value.value if isinstance(value, ChangeType) else value
        return out


@dataclass(frozen=True, slots=True)
class ChangeRecord(RawChangeRecord):
    """A raw record annotated with the observed root and a pointer into it."""

    root: Any = None
    path: str = ""

    @classmethod
    def annotate(cls, raw: RawChangeRecord, root: Any, path: str) -> ChangeRecord:
        copied = {f.name: getattr(raw, f.name) for f in fields(RawChangeRecord)}
        return cls(root=root, path=path, **copied)
