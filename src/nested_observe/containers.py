"""Observable containers — host values that report their own mutations.

Each mutation produces one RawChangeRecord for the mutated container and
hands it to the notifier; containers know nothing about roots, paths or
nesting. That is the tracking engine's job.

All state lives in _anchor; instances are thin handles holding an _id.
"""

from __future__ import annotations

from typing import Any, Generic, Iterable, Iterator, TypeVar

from nested_observe import _anchor, _notifier
from nested_observe.action import transaction
from nested_observe.records import ChangeType, RawChangeRecord
from nested_observe.shape import MISSING, Composite

T = TypeVar("T")
KT = TypeVar("KT")
VT = TypeVar("VT")


def _same(old: Any, new: Any) -> bool:
    return old is new or (type(old) is type(new) and old == new)


class ObservableObject(Composite):
    """A plain attribute bag, like a JavaScript object.

    Public attributes are fields; names starting with an underscore are
    reserved. Fields can be hidden from traversal with define_property().

    Usage:
        state = ObservableObject(title="draft")
        state.tags = ObservableList()   # add
        state.title = "final"           # update
        del state.tags                  # delete
    """

    __slots__ = ()

    def __init__(self, **fields: Any) -> None:
        super().__init__()
        _anchor.values[self._id] = dict(fields)
        _anchor.hidden[self._id] = set()

    @property
    def _fields(self) -> dict[str, Any]:
        return _anchor.values[self._id]

    @property
    def _hidden(self) -> set:
        return _anchor.hidden[self._id]

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._fields[name]
        except KeyError:
            raise AttributeError(
                f"{type(self).__name__!r} object has no attribute {name!r}"
            ) from None

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
            return
        fields = self._fields
        if name not in fields:
            fields[name] = value
            _notifier.notify(
                RawChangeRecord(self, ChangeType.ADD, name=name, value=value)
            )
            return
        old = fields[name]
        if _same(old, value):
            return
        fields[name] = value
        _notifier.notify(
            RawChangeRecord(
                self, ChangeType.UPDATE, name=name, old_value=old, value=value
            )
        )

    def __delattr__(self, name: str) -> None:
        if name.startswith("_"):
            object.__delattr__(self, name)
            return
        try:
            old = self._fields.pop(name)
        except KeyError:
            raise AttributeError(name) from None
        self._hidden.discard(name)
        _notifier.notify(
            RawChangeRecord(self, ChangeType.DELETE, name=name, old_value=old)
        )

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._fields))

    # --- Composite ---

    def _children(self) -> Iterator[tuple[str, Any]]:
        hidden = self._hidden
        for name, value in list(self._fields.items()):
            if name not in hidden:
                yield name, value

    def _lookup(self, key: Any, default: Any = MISSING) -> Any:
        return self._fields.get(key, default)

    def _is_enumerable(self, key: Any) -> bool:
        return key not in self._hidden

    def __repr__(self) -> str:
        body = ", ".join(f"{k}={v!r}" for k, v in self._fields.items())
        return f"ObservableObject({body})"


def define_property(
    obj: ObservableObject,
    name: str,
    value: Any = MISSING,
    *,
    enumerable: bool | None = None,
) -> None:
    """Create or reconfigure a field, like Object.defineProperty.

    A new field reports `add`. On an existing field, a changed value
    reports `update` and a changed enumerability reports `reconfigure`;
    both arrive in the same batch.
    """
    if name.startswith("_"):
        raise ValueError(f"Reserved attribute name: {name!r}")
    fields = _anchor.values[obj._id]
    hidden = _anchor.hidden[obj._id]

    with transaction():
        if name not in fields:
            fields[name] = None if value is MISSING else value
            if enumerable is False:
                hidden.add(name)
            _notifier.notify(
                RawChangeRecord(obj, ChangeType.ADD, name=name, value=fields[name])
            )
            return

        if value is not MISSING:
            setattr(obj, name, value)
        if enumerable is not None and enumerable == (name in hidden):
            if enumerable:
                hidden.discard(name)
            else:
                hidden.add(name)
            _notifier.notify(RawChangeRecord(obj, ChangeType.RECONFIGURE, name=name))


class ObservableList(Composite, Generic[T]):
    """A list that reports splices and in-place index assignment.

    Every structural change (append, extend, insert, pop, remove, clear,
    del, slice assignment, sort, reverse) is one `splice` record. Assigning
    an existing index is an `update` whose name is the index.
    """

    __slots__ = ()

    _sequence = True

    def __init__(self, items: Iterable[T] | None = None) -> None:
        super().__init__()
        _anchor.values[self._id] = list(items) if items else []

    @property
    def _items(self) -> list[T]:
        return _anchor.values[self._id]

    def _position(self, index: int) -> int:
        items = self._items
        position = index + len(items) if index < 0 else index
        if not 0 <= position < len(items):
            raise IndexError("list assignment index out of range")
        return position

    # --- Read operations ---

    def __getitem__(self, index):
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __contains__(self, item: T) -> bool:
        return item in self._items

    def __bool__(self) -> bool:
        return bool(self._items)

    def index(self, item: T, *args) -> int:
        return self._items.index(item, *args)

    def count(self, item: T) -> int:
        return self._items.count(item)

    # --- Write operations ---

    def splice(self, start: int, delete_count: int | None = None, *items: T) -> list[T]:
        """Remove delete_count items at start and insert items there.

        Mirrors Array.prototype.splice: a negative start counts from the
        end, and both arguments are clamped to the list. Returns the
        removed items.
        """
        data = self._items
        length = len(data)
        if start < 0:
            start = max(length + start, 0)
        start = min(start, length)
        if delete_count is None:
            delete_count = length - start
        delete_count = min(max(delete_count, 0), length - start)

        removed = data[start:start + delete_count]
        data[start:start + delete_count] = items
        if removed or items:
            _notifier.notify(
                RawChangeRecord(
                    self,
                    ChangeType.SPLICE,
                    index=start,
                    removed=tuple(removed),
                    added_count=len(items),
                    added=tuple(items),
                )
            )
        return removed

    def append(self, item: T) -> None:
        self.splice(len(self._items), 0, item)

    def extend(self, items: Iterable[T]) -> None:
        self.splice(len(self._items), 0, *items)

    def __iadd__(self, items: Iterable[T]) -> ObservableList[T]:
        self.extend(items)
        return self

    def insert(self, index: int, item: T) -> None:
        length = len(self._items)
        if index < 0:
            index = max(length + index, 0)
        self.splice(min(index, length), 0, item)

    def pop(self, index: int = -1) -> T:
        if not self._items:
            raise IndexError("pop from empty list")
        try:
            position = self._position(index)
        except IndexError:
            raise IndexError("pop index out of range") from None
        return self.splice(position, 1)[0]

    def remove(self, item: T) -> None:
        self.splice(self._items.index(item), 1)

    def clear(self) -> None:
        self.splice(0, len(self._items))

    def sort(self, *, key=None, reverse: bool = False) -> None:
        self._replace_all(sorted(self._items, key=key, reverse=reverse))

    def reverse(self) -> None:
        self._replace_all(self._items[::-1])

    def _replace_all(self, ordered: list[T]) -> None:
        if any(a is not b for a, b in zip(self._items, ordered)):
            self.splice(0, len(self._items), *ordered)

    def __setitem__(self, index, value) -> None:
        if isinstance(index, slice):
            self._set_slice(index, value)
            return
        position = self._position(index)
        old = self._items[position]
        if _same(old, value):
            return
        self._items[position] = value
        _notifier.notify(
            RawChangeRecord(
                self, ChangeType.UPDATE, name=position, old_value=old, value=value
            )
        )

    def _set_slice(self, index: slice, value: Iterable[T]) -> None:
        start, stop, step = index.indices(len(self._items))
        values = list(value)
        if step == 1:
            self.splice(start, max(stop - start, 0), *values)
            return
        positions = range(start, stop, step)
        if len(values) != len(positions):
            raise ValueError(
                f"attempt to assign sequence of size {len(values)} "
                f"to extended slice of size {len(positions)}"
            )
        with transaction():
            for position, item in zip(positions, values):
                self[position] = item

    def __delitem__(self, index) -> None:
        if isinstance(index, slice):
            start, stop, step = index.indices(len(self._items))
            if step == 1:
                self.splice(start, max(stop - start, 0))
                return
            with transaction():
                for position in sorted(range(start, stop, step), reverse=True):
                    self.splice(position, 1)
            return
        self.splice(self._position(index), 1)

    # --- Composite ---

    def _children(self) -> Iterator[tuple[int, T]]:
        return enumerate(list(self._items))

    def _lookup(self, key: Any, default: Any = MISSING) -> Any:
        items = self._items
        if isinstance(key, int) and 0 <= key < len(items):
            return items[key]
        return default

    def __repr__(self) -> str:
        return f"ObservableList({self._items!r})"


class ObservableDict(Composite, Generic[KT, VT]):
    """A mapping that reports additions, updates and deletions per key.

    Values are reached through the mapping accessor, so keys never collide
    with attribute names.
    """

    __slots__ = ()

    def __init__(self, data: dict[KT, VT] | None = None) -> None:
        super().__init__()
        _anchor.values[self._id] = dict(data) if data else {}

    @property
    def _data(self) -> dict[KT, VT]:
        return _anchor.values[self._id]

    # --- Read operations ---

    def __getitem__(self, key: KT) -> VT:
        return self._data[key]

    def get(self, key: KT, default: VT | None = None) -> VT | None:
        return self._data.get(key, default)

    def __contains__(self, key: KT) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[KT]:
        return iter(self._data)

    def keys(self):
        return self._data.keys()

    def values(self):
        return self._data.values()

    def items(self):
        return self._data.items()

    def __bool__(self) -> bool:
        return bool(self._data)

    # --- Write operations ---

    def __setitem__(self, key: KT, value: VT) -> None:
        data = self._data
        if key not in data:
            data[key] = value
            _notifier.notify(
                RawChangeRecord(self, ChangeType.ADD, name=key, value=value)
            )
            return
        old = data[key]
        if _same(old, value):
            return
        data[key] = value
        _notifier.notify(
            RawChangeRecord(
                self, ChangeType.UPDATE, name=key, old_value=old, value=value
            )
        )

    def __delitem__(self, key: KT) -> None:
        old = self._data.pop(key)
        _notifier.notify(
            RawChangeRecord(self, ChangeType.DELETE, name=key, old_value=old)
        )

    def pop(self, key: KT, *args) -> VT:
        if key in self._data:
            old = self._data[key]
            del self[key]
            return old
        if args:
            return args[0]
        raise KeyError(key)

    def popitem(self) -> tuple[KT, VT]:
        if not self._data:
            raise KeyError("popitem(): dictionary is empty")
        key = next(reversed(self._data))
        return key, self.pop(key)

    def update(self, other=None, **kwargs) -> None:
        with transaction():
            if other:
                pairs = other.items() if hasattr(other, "items") else other
                for key, value in pairs:
                    self[key] = value
            for key, value in kwargs.items():
                self[key] = value

    def clear(self) -> None:
        with transaction():
            for key in list(self._data):
                del self[key]

    def setdefault(self, key: KT, default: VT | None = None) -> VT:
        if key not in self._data:
            self[key] = default
        return self._data[key]

    # --- Composite ---

    def _children(self) -> Iterator[tuple[KT, VT]]:
        return iter(list(self._data.items()))

    def _lookup(self, key: Any, default: Any = MISSING) -> Any:
        return self._data.get(key, default)

    def __repr__(self) -> str:
        return f"ObservableDict({self._data!r})"
