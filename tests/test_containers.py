"""Tests for ObservableObject, ObservableList, and ObservableDict records."""

import pytest

from nested_observe import (
    ObservableDict,
    ObservableList,
    ObservableObject,
    define_property,
)
from nested_observe import _notifier


@pytest.fixture
def watched(recorder):
    """Watch a container directly with the notifier, no tracking engine."""

    def _watch(node):
        _notifier.watch(node, recorder)
        return recorder

    return _watch


def _shape(records):
    return [r.as_dict() for r in records]


class TestObservableObject:
    def test_fields_and_attributes(self):
        o = ObservableObject(a=1)
        o.b = 2
        assert o.a == 1
        assert o.b == 2
        assert "b" in dir(o)
        with pytest.raises(AttributeError):
            o.missing

    def test_add_update_delete(self, watched):
        o = ObservableObject()
        rec = watched(o)
        o.a = 1
        o.a = 2
        del o.a
        assert _shape(rec.take()) == [
            {"object": o, "type": "add", "name": "a"},
            {"object": o, "type": "update", "name": "a", "old_value": 1},
            {"object": o, "type": "delete", "name": "a", "old_value": 2},
        ]

    def test_same_value_is_silent(self, watched):
        o = ObservableObject(a="x")
        rec = watched(o)
        o.a = "x"
        assert rec.take() == []

    def test_delete_missing_raises(self):
        o = ObservableObject()
        with pytest.raises(AttributeError):
            del o.nope

    def test_repr(self):
        assert repr(ObservableObject(a=5)) == "ObservableObject(a=5)"


class TestDefineProperty:
    def test_new_hidden_field(self, watched):
        o = ObservableObject()
        rec = watched(o)
        define_property(o, "secret", 42, enumerable=False)
        assert o.secret == 42
        assert [r.type for r in rec.take()] == ["add"]
        assert list(o._children()) == []

    def test_reconfigure(self, watched):
        o = ObservableObject(a=1)
        rec = watched(o)
        define_property(o, "a", enumerable=False)
        assert _shape(rec.take()) == [{"object": o, "type": "reconfigure", "name": "a"}]
        assert not o._is_enumerable("a")

    def test_unchanged_enumerability_is_silent(self, watched):
        o = ObservableObject(a=1)
        rec = watched(o)
        define_property(o, "a", enumerable=True)
        assert rec.take() == []

    def test_value_and_reconfigure_in_one_batch(self, watched):
        o = ObservableObject(a=1)
        rec = watched(o)
        define_property(o, "a", 2, enumerable=False)
        assert len(rec.batches) == 1
        assert [r.type for r in rec.batches[0]] == ["update", "reconfigure"]

    def test_reserved_name(self):
        with pytest.raises(ValueError):
            define_property(ObservableObject(), "_id", 1)


class TestObservableList:
    def test_basic_operations(self):
        lst = ObservableList([1, 2, 3])
        assert len(lst) == 3
        assert lst[0] == 1
        assert lst[-1] == 3
        assert lst[1:] == [2, 3]
        assert list(lst) == [1, 2, 3]
        assert 2 in lst
        assert lst.index(3) == 2
        assert lst.count(1) == 1
        assert bool(ObservableList()) is False

    def test_append_is_splice(self, watched):
        lst = ObservableList()
        rec = watched(lst)
        lst.append(1)
        assert _shape(rec.take()) == [
            {"object": lst, "type": "splice", "index": 0, "removed": (), "added_count": 1}
        ]

    def test_extend_and_empty_extend(self, watched):
        lst = ObservableList([0])
        rec = watched(lst)
        lst.extend([1, 2, 3])
        lst.extend([])
        records = rec.take()
        assert len(records) == 1
        assert (records[0].index, records[0].added_count) == (1, 3)

    def test_splice_returns_removed(self, watched):
        lst = ObservableList([1, 2, 3, 4])
        rec = watched(lst)
        assert lst.splice(2, 2) == [3, 4]
        assert list(lst) == [1, 2]
        (record,) = rec.take()
        assert (record.index, record.removed, record.added_count) == (2, (3, 4), 0)

    def test_records_capture_written_values(self, watched):
        lst = ObservableList(["a"])
        rec = watched(lst)
        lst.splice(0, 1, "b", "c")
        lst[1] = "d"
        splice, update = rec.take()
        assert splice.added == ("b", "c")
        assert (splice.written(), splice.dropped()) == (("b", "c"), ("a",))
        assert (update.written(), update.dropped()) == (("d",), ("c",))
        # captured values stay off the wire
        assert "added" not in splice.as_dict()
        assert "value" not in update.as_dict()

    def test_splice_clamps_like_javascript(self):
        lst = ObservableList([1, 2, 3])
        assert lst.splice(-1) == [3]
        assert lst.splice(10, 5, "x") == []
        assert list(lst) == [1, 2, "x"]

    def test_insert_pop_remove_clear(self, watched):
        lst = ObservableList([1, 2, 3])
        rec = watched(lst)
        lst.insert(-1, 99)
        assert list(lst) == [1, 2, 99, 3]
        assert lst.pop() == 3
        lst.remove(99)
        lst.clear()
        assert list(lst) == []
        assert [(r.index, r.removed, r.added_count) for r in rec.take()] == [
            (2, (), 1),
            (3, (3,), 0),
            (2, (99,), 0),
            (0, (1, 2), 0),
        ]

    def test_pop_errors(self):
        with pytest.raises(IndexError):
            ObservableList().pop()
        with pytest.raises(IndexError):
            ObservableList([1]).pop(5)

    def test_setitem_in_range_is_update(self, watched):
        lst = ObservableList([1, 2])
        rec = watched(lst)
        lst[-1] = 20
        assert _shape(rec.take()) == [
            {"object": lst, "type": "update", "name": 1, "old_value": 2}
        ]

    def test_setitem_out_of_range(self):
        with pytest.raises(IndexError):
            ObservableList([1])[3] = 0

    def test_slice_assignment_and_delete(self, watched):
        lst = ObservableList([1, 2, 3, 4])
        rec = watched(lst)
        lst[1:3] = ["a"]
        del lst[:1]
        assert list(lst) == ["a", 4]
        assert [(r.index, r.removed, r.added_count) for r in rec.take()] == [
            (1, (2, 3), 1),
            (0, (1,), 0),
        ]

    def test_extended_slice(self, watched):
        lst = ObservableList([1, 2, 3, 4])
        rec = watched(lst)
        lst[::2] = ["a", "b"]
        assert list(lst) == ["a", 2, "b", 4]
        assert [r.type for r in rec.take()] == ["update", "update"]
        with pytest.raises(ValueError):
            lst[::2] = ["only one"]
        del lst[::2]
        assert list(lst) == [2, 4]

    def test_sort_and_reverse(self, watched):
        lst = ObservableList([3, 1, 2])
        rec = watched(lst)
        lst.sort()
        assert list(lst) == [1, 2, 3]
        lst.sort()  # already sorted
        lst.reverse()
        assert list(lst) == [3, 2, 1]
        assert [r.removed for r in rec.take()] == [(3, 1, 2), (1, 2, 3)]

    def test_iadd(self):
        lst = ObservableList([1])
        lst += [2]
        assert list(lst) == [1, 2]


class TestObservableDict:
    def test_basic_operations(self):
        d = ObservableDict({"a": 1, "b": 2})
        assert d["a"] == 1
        assert d.get("c", 99) == 99
        assert "a" in d
        assert len(d) == 2
        assert set(d) == {"a", "b"}
        assert set(d.items()) == {("a", 1), ("b", 2)}

    def test_add_update_delete(self, watched):
        d = ObservableDict()
        rec = watched(d)
        d["k"] = 1
        d["k"] = 2
        d["k"] = 2
        del d["k"]
        assert _shape(rec.take()) == [
            {"object": d, "type": "add", "name": "k"},
            {"object": d, "type": "update", "name": "k", "old_value": 1},
            {"object": d, "type": "delete", "name": "k", "old_value": 2},
        ]

    def test_pop_popitem(self, watched):
        d = ObservableDict({"a": 1, "b": 2})
        rec = watched(d)
        assert d.pop("a") == 1
        assert d.pop("missing", None) is None
        assert d.popitem() == ("b", 2)
        with pytest.raises(KeyError):
            d.popitem()
        with pytest.raises(KeyError):
            d.pop("missing")
        assert [r.name for r in rec.take()] == ["a", "b"]

    def test_update_is_one_batch(self, watched):
        d = ObservableDict({"a": 1})
        rec = watched(d)
        d.update({"a": 10}, b=2)
        assert len(rec.batches) == 1
        assert [r.type for r in rec.batches[0]] == ["update", "add"]

    def test_clear_and_setdefault(self, watched):
        d = ObservableDict({"a": 1, "b": 2})
        rec = watched(d)
        d.clear()
        assert len(d) == 0
        assert d.setdefault("x", 5) == 5
        assert d.setdefault("x", 6) == 5
        assert [r.type for r in rec.take()] == ["delete", "delete", "add"]

    def test_non_string_keys(self):
        d = ObservableDict({1: "one"})
        assert d._lookup(1) == "one"
        assert list(d._children()) == [(1, "one")]
