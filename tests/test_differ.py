"""Tests for differ module."""

from tfdiff.differ import diff, map_values, values_equal, DiffLine, ADDED, REMOVED, CHANGED
from tfdiff.value import from_python


def _obj(d):
    return from_python(d)


class TestDiff:
    # Tests that diff returns no lines when both objects are empty.
    def test_empty_both(self):
        assert diff(_obj({}), _obj({})) == []

    # Tests that keys are visited in sorted order with unchanged keys omitted.
    def test_key_ordering(self):
        lines = diff(_obj({"b": 1, "a": 2}), _obj({"a": 2, "c": 3}))
        assert [l.render() for l in lines] == ["- b = 1", "+ c = 3"]
        assert [l.symbol for l in lines] == [REMOVED, ADDED]

    # Tests that a changed key shows old and new values.
    def test_changed_value(self):
        lines = diff(_obj({"count": 1}), _obj({"count": 2}))
        assert lines == [DiffLine(CHANGED, "count", "1 -> 2", 0)]
        assert lines[0].render() == "~ count = 1 -> 2"

    # Tests that nested objects are compared whole but not diffed further.
    def test_nested_rendered_whole(self):
        lines = diff(_obj({"tags": {"a": "1"}}), _obj({"tags": {"a": "2"}}))
        assert [l.render() for l in lines] == ['~ tags = {"a":"1"} -> {"a":"2"}']

    # Tests that nested objects differing only in key order are equal.
    def test_nested_key_order_equal(self):
        before = _obj({"tags": {"a": 1, "b": 2}})
        after = _obj({"tags": {"b": 2, "a": 1}})
        assert diff(before, after) == []

    # Tests that lines are indented by depth and values formatted one level deeper.
    def test_depth_indent(self):
        lines = diff(_obj({}), _obj({"k": [1]}), depth=1)
        assert lines[0].render() == "+   k = [1]"
        deep = diff(_obj({}), _obj({"k": {"x": 1}}), depth=2)
        assert deep[0].render() == "+     k = {...1 keys}"

    # Tests that a null value on one side counts as a change.
    def test_null_vs_value(self):
        lines = diff(_obj({"a": None}), _obj({"a": "x"}))
        assert [l.render() for l in lines] == ['~ a = null -> "x"']


class TestMapValues:
    # Tests that every key is rendered with the given symbol in sorted order.
    def test_sorted_with_symbol(self):
        lines = map_values(_obj({"z": True, "a": "x"}), ADDED)
        assert [l.render() for l in lines] == ['+ a = "x"', "+ z = true"]


class TestValuesEqual:
    # Tests that int and float forms of the same number are equal.
    def test_int_float_equal(self):
        assert values_equal(from_python(1), from_python(1.0))

    # Tests that different types are unequal.
    def test_type_mismatch(self):
        assert not values_equal(from_python("1"), from_python(1))
