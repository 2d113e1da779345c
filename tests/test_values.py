"""Tests for the protocol value model."""

import pytest

from pipebridge.values import (
    Record,
    Scalar,
    ValueList,
    from_python,
    is_list,
    is_record,
    is_scalar,
)


class TestScalar:
    def test_text_and_kind(self):
        s = Scalar("hello")
        assert s.text == "hello"
        assert s.kind == "scalar"
        assert str(s) == "hello"

    def test_equality_by_text(self):
        assert Scalar("a") == Scalar("a")
        assert Scalar("a") != Scalar("b")

    def test_immutable(self):
        s = Scalar("a")
        with pytest.raises(AttributeError):
            s.text = "b"

    def test_rejects_non_str(self):
        with pytest.raises(TypeError):
            Scalar(1)


class TestRecord:
    def test_lookup_and_kind(self):
        r = Record({"a": "1", "b": Scalar("2")})
        assert r.kind == "record"
        assert r["a"] == Scalar("1")
        assert r["b"] == Scalar("2")
        assert "a" in r
        assert len(r) == 2

    def test_preserves_field_order(self):
        r = Record([("z", "1"), ("a", "2"), ("m", "3")])
        assert list(r) == ["z", "a", "m"]

    def test_nested_conversion(self):
        r = Record.from_dict({"outer": {"inner": ["x", "y"]}})
        assert is_record(r["outer"])
        assert r["outer"]["inner"] == ValueList([Scalar("x"), Scalar("y")])

    def test_to_dict(self):
        data = {"a": "1", "b": {"c": ["x", {"d": "e"}]}}
        assert Record.from_dict(data).to_dict() == data

    def test_is_read_only(self):
        r = Record({"a": "1"})
        with pytest.raises(TypeError):
            r["b"] = Scalar("2")

    def test_rejects_non_str_keys(self):
        with pytest.raises(TypeError, match="field names"):
            Record({1: "x"})

    def test_empty(self):
        assert len(Record()) == 0
        assert Record() == Record({})


class TestValueList:
    def test_order_preserved(self):
        lst = ValueList(["b", "a", "c"])
        assert lst.kind == "list"
        assert [v.text for v in lst] == ["b", "a", "c"]

    def test_equality(self):
        assert ValueList(["a"]) == ValueList([Scalar("a")])
        assert ValueList(["a"]) != ValueList(["a", "b"])

    def test_slice_returns_value_list(self):
        lst = ValueList(["a", "b", "c"])
        assert lst[1:] == ValueList(["b", "c"])

    def test_to_python(self):
        assert ValueList(["a", {"b": "c"}, []]).to_python() == ["a", {"b": "c"}, []]


class TestFromPython:
    def test_variant_inspection(self):
        assert is_scalar(from_python("x"))
        assert is_record(from_python({}))
        assert is_list(from_python([]))
        assert is_list(from_python(("a", "b")))

    def test_values_pass_through(self):
        r = Record({"a": "1"})
        assert from_python(r) is r

    @pytest.mark.parametrize("bad", [1, 2.5, None, True, object()])
    def test_unsupported_types_raise(self, bad):
        with pytest.raises(TypeError):
            from_python(bad)
