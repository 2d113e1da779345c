"""
Recursive value model exchanged with the child process.

A value is one of three shapes:

    Scalar      a single opaque text token (one bare line on the wire)
    Record      field name -> value, keeping the order fields were seen
    ValueList   an ordered sequence of values

Values are immutable once constructed.  The codec builds them bottom-up
and hands them to the caller.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple, Union


@dataclass(frozen=True)
class Scalar:
    text: str

    kind = "scalar"

    def __post_init__(self):
        if not isinstance(self.text, str):
            raise TypeError(f"Scalar text must be str, got {type(self.text).__name__}")

    def __str__(self) -> str:
        return self.text

    def to_python(self) -> str:
        return self.text


class Record(Mapping):
    """Read-only mapping of field name to value.

    Iteration follows insertion order, which for decoded records is the
    order the fields appeared on the wire.
    """

    kind = "record"
    __slots__ = ("_fields",)

    def __init__(self, fields: Optional[Union[Mapping, Iterable[Tuple[str, Any]]]] = None):
        items = fields.items() if isinstance(fields, Mapping) else (fields or ())
        converted: Dict[str, "Value"] = {}
        for name, value in items:
            if not isinstance(name, str):
                raise TypeError(f"Record field names must be str, got {type(name).__name__}")
            converted[name] = from_python(value)
        self._fields = converted

    def __getitem__(self, name: str) -> "Value":
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"Record({self._fields!r})"

    @classmethod
    def from_dict(cls, data: Mapping) -> "Record":
        return cls(data)

    def to_dict(self) -> dict:
        return {name: value.to_python() for name, value in self._fields.items()}

    def to_python(self) -> dict:
        return self.to_dict()


class ValueList(Sequence):
    """Read-only ordered sequence of values."""

    kind = "list"
    __slots__ = ("_items",)

    def __init__(self, items: Optional[Iterable[Any]] = None):
        self._items: Tuple["Value", ...] = tuple(from_python(v) for v in (items or ()))

    def __getitem__(self, index):
        if isinstance(index, slice):
            return ValueList(self._items[index])
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ValueList):
            return NotImplemented
        return self._items == other._items

    __hash__ = None

    def __repr__(self) -> str:
        return f"ValueList({list(self._items)!r})"

    def to_python(self) -> list:
        return [item.to_python() for item in self._items]


Value = Union[Scalar, Record, ValueList]


def from_python(obj: Any) -> Value:
    """Convert plain Python data (str, dict, list/tuple) into a Value.

    Existing values pass through unchanged.

    Raises:
        TypeError: For any other type.  The wire carries text only, so
            numbers and other objects must be formatted by the caller.
    """
    if isinstance(obj, (Scalar, Record, ValueList)):
        return obj
    if isinstance(obj, str):
        return Scalar(obj)
    if isinstance(obj, Mapping):
        return Record(obj)
    if isinstance(obj, (list, tuple)):
        return ValueList(obj)
    raise TypeError(f"Cannot convert {type(obj).__name__} to a protocol value")


def is_scalar(value: Value) -> bool:
    return isinstance(value, Scalar)


def is_record(value: Value) -> bool:
    return isinstance(value, Record)


def is_list(value: Value) -> bool:
    return isinstance(value, ValueList)

