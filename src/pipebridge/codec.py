"""
Nested line-oriented codec for the child process pipe.

Every value is one or more lines terminated by ``\\n``:

    scalar      the bare line itself
    record      ``{`` then field/value pairs, closed by ``}``
    list        ``[`` then values, closed by ``]``

A top-level message (request or response) is a record body closed by an
empty line instead of ``}``.  A request is additionally prefixed by its
id line:

    <id>
    <field>
    <value>
    ...
    <empty line>

Markers are whole-line matches.  Decoding is lenient: any line that is
not a marker is a scalar.  Encoding refuses values the format cannot
carry (see ``check_value``) so a bad payload is rejected before it
reaches the pipe.
"""

from typing import BinaryIO, Tuple

from .errors import PipeError, ProtocolError
from .values import Record, Scalar, Value, ValueList

OPEN_RECORD = "{"
CLOSE_RECORD = "}"
OPEN_LIST = "["
CLOSE_LIST = "]"
END_OF_MESSAGE = ""

DEFAULT_ENCODING = "utf-8"

_LIST_END = Scalar(CLOSE_LIST)


# -- Reading -----------------------------------------------------------------

def read_line(stream: BinaryIO, encoding: str = DEFAULT_ENCODING) -> str:
    """Read one line and return its text without the terminator.

    Raises:
        PipeError: If the stream ends before a line terminator.
    """
    raw = stream.readline()
    if not raw.endswith(b"\n"):
        raise PipeError(
            "Pipe closed before end of line"
            + (f" (partial line: {raw[:80]!r})" if raw else "")
        )
    return raw.decode(encoding).rstrip("\r\n")


def read_value(stream: BinaryIO, encoding: str = DEFAULT_ENCODING) -> Value:
    line = read_line(stream, encoding)
    if line == OPEN_RECORD:
        return read_record(stream, CLOSE_RECORD, encoding)
    if line == OPEN_LIST:
        return read_list(stream, encoding)
    return Scalar(line)


def read_record(stream: BinaryIO, end: str, encoding: str = DEFAULT_ENCODING) -> Record:
    """Read field/value pairs until a field line equal to ``end``.

    ``end`` is ``}`` for a nested record and the empty string for a
    top-level message.
    """
    fields = []
    while True:
        name = read_line(stream, encoding)
        if name == end:
            break
        fields.append((name, read_value(stream, encoding)))
    return Record(fields)


def read_list(stream: BinaryIO, encoding: str = DEFAULT_ENCODING) -> ValueList:
    items = []
    while True:
        value = read_value(stream, encoding)
        if value == _LIST_END:
            break
        items.append(value)
    return ValueList(items)


def read_response(stream: BinaryIO, encoding: str = DEFAULT_ENCODING) -> Record:
    """Read one top-level response record (closed by an empty line)."""
    return read_record(stream, END_OF_MESSAGE, encoding)


def read_request(stream: BinaryIO, encoding: str = DEFAULT_ENCODING) -> Tuple[str, Record]:
    """Read one request as the child sees it: the id line, then the payload."""
    call_id = read_line(stream, encoding)
    return call_id, read_record(stream, END_OF_MESSAGE, encoding)


# -- Writing -----------------------------------------------------------------

def _write_line(stream: BinaryIO, text: str, encoding: str) -> None:
    stream.write(text.encode(encoding) + b"\n")


def write_value(stream: BinaryIO, value: Value, encoding: str = DEFAULT_ENCODING) -> None:
    if isinstance(value, Scalar):
        _write_line(stream, value.text, encoding)
    elif isinstance(value, Record):
        _write_line(stream, OPEN_RECORD, encoding)
        write_record(stream, value, CLOSE_RECORD, encoding)
    elif isinstance(value, ValueList):
        _write_line(stream, OPEN_LIST, encoding)
        for item in value:
            write_value(stream, item, encoding)
        _write_line(stream, CLOSE_LIST, encoding)
    else:
        raise TypeError(f"Not a protocol value: {value!r}")


def write_record(stream: BinaryIO, record: Record, end: str, encoding: str = DEFAULT_ENCODING) -> None:
    """Write each field line followed by its value, then the ``end`` line."""
    for name, value in record.items():
        _write_line(stream, name, encoding)
        write_value(stream, value, encoding)
    _write_line(stream, end, encoding)


def write_response(stream: BinaryIO, record: Record, encoding: str = DEFAULT_ENCODING) -> None:
    write_record(stream, record, END_OF_MESSAGE, encoding)


def write_request(stream: BinaryIO, call, encoding: str = DEFAULT_ENCODING) -> None:
    """Write a pending call: its id line, then its payload as a message body.

    Does not flush; the caller owns the stream.
    """
    _write_line(stream, call.id, encoding)
    write_record(stream, call.payload, END_OF_MESSAGE, encoding)


# -- Encodability ------------------------------------------------------------

def _check_line(text: str, what: str) -> None:
    if "\n" in text or "\r" in text:
        raise ProtocolError(f"{what} contains a line break: {text!r}")


def check_value(value: Value, in_list: bool = False) -> None:
    """Raise ProtocolError if ``value`` would not decode back to itself.

    A scalar may not contain line breaks or equal an opening marker, and
    inside a list it may not equal the list terminator.  A field name may
    not equal the terminator of the record that holds it.
    """
    if isinstance(value, Scalar):
        _check_line(value.text, "Scalar")
        if value.text in (OPEN_RECORD, OPEN_LIST):
            raise ProtocolError(f"Scalar {value.text!r} would be read as a marker")
        if in_list and value.text == CLOSE_LIST:
            raise ProtocolError(f"Scalar {CLOSE_LIST!r} cannot appear in a list")
    elif isinstance(value, Record):
        check_record(value, CLOSE_RECORD)
    elif isinstance(value, ValueList):
        for item in value:
            check_value(item, in_list=True)
    else:
        raise TypeError(f"Not a protocol value: {value!r}")


def check_record(record: Record, end: str) -> None:
    for name, value in record.items():
        _check_line(name, "Field name")
        if name == end:
            raise ProtocolError(f"Field name {name!r} collides with the record terminator")
        check_value(value)


def check_request(call) -> None:
    """Raise ProtocolError if the call cannot be written as one request."""
    _check_line(call.id, "Call id")
    check_record(call.payload, END_OF_MESSAGE)
