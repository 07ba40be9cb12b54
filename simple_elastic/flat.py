"""
Flattening decoder

Turns a (possibly deeply nested) JSON object into a flat mapping of path -> scalar value, e.g.

    {"obj": [{"a": 1, "b": true}, {"a": 2, "c": ["x", 3]}]}

becomes

    {"obj.0.a": 1, "obj.0.b": True, "obj.1.a": 2, "obj.1.c.0": "x", "obj.1.c.1": 3}

The decoder reads a token stream in a single pass. It keeps its state in the two stacks of a
PathTracker instead of recursing, so deeply nested documents do not need a deep call stack.
"""

from datetime import date, datetime
from typing import Any, Iterable, Iterator, Mapping

from pydantic_core import core_schema

from simple_elastic.errors import DecodeError
from simple_elastic.paths import PathTracker
from simple_elastic.tokens import SCALAR_TOKENS, JsonSource, JsonTokenReader, TokenType

Scalar = str | int | float | bool | bytes | datetime | date | None


class FlatObject(Mapping[str, Scalar]):
    """
    Read-only mapping of dot-joined field paths to scalar values, as produced by flatten().
    A JSON null is stored as None, which is different from the path being absent.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Scalar] | Iterable[tuple[str, Scalar]] = ()):
        self._values: dict[str, Scalar] = dict(values)

    def __getitem__(self, key: str) -> Scalar:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self):
        return f"FlatObject({self._values!r})"

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type, handler):
        return core_schema.no_info_plain_validator_function(
            as_flat_object,
            serialization=core_schema.plain_serializer_function_ser_schema(dict),
        )


def flatten(reader: JsonTokenReader) -> FlatObject:
    """
    Flatten the object at the current position of the reader.
    The reader should be on the start of an object, or not be started yet. When this returns,
    the reader is positioned on the matching end of that object.

    :raises DecodeError: if the input is not an object, ends before the object is closed,
                         or if two values end up with the same path (e.g. {"a.b": 1, "a": {"b": 2}})
    """
    if reader.token is None and not reader.read():
        raise DecodeError("Unexpected end of input")
    if reader.token != TokenType.START_OBJECT:
        raise DecodeError(f"Can only flatten objects, got {reader.token}")
    start_depth = reader.depth
    result: dict[str, Scalar] = {}
    path = PathTracker()
    while reader.read():
        token = reader.token
        if token == TokenType.START_ARRAY:
            path.enter_array(reader.depth)
        elif token == TokenType.END_ARRAY:
            path.exit_array(reader.depth)
        elif token == TokenType.PROPERTY_NAME:
            path.enter_object_field(reader.value)
        elif token in SCALAR_TOKENS:
            key = path.current_path()
            if key in result:
                raise DecodeError(f"Duplicate key {key!r}")
            result[key] = reader.value
            path.leaf_consumed(reader.depth)
        elif token == TokenType.END_OBJECT:
            if reader.depth == start_depth:
                return FlatObject(result)
            path.exit_object(reader.depth)
    raise DecodeError("Unexpected end of input")


def flatten_json(source: JsonSource, parse_dates: bool = False) -> FlatObject:
    """Flatten a JSON object given as text, bytes or a (binary) file-like object"""
    return flatten(JsonTokenReader.from_json(source, parse_dates=parse_dates))


def flatten_value(value: Mapping[str, Any]) -> FlatObject:
    """Flatten an already decoded object (a dict, Map or other mapping)"""
    return flatten(JsonTokenReader.from_value(value))


def as_flat_object(value: Any) -> FlatObject:
    if isinstance(value, FlatObject):
        return value
    if isinstance(value, (str, bytes, bytearray)):
        return flatten_json(value)
    if callable(getattr(value, "items", None)):
        return flatten_value(value)
    raise ValueError(f"Cannot flatten a value of type {type(value).__name__}")
