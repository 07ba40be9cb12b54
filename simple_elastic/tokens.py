"""
Forward-only JSON token reader

The reader walks a JSON document token by token and keeps track of the nesting depth, which is
all the flattening decoder needs to know about its position in the document. Depth follows the
usual convention:
- a start token has the depth of the position it opens at (the root '{' is depth 0)
- an end token has the depth after it closes
- property names and values have the depth of the container they are in

So in {"a": {"b": 1}} the root object is at depth 0, "a" at depth 1, the inner object opens
at depth 1, and "b" and its value 1 are at depth 2.

Tokens come either from JSON text (parsed incrementally with ijson, so an HTTP body can be read
as a stream) or from an already decoded python value.
"""

import io
import re
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from itertools import chain
from typing import IO, Any, Iterable, Iterator, NamedTuple

import ijson
from ijson.common import ObjectBuilder

from simple_elastic.errors import DecodeError


class TokenType(Enum):
    START_OBJECT = "start_object"
    END_OBJECT = "end_object"
    START_ARRAY = "start_array"
    END_ARRAY = "end_array"
    PROPERTY_NAME = "property_name"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    NULL = "null"
    DATE = "date"
    BYTES = "bytes"


SCALAR_TOKENS = frozenset(
    {
        TokenType.STRING,
        TokenType.INTEGER,
        TokenType.FLOAT,
        TokenType.BOOLEAN,
        TokenType.NULL,
        TokenType.DATE,
        TokenType.BYTES,
    }
)


class Token(NamedTuple):
    type: TokenType
    value: Any = None


_IJSON_EVENTS = {
    "start_map": TokenType.START_OBJECT,
    "end_map": TokenType.END_OBJECT,
    "start_array": TokenType.START_ARRAY,
    "end_array": TokenType.END_ARRAY,
    "map_key": TokenType.PROPERTY_NAME,
    "string": TokenType.STRING,
    "boolean": TokenType.BOOLEAN,
    "null": TokenType.NULL,
}

# ObjectBuilder only cares about container events, everything else is a value
_BUILDER_EVENTS = {
    TokenType.START_OBJECT: "start_map",
    TokenType.END_OBJECT: "end_map",
    TokenType.START_ARRAY: "start_array",
    TokenType.END_ARRAY: "end_array",
    TokenType.PROPERTY_NAME: "map_key",
}

_ISO_TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?$")

JsonSource = str | bytes | bytearray | IO


def parse_timestamp(value: str) -> datetime | None:
    """Return the datetime for an ISO-8601 timestamp string, or None if it isn't one"""
    if not _ISO_TIMESTAMP.match(value):
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def json_tokens(source: JsonSource, parse_dates: bool = False) -> Iterator[Token]:
    """
    Tokenize JSON text incrementally.
    Numbers keep their kind: integers become INTEGER tokens with an int, everything else FLOAT with a float.
    If parse_dates is True, strings that look like ISO timestamps become DATE tokens.
    """
    if isinstance(source, str):
        source = source.encode("utf-8")
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    try:
        for event, value in ijson.basic_parse(source, use_float=True):
            if event in ("number", "integer", "double"):
                yield Token(TokenType.INTEGER if isinstance(value, int) else TokenType.FLOAT, value)
            elif event == "string" and parse_dates and (timestamp := parse_timestamp(value)) is not None:
                yield Token(TokenType.DATE, timestamp)
            else:
                yield Token(_IJSON_EVENTS[event], value)
    except ijson.JSONError as e:
        raise DecodeError(f"Malformed JSON input: {e}") from e


def _scalar_token(value: Any) -> Token:
    if value is None:
        return Token(TokenType.NULL)
    if isinstance(value, bool):
        return Token(TokenType.BOOLEAN, value)
    if isinstance(value, Enum):
        return _scalar_token(value.value)
    if isinstance(value, int):
        return Token(TokenType.INTEGER, value)
    if isinstance(value, (float, Decimal)):
        return Token(TokenType.FLOAT, float(value))
    if isinstance(value, str):
        return Token(TokenType.STRING, value)
    if isinstance(value, (bytes, bytearray)):
        return Token(TokenType.BYTES, bytes(value))
    if isinstance(value, (datetime, date)):
        return Token(TokenType.DATE, value)
    raise DecodeError(f"Cannot read a value of type {type(value).__name__} as JSON")


def _members(pairs: Iterable[tuple[str, Any]]) -> Iterator[Any]:
    for key, item in pairs:
        yield Token(TokenType.PROPERTY_NAME, key)
        yield item


def value_tokens(value: Any) -> Iterator[Token]:
    """
    Tokenize an already decoded value. Anything with an items() method (dict, Map, Table) is an object,
    lists and tuples are arrays. The walk uses an explicit stack, so nesting depth is not limited by recursion.
    """
    stack: list[Iterator[Any]] = [iter((value,))]
    while stack:
        try:
            item = next(stack[-1])
        except StopIteration:
            stack.pop()
            continue
        if isinstance(item, Token):
            yield item
        elif callable(getattr(item, "items", None)):
            yield Token(TokenType.START_OBJECT)
            stack.append(chain(_members(item.items()), (Token(TokenType.END_OBJECT),)))
        elif isinstance(item, (list, tuple)):
            yield Token(TokenType.START_ARRAY)
            stack.append(chain(item, (Token(TokenType.END_ARRAY),)))
        else:
            yield _scalar_token(item)


class JsonTokenReader:
    """
    Reads tokens one at a time. After a successful read(), token, value and depth describe the current token.
    """

    def __init__(self, tokens: Iterable[Token]):
        self._tokens = iter(tokens)
        self._open = 0
        self.token: TokenType | None = None
        self.value: Any = None
        self.depth = 0

    @classmethod
    def from_json(cls, source: JsonSource, parse_dates: bool = False) -> "JsonTokenReader":
        return cls(json_tokens(source, parse_dates=parse_dates))

    @classmethod
    def from_value(cls, value: Any) -> "JsonTokenReader":
        return cls(value_tokens(value))

    def __repr__(self):
        return f"<JsonTokenReader token={self.token} depth={self.depth}>"

    def read(self) -> bool:
        """Advance to the next token. Returns False at the end of the input"""
        try:
            token = next(self._tokens)
        except StopIteration:
            self.token = None
            self.value = None
            return False
        if token.type in (TokenType.START_OBJECT, TokenType.START_ARRAY):
            self.depth = self._open
            self._open += 1
        elif token.type in (TokenType.END_OBJECT, TokenType.END_ARRAY):
            self._open -= 1
            self.depth = self._open
        else:
            self.depth = self._open
        self.token, self.value = token.type, token.value
        return True

    def read_value(self) -> Any:
        """
        Materialize the value that starts at the current token as plain python objects.
        Afterwards the reader is positioned on the last token of that value.
        """
        if self.token in SCALAR_TOKENS:
            return self.value
        if self.token not in (TokenType.START_OBJECT, TokenType.START_ARRAY):
            raise DecodeError(f"Expected the start of a value, got {self.token}")
        builder = ObjectBuilder()
        start_depth = self.depth
        while True:
            builder.event(_BUILDER_EVENTS.get(self.token, "value"), self.value)
            if self.token in (TokenType.END_OBJECT, TokenType.END_ARRAY) and self.depth == start_depth:
                return builder.value
            if not self.read():
                raise DecodeError("Unexpected end of input")

    def skip_value(self) -> None:
        """Move past the value that starts at the current token without building it"""
        if self.token not in (TokenType.START_OBJECT, TokenType.START_ARRAY):
            return
        start_depth = self.depth
        while self.read():
            if self.token in (TokenType.END_OBJECT, TokenType.END_ARRAY) and self.depth == start_depth:
                return
        raise DecodeError("Unexpected end of input")

    def members(self) -> Iterator[str]:
        """
        Iterate over the members of the object at the current token. For every member, the name is yielded with
        the reader positioned on the first token of its value. The caller must consume that value (read_value,
        skip_value, or a decoder such as flatten) before asking for the next member.
        """
        if self.token != TokenType.START_OBJECT:
            raise DecodeError(f"Expected the start of an object, got {self.token}")
        start_depth = self.depth
        while self.read():
            if self.token == TokenType.END_OBJECT and self.depth == start_depth:
                return
            if self.token != TokenType.PROPERTY_NAME:
                raise DecodeError(f"Expected a property name, got {self.token}")
            name = self.value
            if not self.read():
                break
            yield name
        raise DecodeError("Unexpected end of input")

    def elements(self) -> Iterator[int]:
        """Like members, but for the elements of the array at the current token. Yields element indices"""
        if self.token != TokenType.START_ARRAY:
            raise DecodeError(f"Expected the start of an array, got {self.token}")
        start_depth = self.depth
        index = 0
        while self.read():
            if self.token == TokenType.END_ARRAY and self.depth == start_depth:
                return
            yield index
            index += 1
        raise DecodeError("Unexpected end of input")
