"""
Dynamic key/value containers used to build requests

Map is an insertion-ordered mapping from string keys to anything JSON-like. Request builders
use add(key, value, condition) to include optional fields only when they are given:

    body = Map(query=Query.match_all())
    body.add("size", size, size is not None)
    body.add("sort", sort, bool)

Besides the explicit get/set/delete methods, a Map supports item access (body["size"]) and
attribute access (body.size) on the same entries. Attribute access only reaches keys that do
not start with an underscore and are not the name of a Map method.

Table is an ordered list of (label, value) rows which, unlike a Map, may repeat labels.
"""

import json
from typing import Any, Callable, Iterable, Iterator, Mapping

from simple_elastic.errors import DecodeError, InvalidArgumentError, KeyNotFoundError
from simple_elastic.tokens import JsonSource, JsonTokenReader, TokenType

Condition = bool | Callable[[Any], bool]


def is_given(value: Any) -> bool:
    """Condition for Map.add: the value is not None"""
    return value is not None


def _check_key(key: Any) -> str:
    if isinstance(key, tuple):
        raise InvalidArgumentError(f"Index must be a single string, got {len(key)} values")
    if not isinstance(key, str):
        raise InvalidArgumentError(f"Index must be a single string, got {type(key).__name__}")
    return key


def _holds(value: Any, condition: Condition) -> bool:
    if callable(condition):
        return bool(condition(value))
    return bool(condition)


class Map:
    """Insertion-ordered string-keyed container, serialized as a plain JSON object"""

    def __init__(self, entries: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None, **kwargs: Any):
        object.__setattr__(self, "_values", {})
        if entries is not None:
            self.merge(entries)
        self.merge(kwargs)

    @classmethod
    def of(cls, key: str, value: Any) -> "Map":
        """Create a map with a single entry"""
        result = cls()
        result.set(key, value)
        return result

    @classmethod
    def load(cls, value: Mapping[str, Any]) -> "Map":
        """Read the members of a decoded JSON object into a new map (nested objects stay plain dicts)"""
        if not isinstance(value, Mapping):
            raise InvalidArgumentError(f"Can only load a map from an object, got {type(value).__name__}")
        return cls(value)

    @classmethod
    def from_json(cls, text: str | bytes) -> "Map":
        return cls.load(json.loads(text))

    # Canonical interface

    def set(self, key: str, value: Any) -> "Map":
        self._values[_check_key(key)] = value
        return self

    def get(self, key: str) -> Any:
        try:
            return self._values[key]
        except KeyError:
            raise KeyNotFoundError(key) from None

    def try_get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def delete(self, key: str) -> None:
        try:
            del self._values[key]
        except KeyError:
            raise KeyNotFoundError(key) from None

    def contains(self, key: str) -> bool:
        return key in self._values

    def add(self, key: str, value: Any, condition: Condition = True) -> "Map":
        """
        Set key to value if the condition holds.
        The condition is either a boolean, or a predicate that is called with the value.
        """
        if _holds(value, condition):
            self.set(key, value)
        return self

    def merge(self, other: "Map | Mapping[str, Any] | Iterable[tuple[str, Any]]") -> "Map":
        """Copy all entries of other into this map, overwriting existing keys"""
        items = other.items() if callable(getattr(other, "items", None)) else other
        for key, value in items:
            self.set(key, value)
        return self

    def items(self) -> Iterator[tuple[str, Any]]:
        return iter(list(self._values.items()))

    def keys(self) -> list[str]:
        return list(self._values)

    def values(self) -> list[Any]:
        return list(self._values.values())

    def to_dict(self) -> dict[str, Any]:
        return dict(self._values)

    # Python sugar on top of the canonical interface

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        return self.items()

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __getitem__(self, key: str) -> Any:
        return self.get(_check_key(key))

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(_check_key(key), value)

    def __delitem__(self, key: str) -> None:
        self.delete(_check_key(key))

    def __getattr__(self, name: str) -> Any:
        # only called when normal attribute lookup fails
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self.get(name)
        except KeyNotFoundError as e:
            raise AttributeError(f"{type(self).__name__!r} object has no key or attribute {name!r}") from e

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_") or hasattr(type(self), name):
            object.__setattr__(self, name, value)
        else:
            self.set(name, value)

    def __delattr__(self, name: str) -> None:
        if name.startswith("_") or hasattr(type(self), name):
            object.__delattr__(self, name)
            return
        try:
            self.delete(name)
        except KeyNotFoundError as e:
            raise AttributeError(name) from e

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Map):
            return self._values == other._values
        if isinstance(other, Mapping):
            return self._values == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore

    def __repr__(self):
        return f"{type(self).__name__}({self._values!r})"

    def __getstate__(self):
        return self._values

    def __setstate__(self, state):
        object.__setattr__(self, "_values", dict(state))


class Table:
    """
    Ordered (label, value) rows that may repeat labels, e.g. {"one": 1, "one": 2}.
    Serialized as a JSON object with one member per row.
    """

    def __init__(self, rows: Iterable[tuple[str, Any]] = ()):
        self.rows: list[tuple[str, Any]] = []
        for label, value in rows:
            self.add(label, value)

    @classmethod
    def of(cls, label: str, value: Any) -> "Table":
        return cls([(label, value)])

    @classmethod
    def from_json(cls, source: JsonSource) -> "Table | None":
        """Read a JSON object into a table, keeping repeated member names. A JSON null gives None"""
        reader = JsonTokenReader.from_json(source)
        if not reader.read():
            raise DecodeError("Unexpected end of input")
        if reader.token == TokenType.NULL:
            return None
        if reader.token != TokenType.START_OBJECT:
            raise DecodeError(f"Expected an object for a table, got {reader.token}")
        table = cls()
        for label in reader.members():
            table.add(label, reader.read_value())
        return table

    def add(self, label: str, value: Any, condition: Condition = True) -> "Table":
        """Append a row if the condition (a boolean, or a predicate called with the value) holds"""
        if _holds(value, condition):
            self.rows.append((label, value))
        return self

    def items(self) -> Iterator[tuple[str, Any]]:
        return iter(list(self.rows))

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        return self.items()

    def __len__(self) -> int:
        return len(self.rows)

    def __getitem__(self, index: int) -> tuple[str, Any]:
        return self.rows[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Table):
            return NotImplemented
        return self.rows == other.rows

    __hash__ = None  # type: ignore

    def __repr__(self):
        return f"Table({self.rows!r})"
