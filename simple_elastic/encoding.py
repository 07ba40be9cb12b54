"""
Serializing request values

encode() turns request values into compact JSON: Maps become plain objects holding only their
entries, Tables become objects with one member per row (so labels may repeat), pydantic models
are dumped by alias without None values.

query_string() renders request options as a URL query string.
"""

import base64
import dataclasses
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, Mapping
from urllib.parse import quote

from pydantic import BaseModel

from simple_elastic.map import Map, Table

_dumps = json.JSONEncoder(ensure_ascii=False, separators=(",", ":")).encode


def _scalar(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, Decimal):
        return float(value)
    return value


def to_plain(value: Any) -> Any:
    """
    Convert a request value into plain python (dict, list and JSON scalars).
    Note that a Table with repeated labels cannot be represented as a dict, the last row wins.
    Use encode() to keep all rows.
    """
    if isinstance(value, (Map, Table)):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, BaseModel):
        return to_plain(value.model_dump(by_alias=True, exclude_none=True))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_plain(dataclasses.asdict(value))
    if isinstance(value, Mapping):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_plain(v) for v in value]
    return _scalar(value)


def _iterencode(value: Any) -> Iterator[str]:
    if isinstance(value, (Map, Table)) or isinstance(value, Mapping):
        yield "{"
        for i, (key, item) in enumerate(value.items()):
            if i:
                yield ","
            yield _dumps(str(key))
            yield ":"
            yield from _iterencode(item)
        yield "}"
    elif isinstance(value, BaseModel):
        yield from _iterencode(value.model_dump(by_alias=True, exclude_none=True))
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        yield from _iterencode(dataclasses.asdict(value))
    elif isinstance(value, (list, tuple, set, frozenset)):
        yield "["
        for i, item in enumerate(value):
            if i:
                yield ","
            yield from _iterencode(item)
        yield "]"
    else:
        yield _dumps(_scalar(value))


def encode(value: Any) -> str:
    """Serialize a request value (Map, Table, dict, list, pydantic model, scalar) as compact JSON"""
    return "".join(_iterencode(value))


def _option_value(value: Any) -> str:
    value = _scalar(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_option_value(v) for v in value)
    return str(value)


def _option_items(options: Any) -> list[tuple[str, Any]]:
    if isinstance(options, (Map, Mapping)):
        return list(options.items())
    if isinstance(options, BaseModel):
        return sorted(options.model_dump(by_alias=True).items())
    if dataclasses.is_dataclass(options) and not isinstance(options, type):
        return sorted((f.name, getattr(options, f.name)) for f in dataclasses.fields(options))
    return sorted((k, v) for k, v in vars(options).items() if not k.startswith("_"))


def query_string(options: Any) -> str:
    """
    Render request options such as {"refresh": True, "size": 10} as "?refresh=true&size=10".
    Mappings keep their order, the attributes of other objects are sorted by name.
    None values are left out; if nothing is left the result is the empty string.
    """
    if options is None:
        return ""
    parts = [
        f"{quote(str(key), safe='_.-')}={quote(_option_value(value), safe='_.-,*:')}"
        for key, value in _option_items(options)
        if value is not None
    ]
    if not parts:
        return ""
    return "?" + "&".join(parts)
