"""
Bulk requests

A bulk request body is newline delimited JSON: an action line per request, followed by the
document for actions that carry one:

    {"index":{"_id":"1","_index":"sample"}}
    {"field":"value"}
    {"delete":{"_id":"2"}}

The response has one item per action, in the same order.
"""

import logging
from datetime import timedelta
from enum import Enum
from typing import Annotated, Any, Iterable, Mapping

from class_doc import extract_docs_from_cls_obj
from pydantic import BaseModel, ConfigDict, Field, field_validator

from simple_elastic.encoding import encode
from simple_elastic.map import Map

logger = logging.getLogger("simple_elastic.bulk")


class BulkActionType(str, Enum):
    #: add or replace a document
    index = "index"

    #: add a document, fails if a document with the same id exists
    create = "create"

    #: remove a document, there is no document line
    delete = "delete"

    #: partially update a document, the document line holds the update ("doc", "script", ...)
    update = "update"

    @property
    def has_document(self) -> bool:
        return self is not BulkActionType.delete


for field, doc in extract_docs_from_cls_obj(BulkActionType).items():
    BulkActionType[field].__doc__ = "\n".join(doc)


class BulkActionRequest:
    """A single action in a bulk request. index, type and id are only sent when given"""

    def __init__(
        self,
        action: BulkActionType | str,
        document: Any = None,
        index: str | None = None,
        type: str | None = None,
        id: Any = None,
    ):
        self.action = BulkActionType(action)
        self.document = document
        self.index = index
        self.type = type
        self.id = id

    def __repr__(self):
        return f"<BulkActionRequest {self.action.value} index={self.index!r} id={self.id!r}>"

    def action_line(self) -> str:
        meta = Map()
        meta.add("_id", self.id, self.id is not None)
        meta.add("_index", self.index, bool(self.index))
        meta.add("_type", self.type, bool(self.type))
        return encode(Map.of(self.action.value, meta))


def encode_bulk(requests: Iterable[BulkActionRequest]) -> str:
    """Serialize bulk requests as NDJSON. Every line, including the last, ends with a newline"""
    lines = []
    for request in requests:
        lines.append(request.action_line() + "\n")
        if request.action.has_document:
            lines.append(encode(request.document) + "\n")
    return "".join(lines)


def innermost_reason(error: Any) -> str | None:
    """Follow the caused_by chain of an error object and return the deepest reason"""
    if error is None or isinstance(error, str):
        return error
    reason = None
    while isinstance(error, Mapping):
        reason = error.get("reason", reason)
        error = error.get("caused_by")
    return reason


class BulkActionResultItem(BaseModel):
    action: BulkActionType | None = None
    id: str | None = None
    index: str | None = None
    type: str | None = None
    version: int | None = None
    status_code: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status_code < 300

    @classmethod
    def parse(cls, item: Mapping[str, Any]) -> "BulkActionResultItem":
        """Parse an item of a bulk response, e.g. {"index": {"_id": "1", "status": 201, ...}}"""
        if len(item) != 1:
            raise ValueError(f"A bulk result item should have a single action, got {list(item)}")
        ((action, result),) = item.items()
        return cls(
            action=BulkActionType(action) if action in BulkActionType.__members__ else None,
            id=result.get("_id"),
            index=result.get("_index"),
            type=result.get("_type"),
            version=result.get("_version"),
            status_code=result.get("status", 0),
            error=innermost_reason(result.get("error")),
        )


class BulkActionResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    took: Annotated[timedelta, Field(description="Time elasticsearch spent on the request")] = timedelta()
    has_errors: Annotated[bool, Field(alias="errors")] = False
    items: list[BulkActionResultItem] = []

    @field_validator("took", mode="before")
    @classmethod
    def took_milliseconds(cls, value: Any) -> Any:
        if isinstance(value, (int, float)):
            return timedelta(milliseconds=value)
        return value

    @field_validator("items", mode="before")
    @classmethod
    def parse_items(cls, value: Any) -> Any:
        return [BulkActionResultItem.parse(item) if isinstance(item, Mapping) else item for item in value or []]

    @property
    def failures(self) -> list[BulkActionResultItem]:
        return [item for item in self.items if not item.ok]

    def log_failures(self) -> None:
        for item in self.failures:
            logger.warning(f"Bulk {item.action and item.action.value} of {item.id} in {item.index} failed "
                           f"with status {item.status_code}: {item.error}")
