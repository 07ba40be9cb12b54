"""
Response models

Small responses (acknowledgements, errors, index information) are validated with pydantic.
Search responses are read from the token stream by the client, see SearchResult.
"""

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from simple_elastic.aggregate import Aggregation, parse_aggregations
from simple_elastic.errors import DecodeError
from simple_elastic.flat import FlatObject, flatten
from simple_elastic.tokens import JsonTokenReader, TokenType


class KeyDocument(BaseModel):
    """Base class for documents that want to know their id. key is filled from _id, and never sent back"""

    key: Annotated[Any, Field(exclude=True)] = None


class ScoreDocument(KeyDocument):
    """Base class for documents that want to know their search score (_score) as well as their id"""

    score: Annotated[float | None, Field(exclude=True)] = None


class AcknowledgeResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    acknowledged: bool = False

    @property
    def properties(self) -> dict[str, Any]:
        """All other members of the response, e.g. shards_acknowledged or index"""
        return dict(self.model_extra or {})


class ErrorDetail(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str | None = None
    reason: str | None = None
    stack_trace: str | None = None

    def __str__(self):
        return f"{self.type}: {self.reason}"


class RootErrorDetail(ErrorDetail):
    root_cause: list[ErrorDetail] = []
    caused_by: ErrorDetail | None = None


class ErrorResult(BaseModel):
    error: RootErrorDetail | None = None
    status: int | None = None

    @field_validator("error", mode="before")
    @classmethod
    def error_string(cls, value: Any) -> Any:
        # older versions and some proxies return the error as a plain string
        if isinstance(value, str):
            return {"reason": value}
        return value


class GetResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: Annotated[Any, Field(alias="_source")] = None
    index: Annotated[str | None, Field(alias="_index")] = None
    type: Annotated[str | None, Field(alias="_type")] = None
    id: Annotated[str | None, Field(alias="_id")] = None
    version: Annotated[int | None, Field(alias="_version")] = None
    found: bool = False
    fields: dict[str, Any] = {}


class IndexSettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    creation_date: Annotated[datetime | None, Field(description="Creation time, sent as unix milliseconds")] = None
    number_of_shards: int | None = None
    number_of_replicas: int | None = None
    uuid: str | None = None

    @field_validator("creation_date", mode="before")
    @classmethod
    def unix_milliseconds(cls, value: Any) -> Any:
        if isinstance(value, str) and value.isdigit():
            value = int(value)
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        return value

    @property
    def properties(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class IndexResult(BaseModel):
    aliases: dict[str, Any] = {}
    mappings: dict[str, Any] = {}
    settings: dict[str, IndexSettings] = {}


class SuggestionResultOption(BaseModel):
    model_config = ConfigDict(extra="allow")

    text: str | None = None
    highlighted: str | None = None
    # term and phrase suggesters send score, completion suggesters _score
    score: Annotated[float | None, Field(validation_alias=AliasChoices("score", "_score"))] = None
    freq: int | None = None


class SuggestionResult(BaseModel):
    text: str | None = None
    offset: int = 0
    length: int = 0
    options: list[SuggestionResultOption] = []


def parse_total(value: Any) -> int:
    """Total hits are a number in older versions and {"value": n, "relation": "eq"} in newer ones"""
    if isinstance(value, dict):
        return int(value.get("value", 0))
    return int(value or 0)


class SearchHit:
    """A single hit: the (validated) source with its id, score and flattened inner hits"""

    def __init__(
        self,
        id: str | None = None,
        score: float | None = None,
        source: Any = None,
        index: str | None = None,
        inner_hits: dict[str, list[FlatObject]] | None = None,
        highlight: dict[str, list[str]] | None = None,
        sort: list[Any] | None = None,
    ):
        self.id = id
        self.score = score
        self.source = source
        self.index = index
        self.inner_hits = inner_hits or {}
        self.highlight = highlight or {}
        self.sort = sort or []

    def __repr__(self):
        return f"<SearchHit id={self.id!r} score={self.score}>"


class SearchResult:
    """
    Result of a search. hits holds the sources of the hits (validated into the source type if one was given),
    raw_hits the full hits with ids, scores and inner hits.
    """

    def __init__(
        self,
        raw_hits: list[SearchHit] | None = None,
        total: int = 0,
        max_score: float | None = None,
        aggregations: dict[str, Aggregation] | None = None,
        suggestions: dict[str, list[SuggestionResult]] | None = None,
        scroll_id: str | None = None,
        took: int = 0,
        timed_out: bool = False,
    ):
        self.raw_hits = raw_hits or []
        self.total = total
        self.max_score = max_score
        self.aggregations = aggregations or {}
        self.suggestions = suggestions or {}
        self.scroll_id = scroll_id
        self.took = took
        self.timed_out = timed_out

    @property
    def hits(self) -> list[Any]:
        return [hit.source for hit in self.raw_hits]

    @property
    def inner_hits(self) -> list[dict[str, list[FlatObject]]]:
        """The flattened inner hits per hit, in the same order as hits"""
        return [hit.inner_hits for hit in self.raw_hits]

    def __len__(self):
        return len(self.raw_hits)

    def __repr__(self):
        return f"<SearchResult total={self.total} hits={len(self.raw_hits)}>"

    @classmethod
    def read(cls, reader: JsonTokenReader, source_type: Any = None) -> "SearchResult":
        """
        Read a search response from the token stream. Hits are validated one at a time as they are read,
        inner hits are flattened straight from the stream.
        """
        if reader.token is None and not reader.read():
            raise DecodeError("Unexpected end of input")
        result = cls()
        for name in reader.members():
            match name:
                case "took":
                    result.took = reader.read_value()
                case "timed_out":
                    result.timed_out = reader.read_value()
                case "_scroll_id":
                    result.scroll_id = reader.read_value()
                case "hits":
                    result._read_hits(reader, source_type)
                case "aggregations":
                    result.aggregations = parse_aggregations(reader.read_value())
                case "suggest":
                    suggest = reader.read_value() or {}
                    result.suggestions = {
                        name: [SuggestionResult.model_validate(s) for s in suggestions]
                        for name, suggestions in suggest.items()
                    }
                case _:
                    reader.skip_value()
        return result

    def _read_hits(self, reader: JsonTokenReader, source_type: Any) -> None:
        for name in reader.members():
            match name:
                case "total":
                    self.total = parse_total(reader.read_value())
                case "max_score":
                    self.max_score = reader.read_value()
                case "hits" if reader.token == TokenType.START_ARRAY:
                    for _ in reader.elements():
                        self.raw_hits.append(_read_hit(reader, source_type))
                case _:
                    reader.skip_value()


def validate_source(source: Any, source_type: Any = None, id: Any = None, score: float | None = None) -> Any:
    """
    Validate a document source into source_type (a pydantic model, FlatObject, or anything pydantic can validate).
    KeyDocuments get the document id as key, ScoreDocuments also get the score.
    """
    if source_type is None or source is None:
        return source
    if isinstance(source_type, type) and issubclass(source_type, BaseModel):
        document = source_type.model_validate(source)
        if isinstance(document, KeyDocument):
            document.key = id
        if isinstance(document, ScoreDocument):
            document.score = score
        return document
    return TypeAdapter(source_type).validate_python(source)


def _read_hit(reader: JsonTokenReader, source_type: Any) -> SearchHit:
    hit = SearchHit()
    source = None
    for name in reader.members():
        match name:
            case "_id":
                hit.id = reader.read_value()
            case "_index":
                hit.index = reader.read_value()
            case "_score":
                hit.score = reader.read_value()
            case "_source":
                source = reader.read_value()
            case "inner_hits" if reader.token == TokenType.START_OBJECT:
                hit.inner_hits = _read_inner_hits(reader)
            case "highlight":
                hit.highlight = reader.read_value() or {}
            case "sort":
                hit.sort = reader.read_value() or []
            case _:
                reader.skip_value()
    hit.source = validate_source(source, source_type, id=hit.id, score=hit.score)
    return hit


def _read_inner_hits(reader: JsonTokenReader) -> dict[str, list[FlatObject]]:
    """Read {"name": {"hits": {"hits": [{"_source": {...}}, ...]}}}, flattening every source"""
    inner_hits: dict[str, list[FlatObject]] = {}
    for name in reader.members():
        documents = inner_hits[name] = []
        if reader.token != TokenType.START_OBJECT:
            reader.skip_value()
            continue
        for member in reader.members():
            if member != "hits" or reader.token != TokenType.START_OBJECT:
                reader.skip_value()
                continue
            for field in reader.members():
                if field != "hits" or reader.token != TokenType.START_ARRAY:
                    reader.skip_value()
                    continue
                for _ in reader.elements():
                    for hit_field in reader.members():
                        if hit_field == "_source" and reader.token == TokenType.START_OBJECT:
                            documents.append(flatten(reader))
                        else:
                            reader.skip_value()
    return inner_hits
