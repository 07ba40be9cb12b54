"""
Aggregate queries

Aggs builds the aggregation part of a search request, Aggregation and AggregationBucket hold
the results:

    aggs = Map(cats=Aggs.terms("cat", size=20, aggs=Map(top=Aggs.top_hits(size=1))))
    result = client.search("index", search_body(size=0, aggregations=aggs))
    for bucket in result.aggregations["cats"].buckets:
        print(bucket.key, bucket.count, bucket.hits)

Documents from top_hits sub-aggregations are flattened (see simple_elastic.flat), so a
bucket's hits are FlatObjects with keys such as "author.name" or "tags.0".
"""

from typing import Any, Iterable, Mapping

from simple_elastic.flat import FlatObject, flatten_value
from simple_elastic.map import Map, is_given


class Aggs:
    """Aggregation DSL builders"""

    @staticmethod
    def _bucket(kind: str, body: Map, aggs: Any) -> Map:
        result = Map.of(kind, body)
        result.add("aggs", aggs, is_given)
        return result

    @staticmethod
    def terms(field: str, size: int | None = None, order: Any = None, aggs: Any = None) -> Map:
        body = Map(field=field)
        body.add("size", size, is_given)
        body.add("order", order, is_given)
        return Aggs._bucket("terms", body, aggs)

    @staticmethod
    def histogram(field: str, interval: float, aggs: Any = None) -> Map:
        return Aggs._bucket("histogram", Map(field=field, interval=interval), aggs)

    @staticmethod
    def date_histogram(field: str, calendar_interval: str, format: str | None = None, aggs: Any = None) -> Map:
        body = Map(field=field, calendar_interval=calendar_interval)
        body.add("format", format, is_given)
        return Aggs._bucket("date_histogram", body, aggs)

    @staticmethod
    def top_hits(size: int | None = None, source: bool | str | Iterable[str] | None = None, sort: Any = None) -> Map:
        body = Map()
        body.add("size", size, is_given)
        body.add("_source", source if isinstance(source, (bool, str, type(None))) else list(source), is_given)
        body.add("sort", sort, is_given)
        return Map(top_hits=body)

    @staticmethod
    def metric(function: str, field: str) -> Map:
        """A single value metric aggregation such as avg, sum, min, max, cardinality or value_count"""
        return Map.of(function, Map(field=field))


class Aggregation:
    """
    Result of a single aggregation.
    Bucket aggregations have buckets, metric aggregations have a value. Anything else that looks like an
    aggregation result (an object) is kept in sub_aggregations.
    """

    def __init__(
        self,
        buckets: list["AggregationBucket"] | None = None,
        doc_count_error_upper_bound: int = 0,
        sum_other_doc_count: int = 0,
        sub_aggregations: dict[str, "Aggregation"] | None = None,
        value: Any = None,
    ):
        self.buckets = buckets or []
        self.doc_count_error_upper_bound = doc_count_error_upper_bound
        self.sum_other_doc_count = sum_other_doc_count
        self.sub_aggregations = sub_aggregations or {}
        self.value = value

    def __repr__(self):
        return f"<Aggregation buckets={len(self.buckets)} value={self.value!r}>"

    @classmethod
    def parse(cls, result: Mapping[str, Any]) -> "Aggregation":
        aggregation = cls()
        for name, value in result.items():
            match name:
                case "doc_count_error_upper_bound":
                    aggregation.doc_count_error_upper_bound = int(value)
                case "sum_other_doc_count":
                    aggregation.sum_other_doc_count = int(value)
                case "value":
                    aggregation.value = value
                case "values" if isinstance(value, Mapping):
                    # multi value metrics such as percentiles
                    aggregation.value = dict(value)
                case "buckets":
                    if isinstance(value, list):
                        aggregation.buckets = [AggregationBucket.parse(b) for b in value]
                    elif isinstance(value, Mapping):
                        # keyed buckets, e.g. from a filters or range aggregation with keyed=true
                        aggregation.buckets = [AggregationBucket.parse({"key": k, **b}) for k, b in value.items()]
                case _:
                    if isinstance(value, Mapping):
                        aggregation.sub_aggregations[name] = cls.parse(value)
        return aggregation


def _top_hits(result: Mapping[str, Any]) -> list[FlatObject] | None:
    """The flattened documents of a top_hits result, or None if result is not a top_hits result"""
    hits = result.get("hits")
    if not isinstance(hits, Mapping) or not isinstance(hits.get("hits"), list):
        return None
    return [flatten_value(hit.get("_source") or {}) for hit in hits["hits"]]


class AggregationBucket:
    """A single bucket: its key, document count, flattened top hits and sub aggregation results"""

    def __init__(
        self,
        key: Any = None,
        count: int = 0,
        hits: list[FlatObject] | None = None,
        sub_aggregations: dict[str, Aggregation] | None = None,
        key_as_string: str | None = None,
    ):
        self.key = key
        self.count = count
        self.hits = hits or []
        self.sub_aggregations = sub_aggregations or {}
        self.key_as_string = key_as_string

    def __repr__(self):
        return f"<AggregationBucket key={self.key!r} count={self.count}>"

    @classmethod
    def parse(cls, result: Mapping[str, Any]) -> "AggregationBucket":
        bucket = cls()
        for name, value in result.items():
            match name:
                case "key":
                    bucket.key = value
                case "key_as_string":
                    bucket.key_as_string = value
                case "doc_count":
                    bucket.count = int(value)
                case _:
                    if not isinstance(value, Mapping):
                        continue
                    if (hits := _top_hits(value)) is not None:
                        bucket.hits.extend(hits)
                    else:
                        bucket.sub_aggregations[name] = Aggregation.parse(value)
        return bucket


def parse_aggregations(aggregations: Mapping[str, Any] | None) -> dict[str, Aggregation]:
    if not aggregations:
        return {}
    return {name: Aggregation.parse(result) for name, result in aggregations.items()}
