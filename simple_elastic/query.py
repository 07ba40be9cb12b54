"""
All things query

Builders for the query part of a search request. They return Map trees which encode to
the query DSL, e.g.

    Query.bool(filter=[Query.term("cat", "a"), Query.range("date", gte="2018-01-01")])

Only the commonly used queries are covered, anything else can be written as a Map or dict.
"""

from typing import Any, Iterable, Sequence

from simple_elastic.errors import InvalidArgumentError
from simple_elastic.map import Map, is_given


def _one_or_many(queries: Any) -> Any:
    if isinstance(queries, (list, tuple)):
        return list(queries)
    return queries


class Query:
    """Query DSL builders"""

    @staticmethod
    def term(field: str, value: Any, boost: float | None = None) -> Map:
        """A term query, finding documents that contain the exact term in the inverted index"""
        if boost is not None:
            return Map(term=Map.of(field, Map(value=value, boost=boost)))
        return Map(term=Map.of(field, value))

    @staticmethod
    def terms(field: str, values: Iterable[Any], boost: float | None = None) -> Map:
        """A terms query, finding documents that match any of the given exact terms"""
        terms = Map.of(field, list(values))
        terms.add("boost", boost, is_given)
        return Map(terms=terms)

    @staticmethod
    def terms_lookup(
        field: str,
        index: str,
        id: Any,
        path: str,
        type: str | None = None,
        boost: float | None = None,
        routing: str | None = None,
    ) -> Map:
        """
        A terms query that takes its terms from a field of another document.
        Internally elasticsearch gets the document with the given id from the index,
        and uses the values at path as terms.
        """
        for name, value in [("index", index), ("id", id), ("path", path)]:
            if value is None:
                raise InvalidArgumentError(f"{name} is required for a terms lookup")
        lookup = Map(index=index, id=id, path=path)
        lookup.add("type", type, is_given)
        lookup.add("routing", routing, is_given)
        terms = Map.of(field, lookup)
        terms.add("boost", boost, is_given)
        return Map(terms=terms)

    @staticmethod
    def match_all() -> Map:
        return Map(match_all=Map())

    @staticmethod
    def match(field: str, text: str, **options: Any) -> Map:
        if not options:
            return Map(match=Map.of(field, text))
        return Map(match=Map.of(field, Map(query=text, **options)))

    @staticmethod
    def query_string(query: str, **options: Any) -> Map:
        return Map(query_string=Map(query=query, **options))

    @staticmethod
    def exists(field: str) -> Map:
        return Map(exists=Map(field=field))

    @staticmethod
    def ids(values: Iterable[Any]) -> Map:
        return Map(ids=Map(values=list(values)))

    @staticmethod
    def range(
        field: str,
        gt: Any = None,
        gte: Any = None,
        lt: Any = None,
        lte: Any = None,
        format: str | None = None,
    ) -> Map:
        bounds = Map()
        for name, value in [("gt", gt), ("gte", gte), ("lt", lt), ("lte", lte)]:
            bounds.add(name, value, is_given)
        if not len(bounds):
            raise InvalidArgumentError(f"Range query on {field} needs at least one bound")
        bounds.add("format", format, is_given)
        return Map(range=Map.of(field, bounds))

    @staticmethod
    def bool(
        must: Any = None,
        filter: Any = None,
        should: Any = None,
        must_not: Any = None,
        minimum_should_match: int | str | None = None,
    ) -> Map:
        clauses = Map()
        clauses.add("must", _one_or_many(must), is_given)
        clauses.add("filter", _one_or_many(filter), is_given)
        clauses.add("should", _one_or_many(should), is_given)
        clauses.add("must_not", _one_or_many(must_not), is_given)
        clauses.add("minimum_should_match", minimum_should_match, is_given)
        return Map(bool=clauses)


def search_body(
    query: Any = None,
    *,
    size: int | None = None,
    from_: int | None = None,
    sort: Sequence[Any] | None = None,
    source: bool | Sequence[str] | None = None,
    aggregations: Any = None,
    highlight: Any = None,
    track_total_hits: bool | int | None = None,
) -> Map:
    """
    Build the body of a search request. Arguments that are None are left out,
    a search without a query matches all documents.
    """
    body = Map(query=query if query is not None else Query.match_all())
    body.add("size", size, is_given)
    body.add("from", from_, is_given)
    body.add("sort", list(sort or []), bool)
    body.add("_source", source, is_given)
    body.add("aggs", aggregations, is_given)
    body.add("highlight", highlight, is_given)
    body.add("track_total_hits", track_total_hits, is_given)
    return body
