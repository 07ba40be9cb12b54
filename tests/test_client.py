import requests
import responses
from pytest import raises

from simple_elastic.bulk import BulkActionRequest, BulkActionType
from simple_elastic.client import ClientOptions, ElasticClient
from simple_elastic.errors import BulkActionError, ElasticHttpError, InvalidArgumentError
from simple_elastic.flat import FlatObject
from simple_elastic.hosts import HostPoolProvider, SingleHostProvider
from simple_elastic.map import Map
from simple_elastic.models import KeyDocument
from simple_elastic.query import Query, search_body
from tests.conftest import HOST
from tests.tools import body, ndjson

SEARCH_RESPONSE = {
    "took": 1,
    "hits": {
        "total": {"value": 1, "relation": "eq"},
        "max_score": 1.0,
        "hits": [{"_index": "test", "_id": "1", "_score": 1.0, "_source": {"title": "a", "meta": {"x": [1, 2]}}}],
    },
}


class Article(KeyDocument):
    title: str


def test_options():
    assert isinstance(ClientOptions(hosts="http://a:9200").host_provider, SingleHostProvider)
    assert isinstance(ClientOptions(hosts=["http://a:9200", "http://b:9200"]).host_provider, HostPoolProvider)
    provider = SingleHostProvider("http://c:9200")
    assert ClientOptions(host_provider=provider).host_provider is provider
    with raises(InvalidArgumentError):
        ClientOptions()


def test_search_without_query(client, mocked):
    mocked.add(responses.GET, f"{HOST}test/_search", json=SEARCH_RESPONSE)
    result = client.search("test")
    assert result.total == 1
    assert result.hits == [{"title": "a", "meta": {"x": [1, 2]}}]
    assert mocked.calls[0].request.body is None


def test_search_with_query(client, mocked):
    mocked.add(responses.POST, f"{HOST}test/_search", json=SEARCH_RESPONSE)
    result = client.search("test", search_body(Query.term("cat", "a"), size=1), options={"scroll": "1m"},
                           source_type=FlatObject)
    assert result.hits == [{"title": "a", "meta.x.0": 1, "meta.x.1": 2}]
    request = mocked.calls[0].request
    assert request.url == f"{HOST}test/_search?scroll=1m"
    assert request.headers["Content-Type"] == "application/json"
    assert body(mocked.calls[0]) == {"query": {"term": {"cat": "a"}}, "size": 1}


def test_search_all_indices(client, mocked):
    mocked.add(responses.POST, f"{HOST}_search", json=SEARCH_RESPONSE)
    result = client.search(None, Map(query=Query.match_all()), source_type=Article)
    (article,) = result.hits
    assert (article.title, article.key) == ("a", "1")


def test_http_error(client, mocked):
    error = {"error": {"root_cause": [], "type": "parsing_exception", "reason": "bad query"}, "status": 400}
    mocked.add(responses.POST, f"{HOST}test/_search", json=error, status=400)
    with raises(ElasticHttpError) as e:
        client.search("test", {"query": {"bad": {}}})
    assert str(e.value) == "Error 400, parsing_exception: bad query"
    assert e.value.error_result.status == 400
    assert e.value.response.status_code == 400
    assert isinstance(e.value, requests.HTTPError)


def test_http_error_without_body(client, mocked):
    mocked.add(responses.DELETE, f"{HOST}test", body="gateway down", status=502)
    with raises(ElasticHttpError) as e:
        client.delete_index("test")
    assert e.value.error_result is None
    assert str(e.value).startswith("Error 502")


def test_get(client, mocked):
    doc = {"_index": "test", "_type": "_doc", "_id": "a/1", "_version": 1, "found": True, "_source": {"title": "x"}}
    mocked.add(responses.GET, f"{HOST}test/_doc/a%2F1", json=doc)
    result = client.get("test", "_doc", "a/1", source_type=Article)
    assert result.found
    assert (result.source.title, result.source.key) == ("x", "a/1")


def test_get_missing(client, mocked):
    mocked.add(responses.GET, f"{HOST}test/_doc/2", json={"_index": "test", "_id": "2", "found": False}, status=404)
    with raises(ElasticHttpError):
        client.get("test", "_doc", 2)


def test_get_source(client, mocked):
    mocked.add(responses.GET, f"{HOST}test/_doc/1/_source", json={"title": "x", "meta": {"a": 1}})
    assert client.get_source("test", "_doc", 1) == {"title": "x", "meta": {"a": 1}}
    mocked.add(responses.GET, f"{HOST}test/_doc/1/_source", json={"title": "x", "meta": {"a": 1}})
    assert client.get_source("test", "_doc", 1, source_type=FlatObject) == {"title": "x", "meta.a": 1}


def test_indices(client, mocked):
    mocked.add(responses.PUT, f"{HOST}test", json={"acknowledged": True, "shards_acknowledged": True, "index": "test"})
    mocked.add(responses.HEAD, f"{HOST}test", status=200)
    mocked.add(responses.HEAD, f"{HOST}missing", status=404)
    mocked.add(responses.POST, f"{HOST}test/_close", json={"acknowledged": True})
    mocked.add(responses.POST, f"{HOST}test/_open", json={"acknowledged": True})
    mocked.add(responses.DELETE, f"{HOST}test", json={"acknowledged": True})

    result = client.create_index("test", Map(settings=Map(number_of_shards=1)))
    assert result.acknowledged
    assert result.properties["index"] == "test"
    assert body(mocked.calls[0]) == {"settings": {"number_of_shards": 1}}
    assert client.index_exists("test")
    assert not client.index_exists("missing")
    assert client.close_index("test").acknowledged
    assert client.open_index("test").acknowledged
    assert client.delete_index("test").acknowledged


def test_get_index(client, mocked):
    info = {"test": {"aliases": {}, "mappings": {}, "settings": {"index": {"creation_date": "1530000000000"}}}}
    mocked.add(responses.GET, f"{HOST}test", json=info)
    result = client.get_index("test")
    assert result["test"].settings["index"].creation_date.year == 2018


def test_bulk(client, mocked):
    mocked.add(responses.POST, f"{HOST}test/_doc/_bulk", json={"took": 2, "errors": False, "items": [
        {"index": {"_id": "1", "status": 201}},
        {"index": {"_id": "x", "status": 201}},
    ]})
    docs = [Article(key="1", title="a"), {"title": "b"}]
    result = client.bulk("test", "_doc", BulkActionType.index, docs, options={"refresh": True})
    assert not result.has_errors
    assert [item.id for item in result.items] == ["1", "x"]
    request = mocked.calls[0].request
    assert request.url == f"{HOST}test/_doc/_bulk?refresh=true"
    assert request.headers["Content-Type"] == "application/x-ndjson"
    expected = ndjson([{"index": {"_id": "1"}}, {"title": "a"}, {"index": {}}, {"title": "b"}])
    assert request.body.decode("utf-8") == expected


def test_bulk_delete(client, mocked):
    mocked.add(responses.POST, f"{HOST}test/_bulk", json={"took": 2, "errors": False, "items": []})
    client.bulk("test", None, "delete", [Article(key="1", title="a"), "2"])
    assert mocked.calls[0].request.body.decode("utf-8") == ndjson([{"delete": {"_id": "1"}}, {"delete": {"_id": "2"}}])


def test_bulk_failures(client, mocked):
    response = {"took": 2, "errors": True, "items": [
        {"create": {"_id": "1", "status": 409, "error": {"type": "version_conflict_engine_exception",
                                                         "reason": "document already exists"}}},
        {"create": {"_id": "2", "status": 201}},
    ]}
    mocked.add(responses.POST, f"{HOST}test/_doc/_bulk", json=response)
    mocked.add(responses.POST, f"{HOST}test/_doc/_bulk", json=response)
    with raises(BulkActionError) as e:
        client.bulk("test", "_doc", "create", [{"a": 1}, {"a": 2}])
    assert [item.error for item in e.value.result.failures] == ["document already exists"]
    result = client.bulk("test", "_doc", "create", [{"a": 1}, {"a": 2}], raise_on_failure=False)
    assert result.has_errors


def test_bulk_without_documents(client, mocked):
    result = client.bulk("test", "_doc", "index", [])
    assert result.items == []
    assert not result.has_errors
    assert len(mocked.calls) == 0
    with raises(InvalidArgumentError):
        client.bulk("", "_doc", "index", [{"a": 1}])


def test_bulk_requests(client, mocked):
    mocked.add(responses.POST, f"{HOST}_bulk", json={"took": 1, "errors": False, "items": []})
    requests_ = [
        BulkActionRequest("index", {"a": 1}, index="one", id="1"),
        BulkActionRequest("delete", index="two", id="2"),
    ]
    client.bulk_requests(None, requests_)
    assert mocked.calls[0].request.body.decode("utf-8") == ndjson(
        [{"index": {"_id": "1", "_index": "one"}}, {"a": 1}, {"delete": {"_id": "2", "_index": "two"}}]
    )


def test_round_robin(mocked):
    client = ElasticClient(ClientOptions(hosts=["http://a:9200", "http://b:9200"]))
    mocked.add(responses.HEAD, "http://a:9200/test", status=200)
    mocked.add(responses.HEAD, "http://b:9200/test", status=200)
    assert client.index_exists("test")
    assert client.index_exists("test")
    assert [call.request.url for call in mocked.calls] == ["http://a:9200/test", "http://b:9200/test"]


def test_from_settings(mocked):
    client = ElasticClient()
    assert client.options.host_provider.next() == "http://localhost:9200/"
    client = ElasticClient("http://es:9200")
    mocked.add(responses.HEAD, "http://es:9200/test", status=404)
    assert not client.index_exists("test")


def test_logging(client, mocked, caplog):
    mocked.add(responses.HEAD, f"{HOST}test", status=500)
    with caplog.at_level("DEBUG", logger="simple_elastic"):
        with raises(ElasticHttpError):
            client.index_exists("test")
    messages = [(r.name, r.levelname) for r in caplog.records]
    assert ("simple_elastic.client", "DEBUG") in messages
    assert ("simple_elastic.client", "WARNING") in messages
