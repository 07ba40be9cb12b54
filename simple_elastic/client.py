"""
Elasticsearch client

A thin client over requests. Request bodies are encoded with simple_elastic.encoding, request options
are sent as query string parameters:

    client = ElasticClient("http://localhost:9200")
    result = client.search("articles", search_body(Query.term("cat", "a"), size=10), source_type=Article)
    client.bulk("articles", "_doc", BulkActionType.index, articles, options={"refresh": True})

Non-success responses raise ElasticHttpError, failed bulk actions raise BulkActionError.
"""

import logging
from typing import Any, Iterable
from urllib.parse import quote

import requests
from pydantic import ValidationError

from simple_elastic.bulk import BulkActionRequest, BulkActionResult, BulkActionType, encode_bulk
from simple_elastic.config import Settings, get_settings
from simple_elastic.encoding import encode, query_string
from simple_elastic.errors import BulkActionError, ElasticHttpError, InvalidArgumentError
from simple_elastic.hosts import HostPoolProvider, HostProvider, SingleHostProvider
from simple_elastic.models import (
    AcknowledgeResult,
    ErrorResult,
    GetResult,
    IndexResult,
    KeyDocument,
    SearchResult,
    validate_source,
)
from simple_elastic.tokens import JsonTokenReader

logger = logging.getLogger("simple_elastic.client")

JSON_CONTENT_TYPE = "application/json"
NDJSON_CONTENT_TYPE = "application/x-ndjson"


class ClientOptions:
    """
    Connection options. Give either hosts (one host is always used, several are used round robin)
    or a host provider.
    """

    def __init__(
        self,
        hosts: str | Iterable[str] | None = None,
        host_provider: HostProvider | None = None,
        session: requests.Session | None = None,
        timeout: float | None = None,
        verify_ssl: bool = True,
        parse_dates: bool = False,
    ):
        if host_provider is None:
            hosts = [hosts] if isinstance(hosts, str) else list(hosts or [])
            if not hosts:
                raise InvalidArgumentError("Either hosts or a host provider is required")
            host_provider = SingleHostProvider(hosts[0]) if len(hosts) == 1 else HostPoolProvider(hosts)
        self.host_provider = host_provider
        self.session = session
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.parse_dates = parse_dates

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kargs) -> "ClientOptions":
        settings = settings or get_settings()
        kargs.setdefault("hosts", settings.hosts)
        kargs.setdefault("timeout", settings.timeout)
        kargs.setdefault("verify_ssl", settings.verify_ssl)
        kargs.setdefault("parse_dates", settings.parse_dates)
        return cls(**kargs)


class ElasticClient:
    def __init__(self, options: ClientOptions | str | None = None):
        if options is None:
            options = ClientOptions.from_settings()
        elif isinstance(options, str):
            options = ClientOptions(hosts=options)
        self.options = options
        self.session = options.session or requests.Session()

    def __repr__(self):
        return f"<ElasticClient {self.options.host_provider!r}>"

    # Documents

    def search(
        self, index: str | None, query: Any = None, options: Any = None, source_type: Any = None
    ) -> SearchResult:
        """
        Search the index (or all indices if index is None). Without a query, all documents match.
        If source_type is given, the source of every hit is validated into it (see validate_source).
        """
        path = f"{index}/_search" if index else "_search"
        method = "GET" if query is None else "POST"
        with self._request("search", method, path, options, body=query, stream=True) as response:
            response.raw.decode_content = True
            reader = JsonTokenReader.from_json(response.raw, parse_dates=self.options.parse_dates)
            return SearchResult.read(reader, source_type)

    def get(self, index: str, document: str, id: Any, options: Any = None, source_type: Any = None) -> GetResult:
        path = f"{index}/{document}/{quote(str(id), safe='')}"
        response = self._request("get_doc", "GET", path, options)
        result = GetResult.model_validate(self._read_json(response))
        result.source = validate_source(result.source, source_type, id=result.id)
        return result

    def get_source(self, index: str, document: str, id: Any, options: Any = None, source_type: Any = None) -> Any:
        path = f"{index}/{document}/{quote(str(id), safe='')}/_source"
        response = self._request("get_source", "GET", path, options)
        return validate_source(self._read_json(response), source_type, id=id)

    def bulk(
        self,
        index: str,
        type: str | None,
        action: BulkActionType | str,
        documents: Iterable[Any],
        options: Any = None,
        raise_on_failure: bool = True,
    ) -> BulkActionResult:
        """
        Perform the same action for all documents.
        Ids are taken from KeyDocument.key if the documents are KeyDocuments. For delete actions the documents
        can also be the ids themselves.

        :raises BulkActionError: if raise_on_failure is set and any of the actions failed
        """
        if not index:
            raise InvalidArgumentError("An index is required for a bulk request")
        action = BulkActionType(action)
        actions = [_bulk_request(action, document) for document in documents]
        path = f"{index}/{type}/_bulk" if type else f"{index}/_bulk"
        return self._bulk(path, actions, options, raise_on_failure)

    def bulk_requests(
        self,
        index: str | None,
        requests: Iterable[BulkActionRequest],
        options: Any = None,
        raise_on_failure: bool = True,
    ) -> BulkActionResult:
        """Perform a mix of bulk actions. Without an index, every request should name its own index"""
        path = f"{index}/_bulk" if index else "_bulk"
        return self._bulk(path, list(requests), options, raise_on_failure)

    # Indices

    def create_index(self, index: str, settings: Any = None) -> AcknowledgeResult:
        """Create an index. settings is the body of the request, i.e. settings, mappings and/or aliases"""
        response = self._request("create_index", "PUT", index, body=settings)
        return AcknowledgeResult.model_validate(response.json())

    def get_index(self, index: str) -> dict[str, IndexResult]:
        response = self._request("get_index", "GET", index)
        return {name: IndexResult.model_validate(info) for name, info in response.json().items()}

    def delete_index(self, index: str) -> AcknowledgeResult:
        response = self._request("delete_index", "DELETE", index)
        return AcknowledgeResult.model_validate(response.json())

    def index_exists(self, index: str) -> bool:
        response = self._request("index_exists", "HEAD", index, ok_statuses=frozenset({404}))
        return response.status_code == 200

    def close_index(self, index: str) -> AcknowledgeResult:
        response = self._request("close_index", "POST", f"{index}/_close")
        return AcknowledgeResult.model_validate(response.json())

    def open_index(self, index: str) -> AcknowledgeResult:
        response = self._request("open_index", "POST", f"{index}/_open")
        return AcknowledgeResult.model_validate(response.json())

    # Plumbing

    def _bulk(
        self, path: str, actions: list[BulkActionRequest], options: Any, raise_on_failure: bool
    ) -> BulkActionResult:
        if not actions:
            return BulkActionResult()
        response = self._request("bulk", "POST", path, options, body=encode_bulk(actions),
                                 content_type=NDJSON_CONTENT_TYPE)
        result = BulkActionResult.model_validate(response.json())
        if result.has_errors:
            result.log_failures()
            if raise_on_failure:
                raise BulkActionError(f"{len(result.failures)} of {len(result.items)} bulk actions failed", result)
        return result

    def _read_json(self, response: requests.Response) -> Any:
        reader = JsonTokenReader.from_json(response.content, parse_dates=self.options.parse_dates)
        reader.read()
        return reader.read_value()

    def _request(
        self,
        operation: str,
        method: str,
        path: str,
        options: Any = None,
        body: Any = None,
        content_type: str = JSON_CONTENT_TYPE,
        ok_statuses: frozenset[int] = frozenset(),
        stream: bool = False,
    ) -> requests.Response:
        url = self.options.host_provider.next() + path + query_string(options)
        headers = {}
        data = None
        if body is not None:
            data = (body if isinstance(body, str) else encode(body)).encode("utf-8")
            headers["Content-Type"] = content_type
        response = self.session.request(
            method,
            url,
            data=data,
            headers=headers,
            timeout=self.options.timeout,
            verify=self.options.verify_ssl,
            stream=stream,
        )
        logger.debug(f"{operation}: {method} {url} -> {response.status_code}")
        if not response.ok and response.status_code not in ok_statuses:
            error = http_error(operation, response)
            response.close()
            raise error
        return response


def _bulk_request(action: BulkActionType, document: Any) -> BulkActionRequest:
    key = document.key if isinstance(document, KeyDocument) else None
    if action == BulkActionType.delete:
        return BulkActionRequest(action, id=key if key is not None else document)
    return BulkActionRequest(action, document=document, id=key)


def http_error(operation: str, response: requests.Response) -> ElasticHttpError:
    """Create the exception for a non-success response, using the error document in the body if there is one"""
    try:
        error_result: ErrorResult | None = ErrorResult.model_validate(response.json())
    except (ValueError, ValidationError):
        error_result = None
    if error_result is not None and error_result.error is None:
        error_result = None
    if error_result is not None:
        message = f"Error {response.status_code}, {error_result.error}"
    else:
        message = f"Error {response.status_code}, {response.reason}"
    logger.warning(f"{operation} failed: {message}")
    return ElasticHttpError(message, error_result=error_result, response=response)
