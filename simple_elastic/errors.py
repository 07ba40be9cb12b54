"""
Exceptions raised by simple_elastic

All errors derive from SimpleElasticError. Where a builtin exception has the same meaning
(KeyError, ValueError, requests.HTTPError) we also derive from it, so callers can keep
using the exception types they already know.
"""

import requests


class SimpleElasticError(Exception):
    pass


class DecodeError(SimpleElasticError, ValueError):
    """Malformed, truncated or ambiguous JSON input"""


class KeyNotFoundError(SimpleElasticError, KeyError):
    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self):
        return f"Key {self.key!r} not found"


class InvalidArgumentError(SimpleElasticError, ValueError):
    pass


class ElasticHttpError(SimpleElasticError, requests.HTTPError):
    """
    A request to elasticsearch returned a non-success status.
    error_result is the parsed error body, or None if the body was not an error document.
    """

    def __init__(self, message: str, error_result=None, response: requests.Response | None = None):
        super().__init__(message, response=response)
        self.error_result = error_result


class BulkActionError(SimpleElasticError):
    """A bulk request was processed, but one or more of its actions failed"""

    def __init__(self, message: str, result):
        super().__init__(message)
        self.result = result
