import os

import pytest
import responses

from simple_elastic.client import ClientOptions, ElasticClient
from simple_elastic.config import get_settings

HOST = "http://es.test:9200/"


@pytest.fixture(autouse=True)
def clean_environment(tmp_path):
    """Make sure tests don't see (or leave behind) settings from the environment or a .env file"""
    saved = dict(os.environ)
    for key in list(os.environ):
        if key.lower().startswith("simple_elastic_"):
            del os.environ[key]
    os.environ["SIMPLE_ELASTIC_ENV_FILE"] = str(tmp_path / "missing.env")
    get_settings.cache_clear()
    yield
    os.environ.clear()
    os.environ.update(saved)
    get_settings.cache_clear()


@pytest.fixture()
def mocked():
    with responses.RequestsMock() as rsps:
        yield rsps


@pytest.fixture()
def client():
    return ElasticClient(ClientOptions(hosts=HOST))
