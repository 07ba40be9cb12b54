"""
simple_elastic configuration

Configuration is read from 2 sources, in order of precedence (higher is more priority)
- Environment variables, prefixed with SIMPLE_ELASTIC_
- A .env file, either in the current working directory or in a location specified
  by the SIMPLE_ELASTIC_ENV_FILE environment variable

Settings only provide defaults: everything can also be passed to ClientOptions directly.
"""

import functools
import json
from pathlib import Path
from typing import Annotated

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

ENV_PREFIX = "simple_elastic_"


class Settings(BaseSettings):
    env_file: Annotated[
        Path,
        Field(
            description="Location of a .env file (if used) relative to working directory",
        ),
    ] = Path(".env")

    hosts: Annotated[
        list[str],
        NoDecode,
        Field(
            description=(
                "Elasticsearch hosts. Requests are sent round robin if more than one host is given. "
                'Set as a JSON list (e.g. ["http://es1:9200", "http://es2:9200"]), '
                "a comma separated list or a single URL"
            ),
        ),
    ] = ["http://localhost:9200"]

    timeout: Annotated[
        float | None,
        Field(description="Request timeout in seconds (default: no timeout)"),
    ] = None

    verify_ssl: Annotated[
        bool,
        Field(description="Verify the certificates of https hosts"),
    ] = True

    parse_dates: Annotated[
        bool,
        Field(description="Read ISO-8601 timestamp strings in responses as datetime values"),
    ] = False

    @field_validator("hosts", mode="before")
    @classmethod
    def host_list(cls, value):
        if isinstance(value, str):
            if value.strip().startswith("["):
                return json.loads(value)
            return [host.strip() for host in value.split(",") if host.strip()]
        return value

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX)


@functools.lru_cache()
def get_settings() -> Settings:
    temp = Settings()
    load_dotenv(temp.env_file, override=False)
    return Settings()


def env_lines(settings: Settings) -> list[str]:
    """The settings as .env lines. Unset values are commented out, lists are written as JSON"""
    lines = []
    for name, value in settings.model_dump(mode="json").items():
        key = f"{ENV_PREFIX.upper()}{name.upper()}"
        if value is None:
            lines.append(f"#{key}=")
        else:
            lines.append(f"{key}={json.dumps(value) if isinstance(value, list) else value}")
    return lines


if __name__ == "__main__":
    # Echo the settings
    for line in env_lines(get_settings()):
        print(line)
