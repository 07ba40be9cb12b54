"""
simple_elastic command line tools
"""

import argparse
import json
import logging
import sys

from simple_elastic.client import ClientOptions, ElasticClient
from simple_elastic.config import env_lines, get_settings
from simple_elastic.encoding import to_plain
from simple_elastic.flat import FlatObject, flatten_json


def flatten(args):
    if args.file:
        with open(args.file, "rb") as f:
            flat = flatten_json(f, parse_dates=args.parse_dates)
    else:
        flat = flatten_json(sys.stdin.buffer, parse_dates=args.parse_dates)
    for path, value in flat.items():
        print(f"{path}={json.dumps(to_plain(value))}")


def search(args):
    options = ClientOptions.from_settings(hosts=args.host) if args.host else ClientOptions.from_settings()
    client = ElasticClient(options)
    query = json.loads(args.query) if args.query else None
    result = client.search(args.index, query, source_type=FlatObject if args.flat else None)
    logging.info(f"{result.total} hits, showing {len(result)}")
    for hit in result.raw_hits:
        print(json.dumps(dict(_id=hit.id, _score=hit.score, _source=to_plain(hit.source))))


def config(_args):
    settings = get_settings()
    print(f"# Settings read from the environment and {settings.env_file}")
    for line in env_lines(settings):
        print(line)


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__, prog="python -m simple_elastic")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every request")

    subparsers = parser.add_subparsers(dest="action", title="action", help="Action to perform:", required=True)
    p = subparsers.add_parser("flatten", help="Print the dot-path=value pairs of a JSON object")
    p.add_argument("file", nargs="?", help="JSON file to read (default: standard input)")
    p.add_argument("--parse-dates", action="store_true", help="Read ISO timestamps as dates")
    p.set_defaults(func=flatten)

    p = subparsers.add_parser("search", help="Search an index and print the hits as JSON lines")
    p.add_argument("index", help="Index (or comma separated indices) to search")
    p.add_argument("-q", "--query", help="Search request body as JSON (default: match all)")
    p.add_argument("--host", help="Elasticsearch host (default: from the settings)")
    p.add_argument("--flat", action="store_true", help="Flatten the document sources")
    p.set_defaults(func=search)

    p = subparsers.add_parser("config", help="Echo the current settings as environment variables")
    p.set_defaults(func=config)

    args = parser.parse_args(argv)

    logging.basicConfig(
        format="[%(levelname)-7s:%(name)-15s] %(message)s", level=logging.DEBUG if args.verbose else logging.INFO
    )
    urllib3_logger = logging.getLogger("urllib3")
    urllib3_logger.setLevel(logging.WARNING)

    args.func(args)


if __name__ == "__main__":
    main()
