"""Request classification.

Maps an inbound (method, url path, query string) triple onto the filesystem
operation the request asks for. Pure and total: never raises.
"""

from __future__ import annotations

from enum import StrEnum
from urllib.parse import parse_qs


class RequestIntent(StrEnum):
    """Filesystem operation a request maps to."""

    READ_FILE = "read_file"
    LIST_DIR = "list_dir"
    RESOLVE_PATH = "resolve_path"
    WRITE_FILE = "write_file"
    DELETE_FILE = "delete_file"
    WRITE_DIR = "write_dir"
    DELETE_DIR = "delete_dir"
    APPEND_FILE = "append_file"
    UNKNOWN = "unknown"


# (file intent, directory intent) per POST action
_ACTIONS: dict[str, tuple[RequestIntent, RequestIntent]] = {
    "WRITE": (RequestIntent.WRITE_FILE, RequestIntent.WRITE_DIR),
    "DELETE": (RequestIntent.DELETE_FILE, RequestIntent.DELETE_DIR),
    "APPEND": (RequestIntent.APPEND_FILE, RequestIntent.UNKNOWN),
}

BODY_INTENTS = frozenset({RequestIntent.WRITE_FILE, RequestIntent.APPEND_FILE})


def names_file(url_path: str) -> bool:
    """True when the final path segment contains a dot."""
    return "." in url_path.rsplit("/", 1)[-1]


def parse_query(query_string: str) -> dict[str, str]:
    """Parse a query string, keeping blank values (``?resolve`` -> {'resolve': ''})."""
    qs_raw = parse_qs(query_string, keep_blank_values=True)
    return {k: v[0] for k, v in qs_raw.items() if v}


def classify(method: str, url_path: str, query_string: str) -> RequestIntent:
    method = (method or "").upper()
    url_path = url_path or "/"
    query_string = (query_string or "").lstrip("?")

    if method == "GET" and not query_string:
        return RequestIntent.READ_FILE if names_file(url_path) else RequestIntent.LIST_DIR

    query = parse_query(query_string)
    if method == "GET" and "resolve" in query:
        return RequestIntent.RESOLVE_PATH
    # mocha passes ?grep=<regexp> to filter tests; the page itself is still a file read
    if method == "GET" and "grep" in query:
        return RequestIntent.READ_FILE
    if method == "POST" and query.get("action"):
        pair = _ACTIONS.get(query["action"].upper())
        if pair is not None:
            file_intent, dir_intent = pair
            return file_intent if names_file(url_path) else dir_intent
    return RequestIntent.UNKNOWN
