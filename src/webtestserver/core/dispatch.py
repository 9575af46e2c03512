"""Operation dispatch: perform the filesystem action for a classified request."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from webtestserver.core import fs_ops
from webtestserver.core.config import AppConfig
from webtestserver.core.errors import MethodNotAllowedError, ResolveMarkerError
from webtestserver.core.fs_ops import FsStatus
from webtestserver.core.intent import RequestIntent, parse_query
from webtestserver.core.logging import get_logger
from webtestserver.core.paths import resolve_marker_path, resolve_target

_logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "binary"

_CONTENT_TYPES = {
    ".js": "text/javascript",
    ".css": "text/css",
    ".html": "text/html",
}

_STATUS_MESSAGES = {
    FsStatus.ALREADY_EXISTS: "Already exists",
    FsStatus.NOT_FOUND: "Not found",
    FsStatus.NOT_EMPTY: "Directory not empty",
    FsStatus.WRONG_KIND: "Wrong kind of filesystem entry",
}


class Outcome(StrEnum):
    SUCCESS = "success"
    FAIL = "fail"
    UNKNOWN = "unknown"


def status_for(result: Outcome | int) -> int:
    if result == Outcome.SUCCESS:
        return 200
    if result == Outcome.FAIL:
        return 500
    if result == Outcome.UNKNOWN:
        return 404
    return int(result)


def content_type_for_extension(ext: str) -> str:
    return _CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


@dataclass(frozen=True)
class Reply:
    """Result of one dispatched request; never outlives it."""

    result: Outcome | int
    body: bytes = b""
    content_type: str = DEFAULT_CONTENT_TYPE

    @property
    def status_code(self) -> int:
        return status_for(self.result)

    @classmethod
    def success(cls, body: bytes | str = b"", content_type: str = DEFAULT_CONTENT_TYPE) -> Reply:
        return cls(Outcome.SUCCESS, _as_bytes(body), content_type)

    @classmethod
    def fail(cls, body: bytes | str, content_type: str = DEFAULT_CONTENT_TYPE) -> Reply:
        return cls(Outcome.FAIL, _as_bytes(body), content_type)

    @classmethod
    def unknown(cls) -> Reply:
        return cls(Outcome.UNKNOWN)


def _as_bytes(body: bytes | str) -> bytes:
    return body.encode("utf-8") if isinstance(body, str) else body


@dataclass(frozen=True)
class IncomingRequest:
    method: str
    url_path: str
    query_string: str = ""
    body: bytes | None = None

    @property
    def raw_url(self) -> str:
        if self.query_string:
            return f"{self.url_path}?{self.query_string}"
        return self.url_path


class Dispatcher:
    """Perform the filesystem operation for a classified request.

    Typed filesystem preconditions become fail replies carrying a message;
    a missing target on delete is success. Any other OSError propagates.
    """

    def __init__(self, cfg: AppConfig) -> None:
        self.cfg = cfg
        self.root_dir = cfg.paths.root_dir

    def dispatch(
        self, intent: RequestIntent, resolved_path: Path, request: IncomingRequest
    ) -> Reply:
        _logger.verbose(f"dispatch intent={intent.value} path={str(resolved_path)!r}")

        if intent == RequestIntent.LIST_DIR:
            return self._list_dir(resolved_path)
        if intent == RequestIntent.READ_FILE:
            return self._read_file(resolved_path)
        if intent == RequestIntent.RESOLVE_PATH:
            return self._resolve_path(request)
        if intent == RequestIntent.WRITE_FILE:
            status = fs_ops.write_file(resolved_path, self._post_body(request))
            return self._reply(status, resolved_path)
        if intent == RequestIntent.APPEND_FILE:
            status = fs_ops.append_file(resolved_path, self._post_body(request))
            return self._reply(status, resolved_path)
        if intent == RequestIntent.WRITE_DIR:
            return self._reply(fs_ops.make_dir(resolved_path), resolved_path)
        if intent == RequestIntent.DELETE_FILE:
            return self._reply(fs_ops.delete_file(resolved_path), resolved_path, missing_ok=True)
        if intent == RequestIntent.DELETE_DIR:
            if "recursive" in parse_query(request.query_string):
                status = fs_ops.delete_tree(resolved_path)
            else:
                status = fs_ops.remove_dir(resolved_path)
            return self._reply(status, resolved_path, missing_ok=True)
        return Reply.unknown()

    def _list_dir(self, folder: Path) -> Reply:
        files = fs_ops.list_files(folder, self.root_dir)
        return Reply.success(",".join(files))

    def _read_file(self, path: Path) -> Reply:
        content_type = content_type_for_extension(os.path.splitext(path)[1])
        try:
            data = fs_ops.read_file(path)
        except OSError as e:
            return Reply.fail(str(e), content_type)
        return Reply.success(data, content_type)

    def _resolve_path(self, request: IncomingRequest) -> Reply:
        target = resolve_target(request.raw_url)
        try:
            resolved = resolve_marker_path(target, self.cfg.paths.resolve_marker)
        except ResolveMarkerError as e:
            return Reply.fail(str(e))
        return Reply.success(resolved)

    def _post_body(self, request: IncomingRequest) -> bytes:
        if request.method.upper() != "POST":
            raise MethodNotAllowedError(request.method)
        return request.body or b""

    def _reply(self, status: FsStatus, path: Path, *, missing_ok: bool = False) -> Reply:
        if status == FsStatus.OK or (missing_ok and status == FsStatus.NOT_FOUND):
            return Reply.success()
        return Reply.fail(f"{_STATUS_MESSAGES[status]}: {self._display(path)}")

    def _display(self, path: Path) -> str:
        try:
            return Path(os.path.relpath(path, self.root_dir)).as_posix()
        except ValueError:
            return str(path)
