from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from webtestserver.core.config import AppConfig
from webtestserver.core.dispatch import Dispatcher, IncomingRequest, Reply
from webtestserver.core.errors import BodyTooLargeError, MethodNotAllowedError, RequestError
from webtestserver.core.intent import BODY_INTENTS, classify
from webtestserver.core.logging import get_logger
from webtestserver.core.paths import resolve_request_path

_logger = get_logger("webtestserver.web")

ALL_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"]


def _split_target(request: Request) -> tuple[str, str]:
    """Decoded path and raw query string straight from the ASGI scope.

    request.url re-parses the decoded path, so an encoded '?' or '#' in a
    file name would leak into the query or fragment.
    """
    path = request.scope["path"]
    query = request.scope.get("query_string", b"").decode("latin-1")
    return path, query


def _raw_url(request: Request) -> str:
    path, query = _split_target(request)
    return f"{path}?{query}" if query else path


def to_response(reply: Reply, headers: dict[str, str] | None = None) -> Response:
    out = {"Content-Type": reply.content_type}
    if headers:
        out.update(headers)
    return Response(content=reply.body, status_code=reply.status_code, headers=out)


async def read_post_body(request: Request, max_bytes: int) -> bytes:
    """Accumulate the request body, failing once it grows past max_bytes.

    Raises:
        MethodNotAllowedError: request is not a POST
        BodyTooLargeError: accumulated size exceeds max_bytes
    """
    if request.method != "POST":
        raise MethodNotAllowedError(request.method)

    buf = bytearray()
    async for chunk in request.stream():
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise BodyTooLargeError(len(buf), max_bytes)
    return bytes(buf)


def create_app(cfg: AppConfig, *, lifespan: Any | None = None) -> FastAPI:
    app = FastAPI(
        title="webtestserver",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = cfg
    app.state.dispatcher = Dispatcher(cfg)

    @app.middleware("http")
    async def _log_request(request: Request, call_next: Any) -> Any:
        if request.app.state.config.server.verbose:
            _logger.info(f"{request.method} {_raw_url(request)}")
        return await call_next(request)

    @app.api_route("/{rest:path}", methods=ALL_METHODS)
    async def handle(request: Request, rest: str) -> Response:  # noqa: ARG001
        cfg: AppConfig = request.app.state.config
        dispatcher: Dispatcher = request.app.state.dispatcher

        url_path, query = _split_target(request)
        intent = classify(request.method, url_path, query)

        try:
            resolved = resolve_request_path(
                cfg.paths.root_dir, url_path, confine=cfg.paths.confine_to_root
            )
            body = None
            if intent in BODY_INTENTS:
                body = await read_post_body(request, cfg.server.max_post_bytes)
            # Filesystem work is blocking; keep it off the event loop.
            reply = await run_in_threadpool(
                dispatcher.dispatch,
                intent,
                resolved,
                IncomingRequest(
                    method=request.method, url_path=url_path, query_string=query, body=body
                ),
            )
        except BodyTooLargeError as e:
            _logger.error(f"destroying connection: {e}")
            return to_response(Reply(e.status), headers={"Connection": "close"})
        except RequestError as e:
            _logger.warning(f"{request.method} {_raw_url(request)}: {e.message}")
            return to_response(Reply(e.status, e.message.encode("utf-8")))
        except Exception as e:
            _logger.error(f"{request.method} {_raw_url(request)}: {type(e).__name__}: {e}")
            return to_response(Reply.fail(f"{type(e).__name__}: {e}"))

        return to_response(reply)

    return app
