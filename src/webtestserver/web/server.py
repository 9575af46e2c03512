from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import uvicorn

from webtestserver.core.config import AppConfig
from webtestserver.core.logging import VerbosityLevel, get_verbosity

from .app import create_app


def _uvicorn_log_settings(verbosity: int) -> tuple[str, bool]:
    """Map verbosity to uvicorn log settings.

    Returns:
        (log_level, access_log)
    """
    # Request lines come from our own middleware (server.verbose), not uvicorn.
    if verbosity <= VerbosityLevel.QUIET:
        return ("error", False)
    if verbosity <= VerbosityLevel.VERBOSE:
        return ("warning", False)
    return ("debug", False)


def _silence_uvicorn_loggers() -> None:
    """Best-effort silencing for uvicorn loggers (quiet mode)."""
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = False
        logger.setLevel(logging.ERROR)


def banner(cfg: AppConfig) -> str:
    return (
        f"Static file server running at\n  => http://localhost:{cfg.server.port}/\n"
        "CTRL + C to shutdown"
    )


async def serve(cfg: AppConfig, *, on_started: Callable[[], None] | None = None) -> None:
    """Serve until shutdown; call on_started once the socket is listening."""
    app = create_app(cfg)
    verbosity = int(get_verbosity())
    log_level, access_log = _uvicorn_log_settings(verbosity)
    if verbosity <= VerbosityLevel.QUIET:
        _silence_uvicorn_loggers()

    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=cfg.server.host,
            port=cfg.server.port,
            log_level=log_level,
            access_log=access_log,
        )
    )
    task = asyncio.create_task(server.serve())
    while not server.started and not task.done():
        await asyncio.sleep(0.05)

    if server.started:
        print(banner(cfg), flush=True)
        if on_started is not None:
            on_started()
    await task


def run(cfg: AppConfig, *, on_started: Callable[[], None] | None = None) -> None:
    """Run the server in a standalone (non-async) context."""
    asyncio.run(serve(cfg, on_started=on_started))
