"""webtestserver core: request classification and filesystem dispatch."""

from webtestserver.core.config import (
    AppConfig,
    ConfigResolver,
    LaunchConfig,
    PathsConfig,
    ServerConfig,
)
from webtestserver.core.dispatch import Dispatcher, IncomingRequest, Outcome, Reply
from webtestserver.core.errors import (
    BodyTooLargeError,
    ConfigError,
    MethodNotAllowedError,
    PathOutsideRootError,
    RequestError,
    ResolveMarkerError,
    WebTestServerError,
)
from webtestserver.core.fs_ops import FsStatus
from webtestserver.core.intent import RequestIntent, classify
from webtestserver.core.logging import VerbosityLevel, get_logger, set_verbosity

__all__ = [
    # Config
    "AppConfig",
    "ConfigResolver",
    "LaunchConfig",
    "PathsConfig",
    "ServerConfig",
    # Dispatch
    "Dispatcher",
    "FsStatus",
    "IncomingRequest",
    "Outcome",
    "Reply",
    "RequestIntent",
    "classify",
    # Errors
    "BodyTooLargeError",
    "ConfigError",
    "MethodNotAllowedError",
    "PathOutsideRootError",
    "RequestError",
    "ResolveMarkerError",
    "WebTestServerError",
    # Logging
    "VerbosityLevel",
    "get_logger",
    "set_verbosity",
]
