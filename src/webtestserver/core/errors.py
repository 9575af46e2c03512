"""Error handling with friendly messages."""

from __future__ import annotations


class WebTestServerError(Exception):
    """Base exception for all webtestserver errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(WebTestServerError):
    """Configuration error."""

    pass


class RequestError(WebTestServerError):
    """Request could not be served; carries the HTTP status to reply with."""

    status = 400


class MethodNotAllowedError(RequestError):
    """Body-carrying operation requested with a non-POST method."""

    status = 405

    def __init__(self, method: str) -> None:
        super().__init__(f"Method {method} cannot carry a request body", "Use POST")


class BodyTooLargeError(RequestError):
    """POST body exceeded the configured cap."""

    status = 413

    def __init__(self, received: int, limit: int) -> None:
        self.received = received
        self.limit = limit
        super().__init__(f"Request body too large: {received} bytes (limit {limit})")


class PathOutsideRootError(RequestError):
    """Resolved path escapes the serving root while confinement is enabled."""

    status = 403

    def __init__(self, url_path: str) -> None:
        super().__init__(
            f"Path escapes serving root: {url_path}",
            "Disable paths.confine_to_root to allow access outside the root",
        )


class ResolveMarkerError(WebTestServerError):
    """Resolved path does not contain the resolve marker segment."""

    def __init__(self, path: str, marker: str) -> None:
        self.path = path
        self.marker = marker
        super().__init__(f"Marker folder '{marker}' not found in path: {path}")
