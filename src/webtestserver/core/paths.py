"""Path resolution for request URLs.

Every request path is joined onto the configured serving root. By default no
traversal check is applied: the server is a trusted, single-user local test
harness. ``confine`` turns on a root jail that rejects escaping paths.
"""

from __future__ import annotations

import os
import posixpath
import re
from pathlib import Path

from webtestserver.core.errors import PathOutsideRootError, ResolveMarkerError

_RESOLVE_RE = re.compile(r"(.*)\?resolve")


def switch_to_forward_slashes(path: str) -> str:
    return path.replace("\\", "/").replace("//", "/")


def resolve_request_path(root_dir: Path, url_path: str, *, confine: bool = False) -> Path:
    """Join a URL path onto root_dir.

    Raises:
        PathOutsideRootError: confine is set and the path leaves root_dir
    """
    rel = switch_to_forward_slashes(url_path).lstrip("/")
    candidate = Path(os.path.join(root_dir, *rel.split("/")))
    if confine:
        root = root_dir.resolve()
        resolved = candidate.resolve()
        if resolved != root and root not in resolved.parents:
            raise PathOutsideRootError(url_path)
    return candidate


def resolve_target(raw_url: str) -> str:
    """Return the part of a raw URL before ``?resolve``.

    Falls back to the whole URL without its query string.
    """
    m = _RESOLVE_RE.match(raw_url)
    if m is not None:
        return m.group(1)
    return raw_url.split("?", 1)[0]


def resolve_marker_path(target: str, marker: str) -> str:
    """Resolve target and strip everything before the first marker segment.

    Example:
        resolve_marker_path("/tests/cases/../x.ts", "tests") -> "tests/x.ts"

    Raises:
        ResolveMarkerError: marker segment not present in the resolved path
    """
    resolved = posixpath.normpath("/" + switch_to_forward_slashes(target).lstrip("/"))
    parts = [p for p in resolved.split("/") if p]
    if marker not in parts:
        raise ResolveMarkerError(resolved, marker)
    return switch_to_forward_slashes("/".join(parts[parts.index(marker) :]))
