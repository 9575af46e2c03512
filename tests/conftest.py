"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from typing import Any

import pytest

# Add src to path (for 'webtestserver.*' imports without an install)
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))


def _merge(base: dict[str, Any], extra: dict[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for key, value in extra.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


@pytest.fixture
def make_config(tmp_path):
    """Build an AppConfig serving tmp_path, isolated from the real environment.

    Args:
        tmp_path: pytest temporary directory

    Returns:
        Callable taking nested override dicts
    """
    from webtestserver.core.config import ConfigResolver

    def _make(overrides: dict[str, Any] | None = None):
        cli_args = _merge({"paths": {"root_dir": str(tmp_path)}}, overrides or {})
        return ConfigResolver(cli_args=cli_args, environ={}).build()

    return _make


@pytest.fixture
def app_config(make_config):
    """Default AppConfig rooted at tmp_path."""
    return make_config()


@pytest.fixture
def client(app_config):
    """TestClient for an app serving tmp_path.

    Args:
        app_config: AppConfig fixture

    Returns:
        fastapi.testclient.TestClient
    """
    pytest.importorskip("httpx")  # required by fastapi/starlette TestClient
    from fastapi.testclient import TestClient

    from webtestserver.web.app import create_app

    return TestClient(create_app(app_config))
