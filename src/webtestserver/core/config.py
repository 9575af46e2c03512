"""Configuration resolver with 4-level priority.

Priority (highest to lowest):
1. CLI arguments
2. Environment variables (WEBTESTSERVER_*)
3. Config file (YAML)
4. Defaults
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from webtestserver.core.errors import ConfigError
from webtestserver.core.logging import LEVEL_NAMES

# harness.ts and webTestResults.html depend on this exact port number.
DEFAULT_PORT = 8888
MAX_POST_BYTES = 100_000_000
DEFAULT_RESULTS_PAGE = "tests/webTestResults.html"
DEFAULT_RESOLVE_MARKER = "tests"

_INT_KEYS = frozenset({"server.port", "server.max_post_bytes"})
_BOOL_KEYS = frozenset({"server.verbose", "paths.confine_to_root"})
_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off", ""})


@dataclass(frozen=True)
class ServerConfig:
    host: str
    port: int
    verbose: bool
    max_post_bytes: int


@dataclass(frozen=True)
class PathsConfig:
    root_dir: Path
    resolve_marker: str
    confine_to_root: bool


@dataclass(frozen=True)
class LaunchConfig:
    browser: str | None
    grep: str | None
    results_page: str


@dataclass(frozen=True)
class AppConfig:
    server: ServerConfig
    paths: PathsConfig
    launch: LaunchConfig
    logging_level: str


class ConfigResolver:
    """Resolve configuration with strict 4-level priority.

    Example:
        resolver = ConfigResolver(
            cli_args={'server': {'port': 9000}},
            config_path=Path('webtestserver.yaml'),
        )

        port, source = resolver.resolve('server.port')
        # port = 9000, source = 'cli'
    """

    def __init__(
        self,
        cli_args: dict[str, Any] | None = None,
        config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize config resolver.

        Args:
            cli_args: Nested arguments from CLI (highest priority)
            config_path: Path to YAML config file; missing file is ignored
            defaults: Default values (lowest priority)
            environ: Environment mapping, os.environ when omitted
        """
        self.cli_args = cli_args or {}
        self.config_path = config_path
        self.defaults = defaults or self._default_config()
        self.environ = os.environ if environ is None else environ

        self._file_config: dict[str, Any] | None = None

    def resolve(self, key: str) -> tuple[Any, str]:
        """Resolve config value with priority.

        Args:
            key: Config key (supports dot notation: 'server.port')

        Returns:
            (value, source) tuple

        Raises:
            ConfigError: If key not found in any source
        """
        value = self._get_nested(self.cli_args, key)
        if value is not None:
            return value, "cli"

        value = self._from_env(key)
        if value is not None:
            return value, "env"

        value = self._get_nested(self._get_file_config(), key)
        if value is not None:
            return value, "config_file"

        value = self._get_nested(self.defaults, key)
        if value is not None:
            return value, "default"

        raise ConfigError(f"Config key '{key}' not found in any source")

    def resolve_optional(self, key: str) -> Any | None:
        try:
            value, _source = self.resolve(key)
        except ConfigError:
            return None
        return value

    def build(self) -> AppConfig:
        """Resolve every known key into an immutable AppConfig.

        Raises:
            ConfigError: If a value has the wrong type or is out of range.
        """
        port = self._resolve_int("server.port")
        if not 0 < port < 65536:
            raise ConfigError(f"Invalid 'server.port': {port}. Must be 1-65535")
        max_post_bytes = self._resolve_int("server.max_post_bytes")
        if max_post_bytes <= 0:
            raise ConfigError("Config key 'server.max_post_bytes' must be > 0")

        marker = self._resolve_str("paths.resolve_marker").strip("/")
        if not marker:
            raise ConfigError("Config key 'paths.resolve_marker' must not be empty")

        browser = self.resolve_optional("launch.browser")
        grep = self.resolve_optional("launch.grep")

        return AppConfig(
            server=ServerConfig(
                host=self._resolve_str("server.host"),
                port=port,
                verbose=self._resolve_bool("server.verbose"),
                max_post_bytes=max_post_bytes,
            ),
            paths=PathsConfig(
                root_dir=Path(self._resolve_str("paths.root_dir")).resolve(),
                resolve_marker=marker,
                confine_to_root=self._resolve_bool("paths.confine_to_root"),
            ),
            launch=LaunchConfig(
                browser=str(browser) if browser else None,
                grep=str(grep) if grep else None,
                results_page=self._resolve_str("launch.results_page").lstrip("/"),
            ),
            logging_level=self._resolve_logging_level(),
        )

    def _resolve_str(self, key: str) -> str:
        value, _source = self.resolve(key)
        if not isinstance(value, (str, Path)):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")
        return str(value)

    def _resolve_int(self, key: str) -> int:
        value, _source = self.resolve(key)
        if isinstance(value, bool):
            raise ConfigError(f"Config key '{key}' must be an int")
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        raise ConfigError(f"Config key '{key}' must be an int")

    def _resolve_bool(self, key: str) -> bool:
        value, _source = self.resolve(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            norm = value.strip().lower()
            if norm in _TRUE_STRINGS:
                return True
            if norm in _FALSE_STRINGS:
                return False
        raise ConfigError(f"Config key '{key}' must be a bool")

    def _resolve_logging_level(self) -> str:
        key = "logging.level"
        value, _source = self.resolve(key)
        if not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")
        norm = value.strip().lower()
        if norm not in LEVEL_NAMES:
            allowed = ", ".join(sorted(LEVEL_NAMES))
            raise ConfigError(f"Invalid '{key}': {value!r}. Allowed values: {allowed}")
        return norm

    def _from_env(self, key: str) -> Any | None:
        """Get value from environment variables.

        Environment variable format: WEBTESTSERVER_KEY_NAME
        Example: WEBTESTSERVER_SERVER_PORT, WEBTESTSERVER_PATHS_ROOT_DIR
        """
        env_key = f"WEBTESTSERVER_{key.upper().replace('.', '_')}"
        return self.environ.get(env_key)

    def _get_file_config(self) -> dict[str, Any]:
        """Load config file (cached)."""
        if self._file_config is None:
            self._file_config = self._load_yaml(self.config_path)
        return self._file_config

    def _load_yaml(self, path: Path | None) -> dict[str, Any]:
        if path is None or not path.exists():
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except Exception as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

    def _get_nested(self, data: dict[str, Any], key: str) -> Any | None:
        """Get nested value using dot notation.

        Example:
            data = {'server': {'port': 8888}}
            _get_nested(data, 'server.port') -> 8888
        """
        parts = key.split(".")
        current: Any = data

        for part in parts:
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None

        return current

    @staticmethod
    def _default_config() -> dict[str, Any]:
        """Default configuration."""
        return {
            "server": {
                "host": "127.0.0.1",
                "port": DEFAULT_PORT,
                "verbose": False,
                "max_post_bytes": MAX_POST_BYTES,
            },
            "paths": {
                "root_dir": str(Path.cwd()),
                "resolve_marker": DEFAULT_RESOLVE_MARKER,
                "confine_to_root": False,
            },
            "launch": {
                "browser": None,
                "grep": None,
                "results_page": DEFAULT_RESULTS_PAGE,
            },
            "logging": {
                "level": "normal",
            },
        }
