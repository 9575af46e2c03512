"""Command line entry point.

Examples:
    webtestserver
    webtestserver chrome
    webtestserver IE "parser tests" --verbose
    webtestserver chrome --root D:/src/typescript/public --port 9000
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

from webtestserver.core.config import AppConfig, ConfigResolver
from webtestserver.core.errors import ConfigError
from webtestserver.core.logging import LEVEL_NAMES, get_logger, set_verbosity
from webtestserver.launcher import browser_path, check_browser_name, launch_browser, results_url

_logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="webtestserver",
        description=(
            "Runs a static file server for browser test runs, serving the current "
            "directory, and opens the test results page in a browser."
        ),
    )
    ap.add_argument("browser", nargs="?", help="Browser to launch: chrome, IE, or an executable")
    ap.add_argument("grep", nargs="?", help="Test filter passed to the results page as ?grep=")
    ap.add_argument("--verbose", action="store_true", help="Log every request")
    ap.add_argument("--port", type=int, help="Port to listen on (default 8888)")
    ap.add_argument("--host", help="Interface to bind (default 127.0.0.1)")
    ap.add_argument("--root", help="Directory to serve (default: current directory)")
    ap.add_argument("--config", help="Path to a YAML config file")
    ap.add_argument("--log-level", choices=sorted(LEVEL_NAMES), help="Console verbosity")
    ap.add_argument("--no-browser", action="store_true", help="Serve only; do not launch")
    return ap


def cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Turn parsed arguments into nested config keys; unset options are omitted."""
    server: dict[str, Any] = {}
    paths: dict[str, Any] = {}
    launch: dict[str, Any] = {}
    out: dict[str, Any] = {}

    if args.verbose:
        server["verbose"] = True
    if args.port is not None:
        server["port"] = args.port
    if args.host:
        server["host"] = args.host
    if args.root:
        paths["root_dir"] = args.root
    if args.browser:
        launch["browser"] = args.browser
    if args.grep:
        launch["grep"] = args.grep

    if server:
        out["server"] = server
    if paths:
        out["paths"] = paths
    if launch:
        out["launch"] = launch
    if args.log_level:
        out["logging"] = {"level": args.log_level}
    return out


def make_launch_hook(cfg: AppConfig) -> Any:
    browser = cfg.launch.browser
    if not browser:
        return None

    def _launch() -> None:
        check_browser_name(browser)
        path = browser_path(browser)
        launch_browser(path, results_url(cfg.server.port, cfg.launch.results_page, cfg.launch.grep))

    return _launch


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    resolver = ConfigResolver(
        cli_args=cli_overrides(args),
        config_path=Path(args.config) if args.config else None,
    )
    try:
        cfg = resolver.build()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    set_verbosity(cfg.logging_level)

    from webtestserver.web.server import run

    on_started = None if args.no_browser else make_launch_hook(cfg)
    try:
        run(cfg, on_started=on_started)
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
