"""Browser launcher: open the test results page in a configured browser."""

from __future__ import annotations

import os
import subprocess
import sys
from collections.abc import Callable
from urllib.parse import quote

from webtestserver.core.logging import get_logger

_logger = get_logger(__name__)

KNOWN_BROWSERS = ("chrome", "IE")

DEFAULT_CHROME_PATHS = {
    "win32": "C:/Program Files (x86)/Google/Chrome/Application/chrome.exe",
    "darwin": "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "linux": "/opt/google/chrome/chrome",
}
DEFAULT_IE_PATH = "C:/Program Files/Internet Explorer/iexplore.exe"


def check_browser_name(browser: str) -> bool:
    if browser in KNOWN_BROWSERS:
        return True
    _logger.warning(
        f"Invalid command line arguments. Got {browser} but expected chrome, IE or nothing."
    )
    return False


def browser_path(
    browser: str,
    *,
    platform: str | None = None,
    exists: Callable[[str], bool] = os.path.exists,
) -> str:
    """Pick the executable for browser.

    Known browsers map to their default install location when it exists;
    everything else is used as the literal executable name.
    """
    platform = sys.platform if platform is None else platform
    default = ""
    if browser == "chrome":
        # sys.platform is 'linux' on every modern Linux; older releases used 'linux2'
        key = "linux" if platform.startswith("linux") else platform
        default = DEFAULT_CHROME_PATHS.get(key, "")
        if not default:
            _logger.warning(f"default Chrome location is unknown for platform '{platform}'")
    elif browser == "IE":
        default = DEFAULT_IE_PATH

    if default and exists(default):
        return default
    return browser


def results_url(port: int, results_page: str, grep: str | None = None) -> str:
    url = f"http://localhost:{port}/{results_page.lstrip('/')}"
    if grep:
        url += f"?grep={quote(grep, safe='')}"
    return url


def launch_browser(path: str, url: str) -> subprocess.Popen[bytes] | None:
    """Spawn the browser with inherited stdio.

    Returns None when the executable cannot be started; the server keeps
    running either way.
    """
    _logger.info(f"Using browser: {path}")
    try:
        return subprocess.Popen([path, url])
    except OSError as e:
        _logger.error(f"Failed to launch browser {path!r}: {e}")
        return None
