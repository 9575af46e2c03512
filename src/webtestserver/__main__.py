"""Package entry point.

This module enables running the server with:

    python -m webtestserver ...
"""

from __future__ import annotations

from webtestserver.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
