"""webtestserver - static-file and pseudo-filesystem server for browser test runs."""

__version__ = "1.0.0"
