"""Logging setup for the CLI and interactive sessions."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "INFO", *, console: Console | None = None) -> None:
    """Route the ``baxter`` logger hierarchy through a rich handler."""
    handler = RichHandler(console=console or Console(stderr=True), show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger("baxter")
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper())
