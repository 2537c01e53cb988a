"""Logging configuration for the git-stub CLI."""
from __future__ import annotations

import logging
from typing import Optional, TextIO

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(verbose: bool = False, stream: Optional[TextIO] = None) -> None:
    """
    Configure logging based on CLI options.

    Library modules only create loggers; handlers are installed here, once,
    by the command-line entry point.

    Args:
        verbose: Enable debug logging (subprocess invocations, each write)
        stream: Output stream for logs (defaults to stderr)
    """
    level = logging.DEBUG if verbose else logging.WARNING

    handler = RichHandler(
        console=Console(file=stream, stderr=True),
        show_time=verbose,
        show_path=verbose,
    )

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )
