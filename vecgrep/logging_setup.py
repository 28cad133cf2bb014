"""Logging configuration for the CLI.

Library modules only call ``logging.getLogger(__name__)``; the CLI installs a
Rich handler on stderr so diagnostics never mix with result lines on stdout.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

err_console = Console(stderr=True)


def configure_logging(verbose: bool = False) -> None:
    """Install a stderr Rich handler on the ``vecgrep`` logger.

    Args:
        verbose: DEBUG level when True, INFO otherwise.
    """
    logger = logging.getLogger("vecgrep")
    for h in list(logger.handlers):
        logger.removeHandler(h)
    handler = RichHandler(console=err_console, show_time=False, show_path=verbose, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
