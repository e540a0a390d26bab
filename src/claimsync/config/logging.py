"""Root logger setup for the CLI and the trigger server."""

from __future__ import annotations

import logging
from typing import Final

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Per-request chatter from the HTTP stack; source adapters log their own summaries.
QUIET_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "hishel", "openai")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Configure the root logger and quieten the HTTP libraries.

    Library loggers stay at WARNING unless ``level`` is DEBUG. ``force=True``
    replaces handlers installed earlier, e.g. by a test runner.
    """

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
