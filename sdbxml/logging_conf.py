"""
Logging setup for the ``sdbxml`` command line.

The library modules only create loggers; handlers are installed here when the
command line starts. ``SDBXML_LOGLEVEL`` takes precedence over ``--verbose``.

Deutsch:
    Logging für die Kommandozeile; ``SDBXML_LOGLEVEL`` hat Vorrang vor ``--verbose``.
"""

from __future__ import annotations

import logging
import os

LOGLEVEL_ENV = "SDBXML_LOGLEVEL"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def resolve_level(default_level: str) -> int:
    """Numeric level from the environment or ``default_level``; unknown names mean INFO."""

    name = (os.environ.get(LOGLEVEL_ENV) or default_level).strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(default_level: str = "INFO") -> int:
    """
    Install a stderr handler for sdb.xml tooling and return the active level.

    An application that already configured logging keeps its handlers, only
    the level is adjusted.
    """

    level = resolve_level(default_level)
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger(__name__).debug("log level %s", logging.getLevelName(level))
    return level
