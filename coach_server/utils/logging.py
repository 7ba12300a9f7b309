# coach_server/utils/logging.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — logging utilities
------------------------------------------
One root handler for the whole process, configured from Settings:

    setup_logging(debug=cfg.debug, level=cfg.log_level,
                  quiet_loggers=cfg.quiet_loggers,
                  quiet_level=cfg.quiet_log_level)

Session actors, storage and the generation tiers all log through
module-level loggers, so one call here decides what a deployment sees.
The HTTP client loggers (urllib3 / requests used by the provider tiers,
uvicorn access lines) are held at `quiet_level` so a busy coach does not
log every provider round trip.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_QUIET_LOGGERS = ("uvicorn.access", "urllib3", "requests", "httpx")

Level = Union[int, str]


def _resolve_level(level: Optional[Level], debug: bool) -> int:
    if level is None:
        return logging.DEBUG if debug else logging.INFO
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def setup_logging(
    *,
    debug: bool = False,
    level: Optional[Level] = None,
    quiet_loggers: Iterable[str] = DEFAULT_QUIET_LOGGERS,
    quiet_level: Level = logging.WARNING,
) -> int:
    """
    Configure root logging for the coach server.

    Parameters
    ----------
    debug:
        DEBUG instead of INFO when no explicit `level` is given.
    level:
        Explicit root level, as int or name ("INFO").
    quiet_loggers:
        Logger names held at `quiet_level` regardless of the root level.
    quiet_level:
        Level for `quiet_loggers`.

    Returns
    -------
    int
        The effective root level.

    Safe to call again (e.g. from tests or the uvicorn reloader): an
    existing handler is kept and only levels change.
    """
    root_level = _resolve_level(level, debug)

    root = logging.getLogger()
    if root.handlers:
        root.setLevel(root_level)
        for handler in root.handlers:
            handler.setLevel(root_level)
    else:
        logging.basicConfig(level=root_level, format=LOG_FORMAT, datefmt=DATE_FORMAT)

    quiet = _resolve_level(quiet_level, debug)
    for name in quiet_loggers:
        logging.getLogger(name).setLevel(quiet)

    return root_level


def get_logger(name: str) -> logging.Logger:
    """Module logger; `get_logger(__name__)`."""
    return logging.getLogger(name)
