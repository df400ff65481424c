"""Logging helpers.

Library modules only ever fetch a logger::

    from pivotground.utils.logging import get_logger
    logger = get_logger(__name__)

and never configure handlers. Applications, like the
``pivotground-reshape`` command, call :func:`configure_logging`
to see the log output on stderr. When pivotground is used from
an application that already configured logging, records simply
propagate to that application's handlers.
"""

import logging
import os
import sys

DEFAULT_FMT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_LEVEL_ENV = "PIVOTGROUND_LOG_LEVEL"


def configure_logging(level: str | int | None = None, force: bool = False) -> None:
    """Configure the ``pivotground`` logger, never the root one.

    :param level: Logging level like ``"DEBUG"`` or ``logging.INFO``.
                  Defaults to the ``PIVOTGROUND_LOG_LEVEL`` environment
                  variable, or ``WARNING`` when unset.
    :param force: Replace the handlers installed by a previous call.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "WARNING")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger("pivotground")
    logger.setLevel(level)

    if force:
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)
    elif any(
        isinstance(h, logging.StreamHandler) and h.stream is sys.stderr
        for h in logger.handlers
    ):
        return

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(fmt=DEFAULT_FMT, datefmt=DEFAULT_DATEFMT))
    logger.addHandler(console)


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger by name, the ``pivotground`` logger when no name is given."""
    return logging.getLogger(name or "pivotground")
