"""Logging helper shared by the tracer, the I/O layer and the CLI.

Example:
    >>> from rt_core.logger import get_logger
    >>> log = get_logger("rt_core.renderer")
    >>> log.name
    'rt_core.renderer'
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
PACKAGES = ("rt_core", "rt_io", "scenarios", "plots")


def get_logger(name: str = __name__, level: int | None = None) -> logging.Logger:
    # One handler per top-level package; module loggers propagate to it.
    top = logging.getLogger(name.split(".")[0])
    if not top.handlers:
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter(LOG_FORMAT))
        top.addHandler(ch)
        top.setLevel(logging.WARNING)
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


def set_level(level: int) -> None:
    """Set the level for every package logger of this project."""

    for pkg in PACKAGES:
        get_logger(pkg).setLevel(level)
