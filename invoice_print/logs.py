"""Logging setup for the print service.

Every module logs through ``logging.getLogger(__name__)``; since all modules
live under ``invoice_print`` they inherit the handler installed here.

Log format::

    2026-10-18 10:15:30 [INFO    ] [Thread-3] invoice_print.pipeline - Generating PDF for INV-1
"""

from __future__ import annotations

import logging
import sys

ROOT_LOGGER = "invoice_print"
LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(threadName)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO") -> logging.Logger:
    level_value = logging.getLevelName(level.upper())
    if not isinstance(level_value, int):
        level_value = logging.INFO

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level_value)
    logger.propagate = False

    # Allow re-configuration without duplicating output.
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    return logger
