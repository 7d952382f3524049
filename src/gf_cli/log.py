"""Logging configuration for gf."""

from __future__ import annotations

import logging
import os
import sys

LOGGER_NAME = "gf_cli"

_configured = False


def setup_logging(debug: bool | None = None) -> logging.Logger:
    """Attach a stderr handler to the package logger. Idempotent.

    With ``GF_DEBUG`` set (or ``debug=True``) request/response diagnostics are
    emitted at DEBUG level; otherwise only warnings and errors are shown.
    """
    global _configured
    logger = logging.getLogger(LOGGER_NAME)
    if debug is None:
        debug = os.getenv("GF_DEBUG", "") != ""
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    if _configured:
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

    _configured = True
    logger.debug("Logging initialised (debug=%s)", debug)
    return logger
