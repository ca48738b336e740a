"""Logging helpers."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
NOISY_LOGGERS = ("urllib3", "charset_normalizer")


def configure_logging(verbose: bool = False) -> None:
    """Configure application logging once for CLI usage.

    Records go to stderr so that stdout stays free for streamed events.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    if not verbose:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger() -> logging.Logger:
    """Return the package logger shared by all components."""
    return logging.getLogger("contact_finder")
