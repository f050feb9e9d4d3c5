"""Logging utilities for depfix commands."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "depfix"

_CONSOLE_FORMAT = "[depfix] %(levelname)s %(message)s"
# Verbose output names the emitting module so skipped paths can be traced to the scanner.
_VERBOSE_CONSOLE_FORMAT = "[depfix] %(levelname)s %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the `depfix` hierarchy (`depfix.env.scanner`, ...)."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def log_skipped(logger: logging.Logger, kind: str, path: object, reason: object) -> None:
    """Report a path that was passed over without failing the command.

    Unreadable files and directories never abort a scan, so these records are
    only shown with `--verbose` or in the `--log-file` sink.
    """
    logger.debug("Skipping unreadable %s %s: %s", kind, path, reason)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach a stderr handler and an optional file sink to the `depfix` logger."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file is not None else level)
    logger.propagate = False

    # Tests call main() repeatedly in one process.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(
        logging.Formatter(_VERBOSE_CONSOLE_FORMAT if verbose else _CONSOLE_FORMAT)
    )
    logger.addHandler(stream_handler)

    if log_file is not None:
        # The file always records DEBUG so skipped paths can be reviewed after a quiet run.
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger", "log_skipped"]
