"""Logging utilities for docharvest runs."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "docharvest"
_CONTINUATION_INDENT = "    "


class ExcerptFormatter(logging.Formatter):
    """Indents continuation lines so multi-line source excerpts stay grouped under their record."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        head, _, rest = text.partition("\n")
        if not rest:
            return head
        return "\n".join([head, *(_CONTINUATION_INDENT + line for line in rest.splitlines())])


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the docharvest hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the docharvest logger with console output and an optional per-run log file.

    The log file is truncated on every call, so it only ever holds the latest run.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when the CLI is invoked multiple times.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(ExcerptFormatter("[docharvest] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            ExcerptFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


__all__ = ["ExcerptFormatter", "configure_logging", "get_logger"]
