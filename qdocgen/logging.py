"""Loggers for the qdocgen pipeline and the console/file sinks behind them.

Every module logs under the ``qdocgen`` hierarchy. Diagnostics recorded by
:class:`~qdocgen.diagnostics.DiagnosticLog` go to ``qdocgen.diagnostics``;
``qdocgen build`` already prints those to stderr, so the console sink only
repeats them when asked to. A log file always receives everything.
"""

from __future__ import annotations

import logging
from pathlib import Path

ROOT_LOGGER = "qdocgen"
DIAGNOSTICS_LOGGER = f"{ROOT_LOGGER}.diagnostics"

CONSOLE_FORMAT = "[qdocgen] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Logger for one pipeline stage, e.g. ``get_logger("binder")``."""
    full_name = f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER
    return logging.getLogger(full_name)


class DiagnosticsFilter(logging.Filter):
    """Drops diagnostic records unless ``echo`` is set."""

    def __init__(self, echo: bool) -> None:
        super().__init__()
        self.echo = echo

    def filter(self, record: logging.LogRecord) -> bool:
        if self.echo:
            return True
        return not (
            record.name == DIAGNOSTICS_LOGGER or record.name.startswith(f"{DIAGNOSTICS_LOGGER}.")
        )


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    echo_diagnostics: bool | None = None,
) -> logging.Logger:
    """Attach the console sink, plus a file sink when ``log_file`` is given.

    ``echo_diagnostics`` defaults to ``verbose``.
    """
    level = logging.DEBUG if verbose else logging.INFO
    echo = verbose if echo_diagnostics is None else echo_diagnostics
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    # Repeated CLI invocations in one process must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    console.addFilter(DiagnosticsFilter(echo))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    logger.debug("Logging configured (level=%s, log_file=%s)", logging.getLevelName(level), log_file)
    return logger


__all__ = [
    "DIAGNOSTICS_LOGGER",
    "DiagnosticsFilter",
    "ROOT_LOGGER",
    "configure_logging",
    "get_logger",
]
