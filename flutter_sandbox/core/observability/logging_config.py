"""
Logging configuration — central setup for all entrypoints.

Called once at startup by main.py. Every module that does
``logger = logging.getLogger(__name__)`` inherits this config.

Console output is split by severity: INFO and below go to stdout,
warnings and errors to stderr, each line tagged ``INFO:``, ``WARN:``
or ``ERROR:`` so a calling agent can triage the report.

Levels are resolved in precedence order:
    CLI flag  >  FSB_LOG_LEVEL env var  >  INFO (default)

Optional file output via FSB_LOG_FILE / FSB_LOG_FILE_LEVEL env vars.
"""

from __future__ import annotations

import logging
import sys

# ── Format strings ──────────────────────────────────────────────

# INFO level: severity tag only
_FMT_TAGGED = "%(tag)s: %(message)s"

# DEBUG level: full diagnostic with file:line
_FMT_DEBUG = "%(asctime)s %(tag)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_DEBUG = "%H:%M:%S"

# File output: always full detail
_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

_TAGS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "ERROR",
}

# Third-party loggers that are noisy at INFO/DEBUG
_NOISY_LOGGERS = ("urllib3", "asyncio")


class SeverityTagFormatter(logging.Formatter):
    """Formatter exposing ``%(tag)s`` (WARNING is shortened to WARN)."""

    def format(self, record: logging.LogRecord) -> str:
        record.tag = _TAGS.get(record.levelno, record.levelname)
        return super().format(record)


class _BelowWarning(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.WARNING


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
    info_to_stdout: bool = True,
) -> None:
    """Configure Python logging for the entire process.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
        log_file_level: Optional separate level for the log file.
            Defaults to the same as ``level``.
        quiet_third_party: If True, keep noisy third-party loggers at WARNING
            unless we're at DEBUG level.
        info_to_stdout: Send INFO/DEBUG lines to stdout. Turned off when
            stdout carries machine-readable output (``--json``).
    """
    numeric_level = _parse_level(level)

    if numeric_level <= logging.DEBUG:
        formatter = SeverityTagFormatter(_FMT_DEBUG, datefmt=_DATEFMT_DEBUG)
    else:
        formatter = SeverityTagFormatter(_FMT_TAGGED)

    # ── Console handlers (stdout / stderr) ──────────────────────
    out = logging.StreamHandler(sys.stdout if info_to_stdout else sys.stderr)
    out.setLevel(numeric_level)
    out.addFilter(_BelowWarning())
    out.setFormatter(formatter)

    err = logging.StreamHandler(sys.stderr)
    err.setLevel(max(numeric_level, logging.WARNING))
    err.setFormatter(formatter)

    # ── Root logger ─────────────────────────────────────────────
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(out)
    root.addHandler(err)

    # Effective root level = minimum of console and file levels
    effective_level = numeric_level

    # ── File handler (optional) ─────────────────────────────────
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        effective_level = min(effective_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective_level)

    # ── Third-party noise control ───────────────────────────────
    if quiet_third_party and numeric_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    # Don't propagate exceptions from logging itself
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.INFO
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.INFO
    return numeric
