"""
Logging configuration — console and optional file logging for the CLI.

``configure_cli_logging`` is called once by ``main.cli`` with the global
flags.  Every module that does ``logger = logging.getLogger(__name__)``
inherits the result.

Console level, first match wins:

    --debug        DEBUG    time, level, module:line
    --verbose/-v   INFO     [module] message
    --quiet/-q     ERROR    message
    SCHEMAGEN_LOG_LEVEL
    (default)      WARNING  message

Module names are shown without the ``schemagen.core.`` prefix, so a
scanner record reads ``[services.scanner] ...``.

SCHEMAGEN_LOG_FILE adds a file handler with full detail, at
SCHEMAGEN_LOG_FILE_LEVEL (default: the console level).
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

ENV_LEVEL = "SCHEMAGEN_LOG_LEVEL"
ENV_FILE = "SCHEMAGEN_LOG_FILE"
ENV_FILE_LEVEL = "SCHEMAGEN_LOG_FILE_LEVEL"

_FMT_MINIMAL = "%(message)s"
_FMT_VERBOSE = "[%(module_path)s] %(message)s"
_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(module_path)s:%(lineno)d %(message)s"
_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"

_DATEFMT_DEBUG = "%H:%M:%S"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

_PACKAGE_PREFIXES = ("schemagen.core.", "schemagen.")

# PyYAML logs nothing useful below WARNING
_NOISY_LOGGERS = ("yaml",)


class _CliFormatter(logging.Formatter):
    """Formatter exposing ``module_path``: the logger name minus the package prefix."""

    def format(self, record: logging.LogRecord) -> str:
        record.module_path = short_name(record.name)
        return super().format(record)


def short_name(logger_name: str) -> str:
    """``schemagen.core.services.scanner`` → ``services.scanner``."""
    for prefix in _PACKAGE_PREFIXES:
        if logger_name.startswith(prefix):
            return logger_name[len(prefix):]
    return logger_name


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> int:
    """Map the global CLI flags (and SCHEMAGEN_LOG_LEVEL) to a console level."""
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    if quiet:
        return logging.ERROR
    env = os.environ if environ is None else environ
    return parse_level(env.get(ENV_LEVEL))


def setup_logging(
    level: int,
    log_file: str | None = None,
    log_file_level: int | None = None,
) -> None:
    """Install the console handler (and optional file handler) on the root logger."""
    if level <= logging.DEBUG:
        fmt, datefmt = _FMT_DEBUG, _DATEFMT_DEBUG
    elif level <= logging.INFO:
        fmt, datefmt = _FMT_VERBOSE, None
    else:
        fmt, datefmt = _FMT_MINIMAL, None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(_CliFormatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)

    effective_level = level
    if log_file:
        file_level = level if log_file_level is None else log_file_level
        effective_level = min(effective_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective_level)

    if level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def configure_cli_logging(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> int:
    """Set up logging for one CLI invocation. Returns the console level."""
    env = os.environ if environ is None else environ
    level = resolve_level(debug=debug, verbose=verbose, quiet=quiet, environ=env)
    file_level = env.get(ENV_FILE_LEVEL)
    setup_logging(
        level,
        log_file=env.get(ENV_FILE) or None,
        log_file_level=parse_level(file_level) if file_level else None,
    )
    return level


def parse_level(level: str | None) -> int:
    """Level name → numeric level; unknown or empty names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
