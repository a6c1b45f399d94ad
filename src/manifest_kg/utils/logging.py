"""Logging utilities for the manifest-kg pipeline."""

import logging
import logging.handlers
from pathlib import Path
import re
import sys

from ..config.schemas import LoggingConfig

DEFAULT_MAX_BYTES = 10 * 1024**2

NOISY_LOGGERS = ("rdflib", "pandas")

_SIZE_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)\s*([KMGT]?B)?$")
_SIZE_UNITS = {"B": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3, "TB": 1024**4}

# "manifest_kg" when installed, "src.manifest_kg" when imported from a checkout
PACKAGE_LOGGER = __name__.rsplit(".utils", 1)[0]


def _file_handler(
    config: LoggingConfig, formatter: logging.Formatter
) -> logging.Handler:
    file_path = Path(config.file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        filename=file_path,
        maxBytes=parse_file_size(config.max_file_size),
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """
    Configure the root logger for a pipeline run.

    Existing root handlers are replaced. Progress is written to stderr so a
    serialized graph can still be piped from stdout; when ``file_path`` is
    set, the same records also go to a rotating log file.

    Args:
        config: Logging configuration, defaults when omitted

    Returns:
        logging.Logger: Configured root logger
    """
    config = config or LoggingConfig()
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter = logging.Formatter(config.format)
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)

    handlers: list[logging.Handler] = [console]
    if config.file_path:
        handlers.append(_file_handler(config, formatter))

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.setLevel(level)
        root_logger.addHandler(handler)
    root_logger.setLevel(level)

    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    return root_logger


def parse_file_size(size_str: str) -> int:
    """
    Parse a human-readable size such as "10MB" or "1.5kb" into bytes.

    A bare number is taken as bytes; anything unparsable falls back to
    ``DEFAULT_MAX_BYTES``.
    """
    match = _SIZE_PATTERN.match((size_str or "").strip().upper())
    if not match:
        return DEFAULT_MAX_BYTES

    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[unit or "B"])


def configure_external_loggers(level: str | int = logging.WARNING) -> None:
    """Quiet the third-party loggers that chatter during parsing and serialization."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level)
