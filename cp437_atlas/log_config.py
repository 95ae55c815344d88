"""Application-wide logging setup."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def configure_logging(level: str = 'INFO', log_file: str | None = None) -> None:
    """Configure application-wide logging.

    Sets up a consistent format across all modules. Call this once at
    startup, before any atlas work is done. Log records go to stderr so that
    a text dump written to stdout stays clean.

    Args:
        level: Log level string ('DEBUG', 'INFO', 'WARNING', 'ERROR').
        log_file: Optional path to log file. If None, logs to stderr only.

    Example:
        Configure at startup::

            from cp437_atlas.log_config import configure_logging
            configure_logging(level='DEBUG', log_file='atlas.log')
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt='%(asctime)s %(levelname)-8s [%(name)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Pillow logs every PNG chunk at DEBUG
    logging.getLogger('PIL').setLevel(logging.WARNING)

    logger.debug("Logging configured: level=%s, file=%s", level, log_file or 'stderr')
