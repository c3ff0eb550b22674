"""
Logging configuration for tagsort.

Console logging goes to stderr so the per-file status table printed on
stdout stays clean. An optional rotating log file keeps a full record of
every run.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Libraries whose INFO chatter is not interesting during a sort
QUIET_LIBRARIES = ('mutagen',)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    console_output: bool = True,
    log_format: str = DEFAULT_FORMAT
) -> logging.Logger:
    """
    Configure the root logger for a tagsort run.

    Any handlers installed by an earlier call are dropped first, so calling
    this twice does not duplicate output.

    Args:
        level: Level name, e.g. 'DEBUG' or 'WARNING'
        log_file: Optional file receiving the same records as the console
        max_file_size: Size in bytes at which the log file is rotated
        backup_count: Number of rotated files to keep
        console_output: Whether to log to stderr
        log_format: Format string shared by all handlers

    Returns:
        The 'tagsort' logger

    Raises:
        ValueError: If the level name is unknown
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')

    formatter = logging.Formatter(fmt=log_format, datefmt=DATE_FORMAT)
    handlers = []

    if console_output:
        handlers.append(logging.StreamHandler(sys.stderr))

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            filename=str(log_file),
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        ))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    app_logger = logging.getLogger('tagsort')
    app_logger.setLevel(numeric_level)
    app_logger.debug(f"Logging initialized at {logging.getLevelName(numeric_level)}")
    if log_file:
        app_logger.info(f"Writing log to {log_file}")

    return app_logger


def _progress_interval(total: int) -> int:
    # Roughly ten reports for small batches, twenty for medium, a hundred for large
    if total <= 100:
        reports = 10
    elif total <= 1000:
        reports = 20
    else:
        reports = 100
    return max(1, total // reports)


def log_processing_progress(
    current: int,
    total: int,
    logger: logging.Logger,
    message_template: str = "Processed {current}/{total} files ({percentage:.1f}%)"
):
    """Log batch progress every few files and always for the last one."""
    if total == 0:
        return

    if current % _progress_interval(total) == 0 or current == total:
        logger.info(message_template.format(
            current=current, total=total, percentage=current / total * 100
        ))


def configure_library_logging():
    """Raise the level of chatty third-party loggers."""
    for lib_name in QUIET_LIBRARIES:
        logging.getLogger(lib_name).setLevel(logging.WARNING)
