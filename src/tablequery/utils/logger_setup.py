import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from ..config.settings import Settings

LOG_FILE_MAX_BYTES_DEFAULT = 5 * 1024 * 1024  # 5 MB
LOG_FILE_BACKUP_COUNT_DEFAULT = 3
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(module)s.%(funcName)s:%(lineno)d] - %(message)s"


def setup_logging(
    logger_name: str = "tablequery",
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    log_to_file: bool = True,
    console_output: bool = True,
    log_file_max_bytes: int = LOG_FILE_MAX_BYTES_DEFAULT,
    log_file_backup_count: int = LOG_FILE_BACKUP_COUNT_DEFAULT,
) -> logging.Logger:
    """
    Configures and returns a logger instance.

    Calling it again for an already configured logger only updates the level,
    so repeated CLI invocations in one process do not stack handlers.

    Args:
        logger_name: The logger to configure; "tablequery" covers every module in the package.
        log_level: The minimum log level to capture.
        log_dir: Directory for the rotating log file (defaults to Settings.LOGS_DIR).
        log_to_file: Whether to write a rotating log file.
        console_output: Whether to write logs to stderr.
        log_file_max_bytes: Maximum size of a log file before rotation.
        log_file_backup_count: Number of rotated files to keep.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)

    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_to_file:
        log_dir = log_dir or Settings.LOGS_DIR
        log_dir.mkdir(parents=True, exist_ok=True)
        sanitized_logger_name = "".join(c if c.isalnum() or c in ["_", "-"] else "_" for c in logger_name)
        file_handler = RotatingFileHandler(
            log_dir / f"{sanitized_logger_name}.log",
            maxBytes=log_file_max_bytes,
            backupCount=log_file_backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger
