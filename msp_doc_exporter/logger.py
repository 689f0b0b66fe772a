"""Logging setup with verbosity levels and progress tracking."""

import copy
import logging
import logging.handlers
import sys
import time
from typing import Any, Dict, Optional

import colorlog

LOGGER_NAME = 'msp_doc_exporter'

SENSITIVE_FIELDS = {
    'password', 'secret', 'api_key', 'api_token', 'client_secret',
    'access_token', 'token'
}


def setup_logging(
    verbosity: int = 0,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    level: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging with configurable verbosity levels.

    Args:
        verbosity: Verbosity level (-1=WARNING, 0=INFO, 1+=DEBUG)
        log_file: Optional path to a rotating log file
        log_format: Optional custom log format string
        date_format: Optional custom date format string
        level: Optional explicit log level name, overrides verbosity

    Returns:
        Configured package logger
    """
    if level:
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level_upper = level.upper()
        if level_upper not in allowed_levels:
            raise ValueError(
                f"Invalid log level '{level}'. Must be one of: {sorted(allowed_levels)}"
            )
        log_level = getattr(logging, level_upper)
    elif verbosity >= 1:
        log_level = logging.DEBUG
    elif verbosity == 0:
        log_level = logging.INFO
    else:
        log_level = logging.WARNING

    if log_format is None:
        log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    if date_format is None:
        date_format = '%Y-%m-%d %H:%M:%S'

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    logger.propagate = False
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(colorlog.ColoredFormatter(
        fmt='%(log_color)s' + log_format,
        datefmt=date_format,
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    ))
    logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(fmt=log_format, datefmt=date_format))
            logger.addHandler(file_handler)
            logger.info(f"Logging to file: {log_file}")
        except OSError as e:
            logger.warning(f"Failed to set up file logging: {e}")

    logger.debug(f"Log level: {logging.getLevelName(log_level)}")
    return logger


class ProgressTracker:
    """Context manager for tracking progress across organizations."""

    def __init__(self, item_type: str = "items", total_items: Optional[int] = None):
        """
        Initialize progress tracker.

        Args:
            item_type: Description of item type (e.g., "organizations")
            total_items: Total number of items, if known up front
        """
        self.item_type = item_type
        self.total_items = total_items
        self.processed_items = 0
        self.successful_items = 0
        self.failed_items = 0
        self.start_time: Optional[float] = None
        self.logger = logging.getLogger(LOGGER_NAME)

    def __enter__(self) -> 'ProgressTracker':
        self.start_time = time.time()
        if self.total_items is None:
            self.logger.info(f"Starting processing of {self.item_type}")
        else:
            self.logger.info(f"Starting processing of {self.total_items} {self.item_type}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is None:
            return

        elapsed = time.time() - self.start_time

        if self.failed_items > 0 and self.failed_items == self.processed_items:
            log_method = self.logger.error
        elif self.failed_items > 0:
            log_method = self.logger.warning
        else:
            log_method = self.logger.info

        log_method(f"=== Progress Summary: {self.item_type.upper()} ===")
        log_method(f"Processed: {self.processed_items}")
        log_method(f"Successful: {self.successful_items}")
        log_method(f"Failed: {self.failed_items}")
        log_method(f"Elapsed Time: {self._format_elapsed(elapsed)}")

    def increment(self, success: bool = True, label: str = "") -> None:
        """
        Increment progress counter.

        Args:
            success: Whether the item was processed without failures
            label: Item name for the progress line
        """
        self.processed_items += 1
        if success:
            self.successful_items += 1
        else:
            self.failed_items += 1

        status = "Success" if success else "Partial failure"
        suffix = f" - {label}" if label else ""
        self.logger.info(
            f"Processed {self.processed_items} {self.item_type}{suffix} - Last: {status}"
        )

    @staticmethod
    def _format_elapsed(seconds: float) -> str:
        """Format elapsed time in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f}s"

        minutes = int(seconds // 60)
        seconds = int(seconds % 60)

        if minutes < 60:
            return f"{minutes}m {seconds}s"

        hours = minutes // 60
        minutes = minutes % 60

        return f"{hours}h {minutes}m {seconds}s"


def log_section(title: str) -> None:
    """Log a decorative section header."""
    logger = logging.getLogger(LOGGER_NAME)

    separator = "=" * 60
    logger.info(separator)
    logger.info(f"  {title.upper()}")
    logger.info(separator)


def log_config(config: Dict[str, Any]) -> None:
    """Log configuration with secrets redacted."""
    logger = logging.getLogger(LOGGER_NAME)
    sanitized = sanitize_config(config)

    log_section("Configuration")

    vendor = sanitized.get('vendor', {})
    logger.info(f"Vendor: {vendor.get('name', 'Not Set')}")
    logger.info(f"Base URL: {vendor.get('base_url', 'adapter default')}")
    for key in ('api_key', 'api_token', 'client_id', 'client_secret'):
        if vendor.get(key):
            logger.info(f"{key}: {vendor[key]}")

    export = sanitized.get('export', {})
    logger.info(f"Output Directory: {export.get('output_directory')}")
    logger.info(f"Owner: {export.get('owner')}")
    logger.info(f"Status: {export.get('status')}")
    logger.info(f"Dry Run: {export.get('dry_run', False)}")
    logger.info(f"Organizations: {export.get('organizations') or 'All'}")

    advanced = sanitized.get('advanced', {})
    logger.info(f"Request Delay: {advanced.get('request_delay')}s")
    logger.info(f"Request Timeout: {advanced.get('request_timeout')}s")
    logger.info(f"Rate Limit Retries: {advanced.get('rate_limit_retries')}")


def sanitize_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a copy of configuration with sensitive fields masked.

    Args:
        config: Configuration dictionary

    Returns:
        Sanitized configuration copy
    """
    def mask_sensitive(data: Any) -> Any:
        if isinstance(data, dict):
            masked = {}
            for key, value in data.items():
                is_sensitive = any(sensitive in key.lower() for sensitive in SENSITIVE_FIELDS)
                if is_sensitive and isinstance(value, str) and value:
                    masked[key] = "***REDACTED***"
                else:
                    masked[key] = mask_sensitive(value)
            return masked
        elif isinstance(data, list):
            return [mask_sensitive(item) for item in data]
        return data

    return mask_sensitive(copy.deepcopy(config))


__all__ = [
    'setup_logging',
    'ProgressTracker',
    'log_section',
    'log_config',
    'sanitize_config'
]
