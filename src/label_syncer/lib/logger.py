"""Structured logging with credential sanitization for the label syncer."""

import logging
import re
from pathlib import Path
from typing import Any, Optional

from label_syncer.lib.config import app_config, storage_config


class PIISanitizer:
    """Sanitize personally identifiable information from log messages."""

    # Regex patterns for PII detection
    EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b")
    TOKEN_PATTERN = re.compile(r"(ya29\.[a-zA-Z0-9_-]+)")
    REFRESH_TOKEN_PATTERN = re.compile(r"(1//[a-zA-Z0-9_-]{10,})")

    @classmethod
    def sanitize_email(cls, text: str) -> str:
        """Replace email addresses with sanitized version."""
        return cls.EMAIL_PATTERN.sub(lambda m: f"***@{m.group(0).split('@')[1]}", text)

    @classmethod
    def sanitize_token(cls, text: str) -> str:
        """Replace OAuth access and refresh tokens with masked versions."""
        text = cls.TOKEN_PATTERN.sub("ya29.***", text)
        return cls.REFRESH_TOKEN_PATTERN.sub("1//***", text)

    @classmethod
    def sanitize(cls, text: str) -> str:
        """Apply all sanitization rules to text."""
        if not isinstance(text, str):
            text = str(text)

        text = cls.sanitize_email(text)
        text = cls.sanitize_token(text)

        return text


class SanitizingFormatter(logging.Formatter):
    """Custom formatter that sanitizes PII from log records."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with PII sanitization."""
        if isinstance(record.msg, str):
            record.msg = PIISanitizer.sanitize(record.msg)

        if record.args:
            sanitized_args = tuple(
                PIISanitizer.sanitize(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
            record.args = sanitized_args

        return super().format(record)


def setup_logger(
    name: str,
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Set up a logger with PII sanitization.

    Args:
        name: Logger name (usually __name__)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for file logging

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    log_level = level or app_config.log_level
    logger.setLevel(getattr(logging, log_level.upper()))

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    formatter = SanitizingFormatter(
        fmt=app_config.log_format,
        datefmt=app_config.log_date_format,
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str, log_file: Optional[str] = None) -> logging.Logger:
    """
    Get or create a logger for the given module.

    Args:
        name: Logger name (usually __name__)
        log_file: Optional log file name (will be placed in the log directory)

    Returns:
        Configured logger instance
    """
    log_path = None
    if log_file:
        log_path = storage_config.log_dir / log_file

    return setup_logger(name, log_file=log_path)


def enable_debug_logging() -> None:
    """Lower every label_syncer logger to DEBUG."""
    for name in list(logging.root.manager.loggerDict):
        if name.startswith("label_syncer"):
            logging.getLogger(name).setLevel(logging.DEBUG)


class StructuredLogger:
    """
    Structured logger for label operations.

    Appends key=value fields to each message, with automatic PII sanitization.
    """

    def __init__(self, name: str, log_file: Optional[str] = None):
        self.logger = get_logger(name, log_file)

    def _format_message(self, message: str, **kwargs: Any) -> str:
        """Append the non-empty keyword fields to the message."""
        fields = {k: v for k, v in kwargs.items() if v is not None}
        if fields:
            field_str = " | ".join(f"{k}={v}" for k, v in fields.items())
            return f"{message} | {field_str}"
        return message

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message with context."""
        self.logger.debug(self._format_message(message, **kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message with context."""
        self.logger.info(self._format_message(message, **kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message with context."""
        self.logger.warning(self._format_message(message, **kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message with context."""
        self.logger.error(self._format_message(message, **kwargs))

    def log_label_operation(
        self,
        operation: str,
        label_name: str,
        status: str,
        **fields: Any,
    ) -> None:
        """Log the outcome of a single label operation."""
        level = logging.ERROR if status == "failed" else logging.INFO
        self.logger.log(
            level,
            self._format_message(
                f"Label {operation}",
                label=label_name,
                status=status,
                **fields,
            ),
        )

    def log_sync_result(self, result: Any) -> None:
        """Log a reconciliation summary."""
        self.info(
            "Sync finished",
            created_in_gmail=len(result.created_in_gmail),
            added_to_sheet=len(result.added_to_sheet),
            ids_repaired=len(result.ids_repaired),
            failures=len(result.failures) or None,
        )


def get_structured_logger(name: str, log_file: Optional[str] = None) -> StructuredLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)
        log_file: Optional log file name

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(name, log_file)
