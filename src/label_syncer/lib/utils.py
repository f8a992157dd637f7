"""Utility functions for the label syncer."""

import os
import random
import stat
import time
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from google.auth.exceptions import TransportError
from googleapiclient.errors import HttpError

from label_syncer.lib.config import gmail_config, security_config
from label_syncer.lib.logger import get_logger

logger = get_logger(__name__)

# Type variable for generic function return type
T = TypeVar("T")

# Errors a Google API call can raise: HTTP responses and transport failures
API_ERRORS = (HttpError, TransportError, OSError)


def retry_with_exponential_backoff(
    max_retries: Optional[int] = None,
    initial_delay: Optional[float] = None,
    max_delay: Optional[float] = None,
    multiplier: Optional[float] = None,
    jitter: bool = True,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator for retrying Google API calls with exponential backoff.

    Only HTTP 429 and 5xx responses are retried; any other error is raised
    on the first attempt.

    Args:
        max_retries: Maximum number of attempts (default: gmail_config.max_retries)
        initial_delay: Initial delay in seconds (default: gmail_config.initial_backoff)
        max_delay: Maximum delay in seconds (default: gmail_config.max_backoff)
        multiplier: Backoff multiplier (default: gmail_config.backoff_multiplier)
        jitter: Add random jitter to delays (default: True)

    Returns:
        Decorated function with retry logic
    """
    _max_retries = max_retries or gmail_config.max_retries
    _initial_delay = initial_delay or gmail_config.initial_backoff
    _max_delay = max_delay or gmail_config.max_backoff
    _multiplier = multiplier or gmail_config.backoff_multiplier

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            delay = _initial_delay

            for attempt in range(_max_retries):
                try:
                    return func(*args, **kwargs)

                except HttpError as error:
                    status_code = error.resp.status

                    if status_code == 429 or 500 <= status_code < 600:
                        if attempt < _max_retries - 1:
                            actual_delay = delay
                            if jitter:
                                actual_delay = delay * (0.5 + random.random())

                            actual_delay = min(actual_delay, _max_delay)

                            logger.warning(
                                f"HTTP {status_code} error in {func.__name__}, "
                                f"retrying in {actual_delay:.2f}s "
                                f"(attempt {attempt + 1}/{_max_retries})"
                            )

                            time.sleep(actual_delay)
                            delay *= _multiplier
                        else:
                            logger.error(
                                f"Max retries ({_max_retries}) exceeded for {func.__name__}"
                            )
                            raise
                    else:
                        logger.debug(
                            f"HTTP {status_code} error in {func.__name__}, not retrying"
                        )
                        raise

            raise RuntimeError(f"Unexpected error in retry logic for {func.__name__}")

        return wrapper

    return decorator


def rate_limit(calls_per_second: Optional[float] = None) -> Callable:
    """
    Decorator to rate limit function calls.

    Args:
        calls_per_second: Maximum calls per second (default: gmail_config.api_rate_limit)

    Returns:
        Decorated function with rate limiting
    """
    delay = 1.0 / (calls_per_second or gmail_config.api_rate_limit)
    last_call_time = [0.0]

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            elapsed = time.time() - last_call_time[0]

            if elapsed < delay:
                time.sleep(delay - elapsed)

            last_call_time[0] = time.time()

            return func(*args, **kwargs)

        return wrapper

    return decorator


def batch_items(items: list[T], batch_size: int) -> list[list[T]]:
    """
    Split a list into batches of specified size.

    Example:
        >>> batch_items([1, 2, 3, 4, 5], 2)
        [[1, 2], [3, 4], [5]]
    """
    if batch_size <= 0:
        raise ValueError("Batch size must be positive")

    return [items[i : i + batch_size] for i in range(0, len(items), batch_size)]


def column_letter(column: int) -> str:
    """
    Convert a 1-based column number to A1 notation letters.

    Example:
        >>> column_letter(28)
        'AB'
    """
    if column <= 0:
        raise ValueError(f"Column must be positive, got {column}")

    letters = ""
    while column:
        column, remainder = divmod(column - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def quote_list(names: list[str]) -> str:
    """Join names as a quoted, comma-separated list: "a", "b"."""
    return ", ".join(f'"{name}"' for name in names)


class Timer:
    """Simple context manager for timing operations."""

    def __init__(self, name: str = "Operation"):
        self.name = name
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.elapsed: Optional[float] = None

    def __enter__(self) -> "Timer":
        """Start the timer."""
        self.start_time = time.time()
        return self

    def __exit__(self, *args: Any) -> None:
        """Stop the timer and log the duration."""
        self.end_time = time.time()
        if self.start_time is not None:
            self.elapsed = self.end_time - self.start_time
            logger.debug(f"{self.name} took {self.elapsed:.2f} seconds")

    @property
    def elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        if self.elapsed is not None:
            return self.elapsed * 1000
        return 0.0


def ensure_secure_file(file_path: Path, mode: int = 0o600) -> None:
    """
    Ensure file has secure permissions, fix if needed.

    Files readable or writable by group or others are reset to owner-only
    access when auto-fix is enabled.

    Args:
        file_path: Path to the file to secure
        mode: Target permission mode (default: 0o600 - owner read/write only)
    """
    if not file_path.exists():
        file_path.touch(mode=mode)
        logger.debug(f"Created {file_path} with secure permissions {oct(mode)}")
        return

    current_mode = stat.S_IMODE(os.stat(file_path).st_mode)

    if current_mode & (stat.S_IRWXG | stat.S_IRWXO):
        logger.warning(
            f"Insecure permissions detected on {file_path}: {oct(current_mode)}. "
            f"Fixing to {oct(mode)}."
        )

        if security_config.auto_fix_permissions:
            os.chmod(file_path, mode)
            logger.info(f"Fixed permissions on {file_path} to {oct(mode)}")
        else:
            logger.warning(
                f"AUTO_FIX_PERMISSIONS is disabled. "
                f"Please manually run: chmod {oct(mode)[-3:]} {file_path}"
            )


def ensure_secure_directory(dir_path: Path, mode: int = 0o700) -> None:
    """
    Ensure directory exists and has owner-only permissions.

    Args:
        dir_path: Path to the directory to secure
        mode: Target permission mode (default: 0o700 - owner access only)
    """
    dir_path.mkdir(parents=True, exist_ok=True, mode=mode)

    # mkdir is subject to umask
    current_mode = stat.S_IMODE(os.stat(dir_path).st_mode)

    if current_mode & (stat.S_IRWXG | stat.S_IRWXO):
        logger.warning(
            f"Insecure permissions detected on directory {dir_path}: {oct(current_mode)}. "
            f"Fixing to {oct(mode)}."
        )

        if security_config.auto_fix_permissions:
            os.chmod(dir_path, mode)
            logger.info(f"Fixed directory permissions on {dir_path} to {oct(mode)}")
        else:
            logger.warning(
                f"AUTO_FIX_PERMISSIONS is disabled. "
                f"Please manually run: chmod {oct(mode)[-3:]} {dir_path}"
            )
