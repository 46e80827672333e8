"""Structured logging utilities with context support."""

import functools
import logging
import threading
import uuid
from typing import Any, Callable, Dict, Optional

# Thread-local storage for log context
_thread_local = threading.local()

# Personal or secret fields that never reach the logs
SENSITIVE_FIELDS = {
    "email",
    "phone",
    "address",
    "api_key",
    "token",
    "secret",
    "password",
}


def generate_run_id() -> str:
    """
    Generate an identifier tying together the log lines of one command run.

    Returns:
        Short random hexadecimal string
    """
    return uuid.uuid4().hex[:12]


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the fields currently attached to log records."""
    return dict(getattr(_thread_local, "context", {}))


class LogContext:
    """
    Context manager for adding structured fields to log records.

    Fields are kept in thread-local storage and copied onto every record by
    ``_ContextFilter``. Nested contexts add to the outer fields and restore
    them on exit.

    Example:
        with LogContext(command="create-invoice", client_id="c1"):
            logger.info("Creating invoice")
            # Record carries command and client_id
    """

    def __init__(self, **kwargs):
        self.fields = kwargs
        self.previous_context: Optional[Dict[str, Any]] = None

    def __enter__(self):
        if not hasattr(_thread_local, "context"):
            _thread_local.context = {}
        self.previous_context = _thread_local.context.copy()
        _thread_local.context.update(self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _thread_local.context = self.previous_context or {}


class _ContextFilter(logging.Filter):
    """Logging filter that adds context fields to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in getattr(_thread_local, "context", {}).items():
            setattr(record, key, value)
        return True


def sanitize_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Redact personal and secret values before they are logged.

    Keys are matched case-insensitively by substring, so ``contact_email``
    and ``billing_address`` are redacted too. Nested dictionaries are
    processed recursively.

    Args:
        data: Dictionary to sanitize

    Returns:
        Copy of the dictionary with sensitive values redacted
    """
    if not isinstance(data, dict):
        return data

    sanitized: Dict[str, Any] = {}
    for key, value in data.items():
        if any(sensitive in key.lower() for sensitive in SENSITIVE_FIELDS):
            sanitized[key] = "***REDACTED***" if value else value
        elif isinstance(value, dict):
            sanitized[key] = sanitize_sensitive_data(value)
        else:
            sanitized[key] = value
    return sanitized


def log_function_call(
    func: Optional[Callable] = None, *, include_args: bool = False, level: str = "DEBUG"
) -> Callable:
    """
    Decorator to log function entry, exit and exceptions.

    Args:
        func: Function to decorate (when used without arguments)
        include_args: Whether to include function arguments in logs. Keyword
            arguments pass through sanitize_sensitive_data first.
        level: Log level to use for entry and exit

    Example:
        @log_function_call
        def save_collection(key, records):
            ...

        @log_function_call(include_args=True, level="INFO")
        def import_data(document, mode):
            ...
    """

    def decorator(f: Callable) -> Callable:
        @functools.wraps(f)
        def wrapper(*args, **kwargs):
            logger = logging.getLogger(f.__module__)
            log_level = getattr(logging, level.upper())

            if include_args:
                shown = sanitize_sensitive_data(kwargs)
                signature = ", ".join(
                    [repr(a) for a in args] + [f"{k}={v!r}" for k, v in shown.items()]
                )
                logger.log(log_level, f"Entering {f.__name__} with args: {signature}")
            else:
                logger.log(log_level, f"Entering {f.__name__}")

            try:
                result = f(*args, **kwargs)
            except Exception as e:
                logger.error(f"Exception in {f.__name__}: {type(e).__name__}: {e}")
                raise

            logger.log(log_level, f"Exiting {f.__name__}")
            return result

        return wrapper

    if func is None:
        return decorator
    return decorator(func)
