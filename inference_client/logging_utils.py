"""
Centralized logging utilities for the inference client.

This module provides decorators and helpers to standardize logging
patterns across the client:
- Structured logging with contextual information
- Error classification for transport failures
- Performance timing for operations
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, ParamSpec, TypeVar

import httpx
import structlog
from pydantic import ValidationError

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(colors=True),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

# Type variables for generic decorators
P = ParamSpec("P")
T = TypeVar("T")
AsyncCallable = Callable[P, Awaitable[T]]

logger = structlog.get_logger(__name__)


def configure_logging(logging_config: dict[str, Any] | None = None) -> None:
    """Set the stdlib root level that structlog filters against."""
    logging_config = logging_config or {}
    level_name = str(logging_config.get("level", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ValueError(f"Unknown logging level '{level_name}'")
    logging.basicConfig(level=level, format="%(message)s")
    logging.getLogger().setLevel(level)


def classify_error(error: BaseException) -> str:
    """
    Classify an error into a coarse category for logging and error data.

    Args:
        error: The exception to classify

    Returns:
        Error category name
    """
    if isinstance(error, httpx.TimeoutException | TimeoutError):
        return "timeout_error"
    if isinstance(error, httpx.NetworkError | ConnectionError):
        return "connection_error"
    if isinstance(error, httpx.RemoteProtocolError | httpx.DecodingError):
        return "protocol_error"
    if isinstance(error, ValidationError):
        return "validation_error"
    if isinstance(error, OSError):
        return "connection_error"
    return "unknown_error"


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)


def log_operation(
    operation: str,
) -> Callable[[AsyncCallable[P, T]], AsyncCallable[P, T]]:
    """
    Decorator for logging async operations with structured context.

    Args:
        operation: Description of the operation being performed

    Returns:
        Decorated function with logging
    """
    def decorator(func: AsyncCallable[P, T]) -> AsyncCallable[P, T]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            operation_logger = logger.bind(
                operation=operation,
                function=func.__name__,
            )

            operation_logger.debug("Operation started")
            start_time = time.perf_counter()

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                operation_logger.error(
                    "Operation failed",
                    error_type=type(e).__name__,
                    error_message=str(e),
                    duration_ms=_elapsed_ms(start_time),
                )
                raise

            operation_logger.info(
                "Operation completed successfully",
                duration_ms=_elapsed_ms(start_time),
            )
            return result

        return wrapper
    return decorator


@asynccontextmanager
async def operation_context(
    operation: str,
    *,
    context: dict[str, Any] | None = None,
):
    """
    Async context manager for operation logging.

    Args:
        operation: Description of the operation
        context: Additional context for logging

    Yields:
        Bound logger for the operation
    """
    operation_logger = logger.bind(
        operation=operation,
        **(context or {}),
    )

    operation_logger.debug("Operation started")
    start_time = time.perf_counter()

    try:
        yield operation_logger
    except Exception as e:
        operation_logger.error(
            "Operation failed",
            error_type=type(e).__name__,
            error_message=str(e),
            duration_ms=_elapsed_ms(start_time),
        )
        raise

    operation_logger.debug(
        "Operation completed successfully", duration_ms=_elapsed_ms(start_time)
    )


class ContextualLogger:
    """Logger that maintains context across related operations."""

    def __init__(self, base_context: dict[str, Any] | None = None):
        self.base_context = base_context or {}
        self._logger = logger.bind(**self.base_context)

    def warning(self, message: str, **context: Any) -> None:
        self._logger.warning(message, **context)

    def debug(self, message: str, **context: Any) -> None:
        self._logger.debug(message, **context)
