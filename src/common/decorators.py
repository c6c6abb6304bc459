"""
Error Handling Decorators

Consistent logging around best-effort operations, sync and async.
"""

from __future__ import annotations

import inspect
import functools
import logging
import time
from typing import Type, Callable, Any, Optional

logger = logging.getLogger(__name__)


def handle_errors(
    *exception_types: Type[Exception],
    default: Any = None,
    log_level: int = logging.ERROR,
    reraise: bool = False,
    message: Optional[str] = None,
):
    """
    Log exceptions raised by the wrapped function and return a default.

    Works on both plain functions and coroutine functions.

    Args:
        exception_types: Exception types to catch (default: Exception)
        default: Value to return on error
        log_level: Logging level for errors
        reraise: Whether to re-raise after logging
        message: Custom error message prefix

    Example:
        @handle_errors(OSError, default={}, log_level=logging.WARNING)
        def read_preferences(path):
            ...
    """
    if not exception_types:
        exception_types = (Exception,)

    def log_failure(func: Callable, e: Exception) -> None:
        prefix = message or f"{func.__name__} failed"
        logger.log(
            log_level,
            f"{prefix}: {e}",
            exc_info=log_level >= logging.ERROR,
        )

    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                try:
                    return await func(*args, **kwargs)
                except exception_types as e:
                    log_failure(func, e)
                    if reraise:
                        raise
                    return default
            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except exception_types as e:
                log_failure(func, e)
                if reraise:
                    raise
                return default
        return wrapper
    return decorator


def timed(func: Callable) -> Callable:
    """
    Log execution time of a coroutine function at debug level.
    """
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return await func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            logger.debug(f"{func.__name__} completed in {elapsed:.3f}s")
    return wrapper
