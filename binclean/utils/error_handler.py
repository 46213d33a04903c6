"""Error handling utilities."""

import logging
import traceback
from typing import Callable, Any
from functools import wraps

from .exceptions import BinCleanError

logger = logging.getLogger(__name__)


def handle_errors(
    error_message: str = "An error occurred",
    reraise: bool = True,
    default_return: Any = None,
):
    """
    Decorator for error handling.

    Args:
        error_message: Custom error message prefix
        reraise: Whether to reraise the exception after logging
        default_return: Value to return if error occurs and not reraising

    Usage:
        @handle_errors("Failed to query project", reraise=False)
        def query(project_path):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except BinCleanError as e:
                logger.error(f"{error_message}: {e}")
                if reraise:
                    raise
                return default_return
            except Exception as e:
                logger.error(f"{error_message}: Unexpected error: {e}")
                logger.debug(traceback.format_exc())
                if reraise:
                    raise BinCleanError(f"{error_message}: {str(e)}") from e
                return default_return
        return wrapper
    return decorator


def log_unit_error(
    unit_path: str,
    stage: str,
    error: Exception,
    context: dict = None,
) -> dict:
    """
    Log a build unit failure with context.

    Args:
        unit_path: Path of the build unit (project file)
        stage: Processing stage (query, gate, resolve, delete)
        error: The exception that occurred
        context: Additional context information

    Returns:
        Structured error summary
    """
    logger.error(f"Build unit '{unit_path}' failed at stage '{stage}': {error}")

    if context:
        logger.debug(f"Context: {context}")

    logger.debug(traceback.format_exc())

    error_info = {
        "unit": unit_path,
        "stage": stage,
        "error_type": type(error).__name__,
        "error_message": str(error),
        "context": context or {},
    }

    logger.debug(f"Error summary: {error_info}")
    return error_info
