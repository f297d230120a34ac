"""
Error taxonomy and error handling utilities for the team memory server.

Every failure that can reach the MCP boundary is one of the exceptions
defined here. Nothing is retried or recovered: a single outbound call either
succeeds or its failure is surfaced to the caller as-is.
"""

import asyncio
import functools
import logging
from typing import Any, Callable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class TeamMemoryError(Exception):
    """Base class for all errors raised by the team memory server."""

    def to_dict(self) -> Dict[str, Any]:
        """Describe the error for structured logging."""
        return {
            "type": type(self).__name__,
            "message": str(self),
        }


class ConfigurationError(TeamMemoryError):
    """Raised when the server is missing a credential or has invalid settings."""

    def __init__(self, message: str, guidance: Optional[str] = None):
        """
        Initialize configuration error.

        Args:
            message: What is wrong with the configuration
            guidance: Optional instructions telling the user how to fix it
        """
        self.guidance = guidance
        super().__init__(message if not guidance else f"{message}\n\n{guidance}")


class RemoteError(TeamMemoryError):
    """Raised when the remote memory API call does not succeed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        """
        Initialize remote error.

        Args:
            message: Transport failure message or HTTP reason
            status_code: HTTP status code, None for transport failures
        """
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data


class ValidationError(TeamMemoryError):
    """Raised when tool input is malformed. Always raised before any network call."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


def log_tool_errors(tool_name: Optional[str] = None) -> Callable:
    """
    Decorator that logs failures of a tool handler and re-raises them.

    Errors from the taxonomy above are logged as warnings with their
    structured description; anything else is logged with its traceback.

    Args:
        tool_name: Name used in log messages, defaults to the function name

    Returns:
        Decorated function with error logging
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = tool_name or func.__name__

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except TeamMemoryError as e:
                logger.warning(f"Tool '{name}' failed: {e.to_dict()}")
                raise
            except Exception:
                logger.exception(f"Unexpected error in tool '{name}'")
                raise

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except TeamMemoryError as e:
                logger.warning(f"Tool '{name}' failed: {e.to_dict()}")
                raise
            except Exception:
                logger.exception(f"Unexpected error in tool '{name}'")
                raise

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
