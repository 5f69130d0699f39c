# =============================================================================
# roster_core/errors/handlers.py
# Error Handling Utilities for the Roster Sync Core
# =============================================================================

from __future__ import annotations
import functools
import traceback
from typing import Optional, Callable, TypeVar, Any

from roster_core.logging import get_logger
from .exceptions import RosterSyncError

logger = get_logger(__name__)

T = TypeVar("T")


def user_message_for(error: Exception, user_message: Optional[str] = None) -> str:
    """Message suitable for showing to the person using the app."""
    if user_message:
        return user_message
    if isinstance(error, RosterSyncError):
        return error.message
    return str(error)


def handle_error(
    error: Exception,
    notify: Optional[Callable[[str], None]] = None,
    log_error: bool = True,
    user_message: Optional[str] = None,
) -> str:
    """
    Centralized error handling function.

    Args:
        error: The exception to handle
        notify: Optional view callback that receives the user-facing message
        log_error: Whether to log the error
        user_message: Custom message to show the user (uses error message if None)

    Returns:
        The user-facing message
    """
    message = user_message_for(error, user_message)

    if isinstance(error, RosterSyncError):
        code = error.code
        details = error.details
        recoverable = error.recoverable
    else:
        code = "UNKNOWN"
        details = {"traceback": traceback.format_exc()}
        recoverable = True

    if log_error:
        logger.error(f"[{code}] {message}", extra={"details": details})

    if notify is not None:
        if not recoverable:
            message = f"Critical Error: {message}. Please contact support."
        try:
            notify(message)
        except Exception as e:
            logger.error(f"Error in error notification callback: {e}")

    return message


def error_boundary(
    default_return: Any = None,
    error_message: Optional[str] = None,
    log: bool = True,
):
    """
    Decorator to wrap callbacks that must never raise into their caller.

    Args:
        default_return: Value to return if function fails
        error_message: Prefix for the logged message
        log: Whether to log errors

    Usage:
        @error_boundary(error_message="Session listener failed")
        def on_event(event):
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Optional[T]]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Optional[T]:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if log:
                    prefix = error_message or f"Error in {func.__name__}"
                    logger.error(f"{prefix}: {e}", exc_info=True)
                return default_return

        return wrapper

    return decorator
