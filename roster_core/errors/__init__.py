# =============================================================================
# roster_core/errors/__init__.py
# Centralized Error Handling for the Roster Sync Core
# =============================================================================

from .exceptions import (
    RosterSyncError,
    EmptyInputError,
    InvalidCredentialsError,
    IdentityProviderError,
    NoActiveSessionError,
    RemoteFetchError,
    CacheCorruptError,
    ConfigurationError,
)

from .handlers import (
    handle_error,
    error_boundary,
    user_message_for,
)

__all__ = [
    # Exceptions
    "RosterSyncError",
    "EmptyInputError",
    "InvalidCredentialsError",
    "IdentityProviderError",
    "NoActiveSessionError",
    "RemoteFetchError",
    "CacheCorruptError",
    "ConfigurationError",
    # Handlers
    "handle_error",
    "error_boundary",
    "user_message_for",
]
