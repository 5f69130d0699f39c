# =============================================================================
# roster_core/errors/exceptions.py
# Custom Exception Hierarchy for the Roster Sync Core
# =============================================================================

from typing import Optional, Dict, Any


class RosterSyncError(Exception):
    """
    Base exception for all roster sync errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "SYNC_001")
        details: Additional context as a dictionary
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "RS_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# AUTHENTICATION EXCEPTIONS
# =============================================================================

class EmptyInputError(RosterSyncError):
    """Raised when a sign-in form field is blank"""

    def __init__(self, message: str, fields: Optional[list] = None, **kwargs):
        details = kwargs.pop("details", {})
        if fields:
            details["fields"] = fields

        super().__init__(message=message, code="AUTH_001", details=details, **kwargs)


class InvalidCredentialsError(RosterSyncError):
    """Raised when the identity provider rejects the credentials"""

    def __init__(self, message: str, email: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if email:
            details["email"] = email

        super().__init__(message=message, code="AUTH_002", details=details, **kwargs)


class IdentityProviderError(RosterSyncError):
    """Raised when the identity provider fails for reasons other than bad credentials"""

    def __init__(self, message: str, operation: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation

        super().__init__(message=message, code="AUTH_003", details=details, **kwargs)


class NoActiveSessionError(RosterSyncError):
    """Raised when an operation needs a signed-in session and there is none"""

    def __init__(self, message: str = "No active session", **kwargs):
        super().__init__(message=message, code="AUTH_004", **kwargs)


# =============================================================================
# SYNC / CACHE EXCEPTIONS
# =============================================================================

class RemoteFetchError(RosterSyncError):
    """Raised when the remote store cannot deliver the collection"""

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        cause: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if collection:
            details["collection"] = collection
        if cause:
            details["cause"] = cause

        super().__init__(message=message, code="SYNC_001", details=details, **kwargs)


class CacheCorruptError(RosterSyncError):
    """Raised when a cached entry cannot be decoded"""

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if key:
            details["key"] = key

        super().__init__(message=message, code="CACHE_001", details=details, **kwargs)


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(RosterSyncError):
    """Raised when configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type

        super().__init__(
            message=message,
            code="CONFIG_001",
            details=details,
            recoverable=False,
            **kwargs,
        )
