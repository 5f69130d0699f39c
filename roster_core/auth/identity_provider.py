# =============================================================================
# roster_core/auth/identity_provider.py
# Identity Provider Contract and Supabase Auth Implementation
# =============================================================================
"""
The core never checks credentials itself. It talks to an IdentityProvider:

    sign_in(email, secret) -> Identity
    sign_out() -> None
    on_session_change(callback) -> unsubscribe
    current_identity() -> Identity | None

SupabaseIdentityProvider maps these onto `client.auth`.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional
import logging

from roster_core.data.models import Identity
from roster_core.errors import IdentityProviderError, InvalidCredentialsError

logger = logging.getLogger(__name__)


SessionCallback = Callable[[Optional[Identity]], None]

# Supabase auth events and whether they leave a user signed in
SIGNED_IN_EVENTS = {"INITIAL_SESSION", "SIGNED_IN", "TOKEN_REFRESHED", "USER_UPDATED", "MFA_CHALLENGE_VERIFIED"}
SIGNED_OUT_EVENTS = {"SIGNED_OUT", "USER_DELETED"}

INVALID_CREDENTIAL_CODES = {"invalid_credentials", "invalid_grant", "email_not_confirmed"}


class IdentityProvider(ABC):
    """External identity provider consumed by the core."""

    @abstractmethod
    def sign_in(self, email: str, secret: str) -> Identity:
        """Verify credentials; raises InvalidCredentialsError or IdentityProviderError."""

    @abstractmethod
    def sign_out(self) -> None:
        """End the provider session; raises IdentityProviderError."""

    @abstractmethod
    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        """Call callback with the identity (or None) on every session change."""

    @abstractmethod
    def current_identity(self) -> Optional[Identity]:
        """Identity of the session the provider currently holds, if any."""


def identity_from_user(user: Any) -> Optional[Identity]:
    """Build an Identity from a Supabase user object or dict."""
    if user is None:
        return None
    if isinstance(user, dict):
        user_id, email = user.get("id"), user.get("email")
    else:
        user_id, email = getattr(user, "id", None), getattr(user, "email", None)
    if not user_id:
        return None
    return Identity(id=str(user_id), email=email)


def is_invalid_credentials(error: Exception) -> bool:
    """Whether a Supabase auth error means the credentials were rejected."""
    if type(error).__name__ == "AuthInvalidCredentialsError":
        return True
    code = getattr(error, "code", None)
    if isinstance(code, str) and code in INVALID_CREDENTIAL_CODES:
        return True
    status = getattr(error, "status", None)
    if status in (400, 401) and type(error).__name__ == "AuthApiError":
        return True
    return "invalid login credentials" in str(error).lower()


class SupabaseIdentityProvider(IdentityProvider):
    """
    Identity provider backed by Supabase Auth.

    Usage:
        provider = SupabaseIdentityProvider(create_client(url, key))
        identity = provider.sign_in("ana@kampus.ac.id", "rahasia")
    """

    def __init__(self, client: Any):
        self.client = client

    def sign_in(self, email: str, secret: str) -> Identity:
        try:
            response = self.client.auth.sign_in_with_password({"email": email, "password": secret})
        except Exception as e:
            if is_invalid_credentials(e):
                raise InvalidCredentialsError(
                    getattr(e, "message", None) or str(e) or "Invalid login credentials",
                    email=email,
                ) from e
            raise IdentityProviderError(f"Sign-in failed: {e}", operation="sign_in") from e

        identity = identity_from_user(getattr(response, "user", None))
        if identity is None:
            raise InvalidCredentialsError("Identity provider returned no user", email=email)
        logger.info(f"Signed in as {identity.email or identity.id}")
        return identity

    def sign_out(self) -> None:
        try:
            self.client.auth.sign_out()
        except Exception as e:
            raise IdentityProviderError(f"Sign-out failed: {e}", operation="sign_out") from e
        logger.info("Signed out")

    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        def _on_auth_state_change(event: Any, session: Any) -> None:
            name = getattr(event, "value", event)
            if name in SIGNED_OUT_EVENTS or session is None:
                callback(None)
            elif name in SIGNED_IN_EVENTS:
                callback(identity_from_user(getattr(session, "user", None)))
            else:
                logger.debug(f"Ignoring auth event: {name}")

        subscription = self.client.auth.on_auth_state_change(_on_auth_state_change)

        def unsubscribe() -> None:
            subscription.unsubscribe()

        return unsubscribe

    def current_identity(self) -> Optional[Identity]:
        try:
            session = self.client.auth.get_session()
        except Exception as e:
            logger.warning(f"Could not read current auth session: {e}")
            return None
        if session is None:
            return None
        return identity_from_user(getattr(session, "user", None))
