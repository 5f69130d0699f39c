"""
Identity provider integration for the roster sync core.
Credential checks are delegated to Supabase Auth.
"""

from .identity_provider import (
    IdentityProvider,
    SupabaseIdentityProvider,
    identity_from_user,
    is_invalid_credentials,
)

__all__ = [
    "IdentityProvider",
    "SupabaseIdentityProvider",
    "identity_from_user",
    "is_invalid_credentials",
]
