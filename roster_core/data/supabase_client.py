# =============================================================================
# roster_core/data/supabase_client.py
# Supabase Client Configuration and Remote Store Access
# =============================================================================

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, List
import logging

from roster_core.errors import ConfigurationError, RemoteFetchError

logger = logging.getLogger(__name__)


# Upper bound for a single remote query, in seconds
DEFAULT_REMOTE_TIMEOUT = 10.0


def create_supabase_client(url: str, key: str, timeout: float = DEFAULT_REMOTE_TIMEOUT):
    """
    Create a Supabase client whose PostgREST queries are bounded by timeout.

    Args:
        url: Project URL, e.g. https://your-project.supabase.co
        key: Anon (public) API key
        timeout: Seconds before a remote query is abandoned

    Returns:
        Supabase client instance
    """
    if not url:
        raise ConfigurationError("Supabase URL is not configured", config_key="supabase.url")
    if not key:
        raise ConfigurationError("Supabase key is not configured", config_key="supabase.key")

    from supabase import create_client
    from supabase.client import ClientOptions

    options = ClientOptions(postgrest_client_timeout=timeout)
    client = create_client(url, key, options=options)
    logger.info(f"Supabase client created for {url} (timeout {timeout:.0f}s)")
    return client


class RemoteStore(ABC):
    """Read-only source of truth for a named collection."""

    @abstractmethod
    def fetch_collection(self, name: str) -> List[Dict[str, Any]]:
        """Return every row of the collection; raises RemoteFetchError."""


class SupabaseRemoteStore(RemoteStore):
    """
    Remote store backed by a Supabase table.

    Usage:
        store = SupabaseRemoteStore(client)
        rows = store.fetch_collection("mahasiswa")
    """

    def __init__(self, client: Any):
        self.client = client

    def is_connected(self) -> bool:
        """Check if Supabase client is available."""
        return self.client is not None

    def fetch_collection(self, name: str) -> List[Dict[str, Any]]:
        if not self.is_connected():
            raise RemoteFetchError("Supabase client is not available", collection=name)

        try:
            response = self.client.table(name).select("*").execute()
        except Exception as e:
            raise RemoteFetchError(
                f"Error fetching data from {name}",
                collection=name,
                cause=f"{type(e).__name__}: {e}",
            ) from e

        data = getattr(response, "data", None)
        if data is None:
            return []
        if not isinstance(data, list):
            raise RemoteFetchError(
                f"Unexpected response shape from {name}",
                collection=name,
                cause=type(data).__name__,
            )
        logger.debug(f"Fetched {len(data)} rows from {name}")
        return data
