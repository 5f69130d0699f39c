# =============================================================================
# roster_core/config.py
# Configuration for the Roster Sync Core
# =============================================================================
"""
Settings come from a secrets.toml file first, then environment variables.

Expected secrets.toml format:
    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"

    [roster]
    collection = "mahasiswa"
    cache_path = "local_data/roster_cache.db"
    remote_timeout = 10
    log_level = "INFO"

Environment fallbacks: SUPABASE_URL, SUPABASE_KEY, ROSTER_COLLECTION,
ROSTER_CACHE_PATH, ROSTER_REMOTE_TIMEOUT, ROSTER_LOG_LEVEL.
"""

from __future__ import annotations
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from roster_core.errors import ConfigurationError
from roster_core.logging import get_logger

logger = get_logger(__name__)


DEFAULT_SECRETS_PATH = Path(".streamlit") / "secrets.toml"


@dataclass
class RosterConfig:
    """Runtime settings."""
    supabase_url: str = ""
    supabase_key: str = ""
    collection: str = "mahasiswa"
    cache_path: Path = Path("local_data") / "roster_cache.db"
    remote_timeout: float = 10.0
    log_level: str = "INFO"

    def validate(self) -> RosterConfig:
        """Raise ConfigurationError for settings the core cannot run without."""
        if not self.supabase_url:
            raise ConfigurationError("Supabase URL is not configured", config_key="supabase.url")
        if not self.supabase_key:
            raise ConfigurationError("Supabase key is not configured", config_key="supabase.key")
        if not self.collection:
            raise ConfigurationError("Collection name is empty", config_key="roster.collection")
        if self.remote_timeout <= 0:
            raise ConfigurationError(
                "Remote timeout must be positive",
                config_key="roster.remote_timeout",
                expected_type="positive number",
            )
        return self


def load_secrets_toml(secrets_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Load secrets.toml; a missing file yields an empty dict."""
    path = Path(secrets_path) if secrets_path else DEFAULT_SECRETS_PATH
    if not path.exists():
        return {}

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {path}: {e}", config_key=str(path)) from e


def load_config(secrets_path: Optional[Union[str, Path]] = None, validate: bool = True) -> RosterConfig:
    """
    Build a RosterConfig from secrets.toml and the environment.

    Args:
        secrets_path: Path to secrets.toml (default: .streamlit/secrets.toml)
        validate: Whether to require Supabase credentials
    """
    secrets = load_secrets_toml(secrets_path)
    supabase = secrets.get("supabase", {})
    roster = secrets.get("roster", {})
    defaults = RosterConfig()

    timeout_raw = roster.get("remote_timeout", os.getenv("ROSTER_REMOTE_TIMEOUT", defaults.remote_timeout))
    try:
        remote_timeout = float(timeout_raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Remote timeout is not a number: {timeout_raw!r}",
            config_key="roster.remote_timeout",
            expected_type="float",
        ) from e

    config = RosterConfig(
        supabase_url=supabase.get("url") or os.getenv("SUPABASE_URL", ""),
        supabase_key=supabase.get("key") or os.getenv("SUPABASE_KEY", ""),
        collection=roster.get("collection") or os.getenv("ROSTER_COLLECTION", defaults.collection),
        cache_path=Path(roster.get("cache_path") or os.getenv("ROSTER_CACHE_PATH", str(defaults.cache_path))),
        remote_timeout=remote_timeout,
        log_level=str(roster.get("log_level") or os.getenv("ROSTER_LOG_LEVEL", defaults.log_level)),
    )

    if validate:
        config.validate()
    logger.debug(f"Configuration loaded (collection={config.collection}, cache={config.cache_path})")
    return config
