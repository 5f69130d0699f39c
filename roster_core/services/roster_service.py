# =============================================================================
# roster_core/services/roster_service.py
# View-Facing Entry Points: Sign In, Sign Out, Refresh
# =============================================================================
"""
RosterService - The only surface a view needs.

Usage:
------
from roster_core.config import load_config
from roster_core.services import create_service

service = create_service(load_config())
service.start()

result = service.sign_in("ana@kampus.ac.id", "rahasia")
if not result:
    show_alert(result.error)

state = service.state          # SessionState snapshot
result = service.refresh_entities()
service.sign_out()
service.shutdown()
"""

from __future__ import annotations
from typing import Callable, List, Optional

from roster_core.auth.identity_provider import IdentityProvider, SupabaseIdentityProvider
from roster_core.config import RosterConfig
from roster_core.data.models import SessionProfile, Student
from roster_core.data.supabase_client import SupabaseRemoteStore, create_supabase_client
from roster_core.errors import EmptyInputError, NoActiveSessionError, RemoteFetchError, handle_error
from roster_core.logging import setup_logging
from roster_core.offline.cache_manager import CacheManager
from roster_core.offline.local_cache import LocalCache
from roster_core.offline.session_monitor import SessionMonitor
from roster_core.offline.sync_engine import SyncEngine
from roster_core.services.base_service import BaseService, ServiceResult
from roster_core.state.session_state import SessionState, SessionStore


class RosterService(BaseService):
    """
    Facade over the session monitor and the sync engine.

    Lifecycle: start() once at process start, shutdown() at exit.
    """

    def __init__(
        self,
        provider: IdentityProvider,
        monitor: SessionMonitor,
        engine: SyncEngine,
        cache: LocalCache,
        on_error: Optional[Callable[[str], None]] = None,
    ):
        super().__init__(on_error=on_error)
        self.provider = provider
        self.monitor = monitor
        self.engine = engine
        self.cache = cache
        if engine.on_error is None:
            engine.on_error = on_error
        self._started = False

    @property
    def store(self) -> SessionStore:
        return self.engine.store

    @property
    def state(self) -> SessionState:
        """Current SessionState snapshot."""
        return self.store.snapshot()

    def subscribe(self, listener: Callable[[SessionState], None]) -> Callable[[], None]:
        """Call listener with a fresh snapshot after every state change."""
        return self.store.subscribe(listener)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> None:
        """Begin observing the identity provider."""
        if self._started:
            return
        self.monitor.register_callback(self.engine.handle_session_event)
        self.monitor.start()
        self._started = True
        self.logger.info("Roster service started")

    def shutdown(self, timeout: Optional[float] = 5.0) -> None:
        """Release the session subscription and close the cache."""
        self.monitor.stop()
        self.monitor.unregister_callback(self.engine.handle_session_event)
        self.engine.wait_for_refreshes(timeout)
        self.cache.close()
        self._started = False
        self.logger.info("Roster service stopped")

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def sign_in(self, email: str, secret: str) -> ServiceResult:
        """
        Sign in with email and password.

        Returns:
            ServiceResult with the cached SessionProfile as data
        """
        return self.safe_execute("Signing in", self._sign_in, email, secret)

    def _sign_in(self, email: str, secret: str) -> SessionProfile:
        blank = [name for name, value in (("email", email), ("password", secret))
                 if value is None or not str(value).strip()]
        if blank:
            raise EmptyInputError("Email and password must not be empty.", fields=blank)

        identity = self.provider.sign_in(email.strip(), secret)
        return self.engine.record_sign_in(identity)

    def sign_out(self) -> ServiceResult:
        """Sign out, then purge cached profile and mahasiswa, then reset state."""
        return self.safe_execute("Signing out", self._sign_out)

    def _sign_out(self) -> None:
        self.provider.sign_out()
        self.engine.clear_session_data()

    def refresh_entities(self) -> ServiceResult:
        """
        Cache-first refresh of the mahasiswa list.

        On a remote failure the result fails but `data` still carries the
        entities left visible (cached or empty).
        """
        with self.log_operation("Refreshing mahasiswa"):
            try:
                students: List[Student] = self.engine.refresh_entities()
                return ServiceResult.ok(students)
            except RemoteFetchError as e:
                # Already reported by the engine
                return ServiceResult.from_exception(e, data=self.state.entities)
            except NoActiveSessionError as e:
                handle_error(e, notify=self.on_error)
                return ServiceResult.from_exception(e)
            except Exception as e:
                self.logger.error(f"Refreshing mahasiswa failed: {e}", exc_info=True)
                handle_error(e, notify=self.on_error, log_error=False)
                return ServiceResult.from_exception(e, data=self.state.entities)


def create_service(
    config: RosterConfig,
    on_error: Optional[Callable[[str], None]] = None,
    client=None,
    configure_logging: bool = True,
    log_to_file: bool = True,
) -> RosterService:
    """
    Wire a RosterService against Supabase and the local SQLite cache.

    Args:
        config: Loaded configuration
        on_error: View callback for user-facing error messages
        client: Existing Supabase client (created from config when omitted)
        configure_logging: Apply config.log_level through setup_logging
        log_to_file: Also write the daily log file under logs/
    """
    if configure_logging:
        setup_logging(config.log_level, log_to_file=log_to_file)

    if client is None:
        client = create_supabase_client(config.supabase_url, config.supabase_key, config.remote_timeout)

    cache = LocalCache(config.cache_path)
    store = SessionStore()
    engine = SyncEngine(
        CacheManager(cache),
        SupabaseRemoteStore(client),
        store,
        collection=config.collection,
        on_error=on_error,
    )
    provider = SupabaseIdentityProvider(client)
    return RosterService(provider, SessionMonitor(provider), engine, cache, on_error=on_error)
