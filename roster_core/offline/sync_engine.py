# =============================================================================
# roster_core/offline/sync_engine.py
# Cache-First Synchronization Engine
# =============================================================================
"""
SyncEngine - Serves cached mahasiswa records first, then reconciles them
with the remote store, and reacts to session transitions.

Refresh sequence (per call, strictly ordered):
1. refreshing = True
2. publish cached collection, if any, as a provisional result
3. fetch the remote collection
   - non-empty -> replace state and cache
   - empty     -> clear state, delete cache entry
   - failure   -> keep the provisional result, report, cache untouched
4. refreshing = False

Results are committed only while the session that started the refresh is
still current.
"""

from __future__ import annotations
import sqlite3
import threading
from typing import Callable, List, Optional
import logging

from roster_core.data.models import Identity, SessionProfile, Student, students_from_records
from roster_core.data.supabase_client import RemoteStore
from roster_core.errors import NoActiveSessionError, RemoteFetchError, error_boundary, handle_error
from roster_core.logging import LogContext
from roster_core.offline.cache_manager import CacheManager
from roster_core.offline.session_monitor import SessionEvent
from roster_core.state.session_state import SessionStore

logger = logging.getLogger(__name__)


DEFAULT_COLLECTION = "mahasiswa"
REFRESH_FAILED_MESSAGE = "Failed to load mahasiswa data from server."


class SyncEngine:
    """
    Synchronizer between the local cache, the remote store and SessionStore.

    Usage:
        engine = SyncEngine(cache_manager, remote_store, store)
        monitor.register_callback(engine.handle_session_event)
        students = engine.refresh_entities()
    """

    def __init__(
        self,
        cache_manager: CacheManager,
        remote_store: RemoteStore,
        store: SessionStore,
        collection: str = DEFAULT_COLLECTION,
        auto_refresh_in_background: bool = True,
        on_error: Optional[Callable[[str], None]] = None,
    ):
        self.cache_manager = cache_manager
        self.remote_store = remote_store
        self.store = store
        self.collection = collection
        self.auto_refresh_in_background = auto_refresh_in_background
        self.on_error = on_error
        self._threads: List[threading.Thread] = []
        self._threads_lock = threading.Lock()

    # =========================================================================
    # SESSION TRANSITIONS
    # =========================================================================

    def handle_session_event(self, event: SessionEvent) -> None:
        """Apply a SignedIn / SignedOut transition from the session monitor."""
        if event.signed_in and event.identity is not None:
            self._enter_signed_in(event.identity)
        else:
            self.store.end_session()
            logger.info("Signed out: in-memory profile and mahasiswa cleared")

    def _enter_signed_in(self, identity: Identity) -> None:
        generation = self.store.begin_session(identity)

        profile = self.cache_manager.load_profile()
        if profile is not None and profile.identity_id != identity.id:
            logger.info("Cached profile belongs to another identity, ignoring it")
            profile = None
        if profile is not None:
            self.store.set_cached_profile(profile, generation)

        self._schedule_refresh()

    def _schedule_refresh(self) -> None:
        if not self.auto_refresh_in_background:
            self._refresh_quietly()
            return

        thread = threading.Thread(target=self._refresh_quietly, daemon=True, name="RosterRefresh")
        with self._threads_lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            self._threads.append(thread)
        thread.start()

    @error_boundary(error_message="Automatic refresh failed")
    def _refresh_quietly(self) -> None:
        """Automatic refresh after sign-in; failures are already reported."""
        try:
            self.refresh_entities()
        except NoActiveSessionError:
            logger.debug("Session ended before the automatic refresh started")
        except RemoteFetchError:
            pass

    def wait_for_refreshes(self, timeout: Optional[float] = None) -> None:
        """Block until background refreshes started so far have finished."""
        with self._threads_lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join(timeout)

    # =========================================================================
    # SIGN-IN / SIGN-OUT SIDE EFFECTS
    # =========================================================================

    def record_sign_in(self, identity: Identity) -> SessionProfile:
        """Persist the profile first, then expose it in memory."""
        profile = SessionProfile.from_identity(identity)
        self.cache_manager.save_profile(profile)
        generation = self.store.begin_session(identity)
        self.store.set_cached_profile(profile, generation)
        return profile

    def clear_session_data(self) -> None:
        """Purge both cache entries, then reset in-memory state."""
        # Same lock as _commit, so no refresh can rewrite the cache in between
        with self.store.lock:
            self.cache_manager.purge()
            self.store.end_session()

    # =========================================================================
    # REFRESH
    # =========================================================================

    def refresh_entities(self) -> List[Student]:
        """
        Cache-first refresh of the mahasiswa collection.

        Returns:
            The authoritative collection, as committed to state

        Raises:
            NoActiveSessionError: nobody is signed in
            RemoteFetchError: remote store failed; cached data stays visible
        """
        with self.store.lock:
            generation = self.store.generation
            owner = self.store.current_identity_id
        if owner is None:
            raise NoActiveSessionError("Sign in to load mahasiswa data")

        self.store.begin_refresh()
        try:
            cached = self.cache_manager.load_students(owner)
            if cached is not None:
                if self.store.publish_entities(cached, generation):
                    logger.debug(f"Showing {len(cached)} cached mahasiswa records")

            try:
                with LogContext(logger, f"Fetching {self.collection}"):
                    rows = self.remote_store.fetch_collection(self.collection)
                    students = students_from_records(rows)
            except RemoteFetchError as e:
                self._report(e, generation)
                raise
            except Exception as e:
                error = RemoteFetchError(
                    f"Failed to load {self.collection} from server",
                    collection=self.collection,
                    cause=f"{type(e).__name__}: {e}",
                )
                self._report(error, generation)
                raise error from e

            return self._commit(students, generation, owner)
        finally:
            self.store.end_refresh()

    def _commit(self, students: List[Student], generation: int, owner: str) -> List[Student]:
        with self.store.lock:
            if not self.store.is_current(generation):
                logger.info("Discarding refresh result from a previous session")
                return self.store.snapshot().entities

            try:
                if students:
                    self.cache_manager.save_students(owner, students)
                else:
                    self.cache_manager.delete_students()
            except sqlite3.Error as e:
                logger.error(f"Could not update mahasiswa cache: {e}")

            self.store.publish_entities(students, generation)
            self.store.set_error(None, generation)

        if students:
            logger.info(f"Loaded {len(students)} mahasiswa records from server")
        else:
            logger.info("Server has no mahasiswa records; local cache cleared")
        return students

    def _report(self, error: RemoteFetchError, generation: int) -> None:
        if not self.store.set_error(REFRESH_FAILED_MESSAGE, generation):
            logger.info(f"Ignoring refresh failure from a previous session: {error}")
            return
        handle_error(error, notify=self.on_error, user_message=REFRESH_FAILED_MESSAGE)
