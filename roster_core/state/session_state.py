# =============================================================================
# roster_core/state/session_state.py
# In-Memory Session State Exposed to the View Layer
# =============================================================================
"""
SessionState is the read-only snapshot a view renders from.
SessionStore owns the live state, the session generation used to fence stale
refreshes, and the listeners notified on every change.
"""

from __future__ import annotations
import threading
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional

import pandas as pd

from roster_core.data.models import Identity, SessionProfile, Student, STUDENT_FIELDS
from roster_core.logging import get_logger

logger = get_logger(__name__)


# Screens a view can show
SCREEN_LOADING = "loading"
SCREEN_LOGIN = "login"
SCREEN_HOME = "home"

ENTITY_COLUMNS = ["id", *STUDENT_FIELDS]


@dataclass(frozen=True)
class SessionState:
    """Snapshot of the session and roster, safe to hand to a view."""
    initializing: bool = True
    session: Optional[SessionProfile] = None
    cached_profile: Optional[SessionProfile] = None
    entities: List[Student] = field(default_factory=list)
    refreshing: bool = False
    last_error: Optional[str] = None

    @property
    def screen(self) -> str:
        """Which screen the view should render."""
        if self.initializing:
            return SCREEN_LOADING
        return SCREEN_HOME if self.session is not None else SCREEN_LOGIN

    @property
    def show_spinner(self) -> bool:
        """Refreshing with nothing to show yet."""
        return self.refreshing and not self.entities

    def entities_frame(self) -> pd.DataFrame:
        """Entities as a DataFrame for tabular views."""
        if not self.entities:
            return pd.DataFrame(columns=ENTITY_COLUMNS)
        return pd.DataFrame([s.to_dict() for s in self.entities], columns=ENTITY_COLUMNS)


class _StoreLock:
    """
    Reentrant lock that delivers pending change notifications once the
    outermost holder has released it, so listeners never run under the lock.
    """

    def __init__(self, store: SessionStore):
        self._store = store
        self._lock = threading.RLock()
        self._depth = 0

    def acquire(self) -> None:
        self._lock.acquire()
        self._depth += 1

    def release(self) -> None:
        self._depth -= 1
        pending = None
        if self._depth == 0:
            pending, self._store._pending = self._store._pending, None
        self._lock.release()
        if pending is not None:
            self._store._deliver(*pending)

    def __enter__(self) -> _StoreLock:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.release()
        return False


class SessionStore:
    """
    Thread-safe holder of the live SessionState.

    Every session transition increments `generation`. Writers that started
    under an older generation pass it back in and are ignored.

    Listeners are called after `lock` is released, with the latest snapshot.
    """

    def __init__(self):
        self.lock = _StoreLock(self)
        self._pending: Optional[tuple] = None
        self._version = 0
        self._delivered = 0
        self._deliver_lock = threading.RLock()
        self._state = SessionState()
        self._generation = 0
        self._inflight = 0
        self._listeners: List[Callable[[SessionState], None]] = []

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    def snapshot(self) -> SessionState:
        with self.lock:
            return replace(self._state, entities=list(self._state.entities))

    @property
    def generation(self) -> int:
        with self.lock:
            return self._generation

    @property
    def current_identity_id(self) -> Optional[str]:
        with self.lock:
            session = self._state.session
            return session.identity_id if session else None

    def is_current(self, generation: int) -> bool:
        with self.lock:
            return generation == self._generation and self._state.session is not None

    # =========================================================================
    # SESSION TRANSITIONS
    # =========================================================================

    def begin_session(self, identity: Identity) -> int:
        """
        Record a signed-in identity. A different identity than the current one
        starts a new generation with empty profile and entities.
        """
        with self.lock:
            current = self._state.session
            if current is None or current.identity_id != identity.id:
                self._generation += 1
                self._state = replace(
                    self._state,
                    session=SessionProfile.from_identity(identity),
                    cached_profile=None,
                    entities=[],
                    last_error=None,
                    initializing=False,
                )
            else:
                self._state = replace(
                    self._state,
                    session=SessionProfile.from_identity(identity),
                    initializing=False,
                )
            generation = self._generation
            self._notify()
        return generation

    def end_session(self) -> int:
        """Drop the session and everything loaded for it."""
        with self.lock:
            self._generation += 1
            self._state = replace(
                self._state,
                session=None,
                cached_profile=None,
                entities=[],
                last_error=None,
                initializing=False,
            )
            generation = self._generation
            self._notify()
        return generation

    # =========================================================================
    # FENCED WRITES
    # =========================================================================

    def set_cached_profile(self, profile: Optional[SessionProfile], generation: int) -> bool:
        with self.lock:
            if generation != self._generation:
                return False
            self._state = replace(self._state, cached_profile=profile)
            self._notify()
            return True

    def publish_entities(self, entities: List[Student], generation: int) -> bool:
        """Replace the visible entities if generation is still current."""
        with self.lock:
            if not self.is_current(generation):
                return False
            self._state = replace(self._state, entities=list(entities))
            self._notify()
            return True

    def set_error(self, message: Optional[str], generation: Optional[int] = None) -> bool:
        with self.lock:
            if generation is not None and generation != self._generation:
                return False
            self._state = replace(self._state, last_error=message)
            self._notify()
            return True

    # =========================================================================
    # REFRESH TRACKING
    # =========================================================================

    def begin_refresh(self) -> None:
        with self.lock:
            self._inflight += 1
            self._state = replace(self._state, refreshing=True)
            self._notify()

    def end_refresh(self) -> None:
        with self.lock:
            self._inflight = max(0, self._inflight - 1)
            self._state = replace(self._state, refreshing=self._inflight > 0)
            self._notify()

    # =========================================================================
    # LISTENERS
    # =========================================================================

    def subscribe(self, listener: Callable[[SessionState], None]) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        with self.lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

        def unsubscribe() -> None:
            with self.lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        """Queue a snapshot for delivery when the lock is released."""
        self._version += 1
        snapshot = replace(self._state, entities=list(self._state.entities))
        self._pending = (self._version, snapshot, list(self._listeners))

    def _deliver(self, version: int, snapshot: SessionState, listeners: list) -> None:
        with self._deliver_lock:
            if version <= self._delivered:
                return
            self._delivered = version
            for listener in listeners:
                try:
                    listener(snapshot)
                except Exception as e:
                    logger.error(f"Error in session state listener: {e}")
