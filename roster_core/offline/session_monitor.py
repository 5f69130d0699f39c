# =============================================================================
# roster_core/offline/session_monitor.py
# Identity Session Detection and Transition Events
# =============================================================================
"""
SessionMonitor - Turns identity provider notifications into session events.

Features:
- One subscription per monitor, released on stop()
- Exactly one initial notification, even when nobody is signed in
- Duplicate notifications for the same identity are suppressed
- Event callbacks for transitions
"""

from __future__ import annotations
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional
import logging

from roster_core.auth.identity_provider import IdentityProvider
from roster_core.data.models import Identity

logger = logging.getLogger(__name__)


class SessionStatus(Enum):
    """Session states."""
    INITIALIZING = "initializing"   # No notification delivered yet
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"


@dataclass(frozen=True)
class SessionEvent:
    """A session transition delivered to listeners."""
    status: SessionStatus
    identity: Optional[Identity] = None
    initial: bool = False

    @property
    def signed_in(self) -> bool:
        return self.status == SessionStatus.SIGNED_IN


@dataclass
class MonitorState:
    """Current monitor state with metadata."""
    status: SessionStatus = SessionStatus.INITIALIZING
    identity: Optional[Identity] = None
    last_change: Optional[datetime] = None
    transitions: int = 0


class SessionMonitor:
    """
    Observes an IdentityProvider and delivers SignedIn / SignedOut events.

    Usage:
        monitor = SessionMonitor(provider)
        monitor.register_callback(engine.handle_session_event)
        monitor.start()
        ...
        monitor.stop()
    """

    def __init__(self, provider: IdentityProvider):
        self.provider = provider
        self._state = MonitorState()
        self._callbacks: List[Callable[[SessionEvent], None]] = []
        self._lock = threading.RLock()
        self._dispatch_lock = threading.RLock()
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def is_running(self) -> bool:
        return self._unsubscribe is not None

    def start(self) -> None:
        """Subscribe to the provider and deliver the initial notification."""
        with self._lock:
            if self._unsubscribe is not None:
                return
            self._unsubscribe = self.provider.on_session_change(self._on_provider_change)
            logger.info("Session monitor subscribed")
            pending_initial = self._state.status == SessionStatus.INITIALIZING

        # The provider may already have reported the initial session while subscribing
        if pending_initial:
            self._on_provider_change(self.provider.current_identity())

    def stop(self) -> None:
        """Release the provider subscription."""
        with self._lock:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is None:
            return
        try:
            unsubscribe()
        except Exception as e:
            logger.error(f"Error releasing session subscription: {e}")
        logger.info("Session monitor stopped")

    def _on_provider_change(self, identity: Optional[Identity]) -> None:
        """Handle a provider notification."""
        with self._lock:
            old_status = self._state.status
            old_identity = self._state.identity
            initial = old_status == SessionStatus.INITIALIZING

            if identity is None:
                if old_status == SessionStatus.SIGNED_OUT:
                    return
                event = SessionEvent(SessionStatus.SIGNED_OUT, None, initial)
            else:
                if old_status == SessionStatus.SIGNED_IN and old_identity and old_identity.id == identity.id:
                    logger.debug("Session notification for unchanged identity ignored")
                    return
                event = SessionEvent(SessionStatus.SIGNED_IN, identity, initial)

            self._state.status = event.status
            self._state.identity = event.identity
            self._state.last_change = datetime.now()
            self._state.transitions += 1

            logger.info(f"Session status changed: {old_status.value} -> {event.status.value}")
            # Taken before releasing _lock so callbacks see transitions in order
            self._dispatch_lock.acquire()

        try:
            self._notify_callbacks(event)
        finally:
            self._dispatch_lock.release()

    def register_callback(self, callback: Callable[[SessionEvent], None]) -> None:
        """Register a callback for session transitions."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[SessionEvent], None]) -> None:
        """Remove a registered callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self, event: SessionEvent) -> None:
        """Notify all registered callbacks of a transition."""
        for callback in list(self._callbacks):
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Error in session callback: {e}")

    def get_status_display(self) -> dict:
        """Get status information for UI display."""
        identity = self._state.identity
        return {
            "status": self._state.status.value,
            "identity_id": identity.id if identity else None,
            "email": identity.email if identity else None,
            "last_change": self._state.last_change.isoformat() if self._state.last_change else None,
            "transitions": self._state.transitions,
        }
