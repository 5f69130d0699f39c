from .session_state import (
    SessionState,
    SessionStore,
    SCREEN_LOADING,
    SCREEN_LOGIN,
    SCREEN_HOME,
)

__all__ = [
    "SessionState",
    "SessionStore",
    "SCREEN_LOADING",
    "SCREEN_LOGIN",
    "SCREEN_HOME",
]
