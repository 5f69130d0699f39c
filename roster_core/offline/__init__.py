# =============================================================================
# roster_core/offline/__init__.py
# Cache-First Synchronization for the Mahasiswa Roster
# =============================================================================
"""
Cache-First Synchronization Module

┌──────────────────────────────────────────────────────────────┐
│                     RosterService (facade)                    │
└──────────────────────────────────────────────────────────────┘
          │                         │
          ▼                         ▼
 ┌──────────────────┐      ┌──────────────────┐
 │  SessionMonitor  │ ───► │    SyncEngine    │ ───► SessionStore
 │ (Supabase Auth)  │      │ (cache-first)    │
 └──────────────────┘      └──────────────────┘
                             │            │
                             ▼            ▼
                     ┌────────────┐  ┌──────────┐
                     │CacheManager│  │ Supabase │
                     │ (SQLite KV)│  │  table   │
                     └────────────┘  └──────────┘
"""

from roster_core.offline.local_cache import LocalCache

from roster_core.offline.cache_manager import (
    CacheManager,
    PROFILE_STORAGE_KEY,
    MAHASISWA_STORAGE_KEY,
)

from roster_core.offline.session_monitor import (
    SessionMonitor,
    SessionEvent,
    SessionStatus,
)

from roster_core.offline.sync_engine import SyncEngine

__all__ = [
    "LocalCache",
    "CacheManager",
    "PROFILE_STORAGE_KEY",
    "MAHASISWA_STORAGE_KEY",
    "SessionMonitor",
    "SessionEvent",
    "SessionStatus",
    "SyncEngine",
]
