# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import threading
from typing import Callable, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from roster_core.auth.identity_provider import IdentityProvider
from roster_core.data.models import Identity
from roster_core.data.supabase_client import RemoteStore
from roster_core.errors import IdentityProviderError, InvalidCredentialsError, RemoteFetchError
from roster_core.offline.cache_manager import CacheManager
from roster_core.offline.local_cache import LocalCache
from roster_core.offline.session_monitor import SessionMonitor
from roster_core.offline.sync_engine import SyncEngine
from roster_core.services.roster_service import RosterService
from roster_core.state.session_state import SessionStore


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

ANA_ROW = {"id": "1", "nim": "001", "nama": "Ana", "jurusan": "CS"}
BUDI_ROW = {"id": "2", "nim": "002", "nama": "Budi", "jurusan": "Math"}
CITRA_ROW = {"id": "3", "nim": "003", "nama": "Citra", "jurusan": "Physics"}

ANA = Identity(id="uid-ana", email="ana@kampus.ac.id")
BAYU = Identity(id="uid-bayu", email="bayu@kampus.ac.id")


@pytest.fixture
def sample_rows():
    """Two remote mahasiswa rows"""
    return [dict(ANA_ROW), dict(BUDI_ROW)]


@pytest.fixture
def citra_row():
    return dict(CITRA_ROW)


@pytest.fixture
def ana():
    """Identity with the password 'rahasia'"""
    return ANA


@pytest.fixture
def bayu():
    """Identity with the password 'sandi'"""
    return BAYU


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================

class FakeIdentityProvider(IdentityProvider):
    """
    In-memory identity provider that notifies listeners synchronously,
    the way Supabase Auth does on sign-in and sign-out.
    """

    def __init__(self, accounts: Optional[Dict[str, tuple]] = None):
        self.accounts = accounts or {
            ANA.email: ("rahasia", ANA),
            BAYU.email: ("sandi", BAYU),
        }
        self.current: Optional[Identity] = None
        self.listeners: List[Callable] = []
        self.sign_in_calls: List[tuple] = []
        self.sign_out_calls = 0
        self.sign_out_error: Optional[Exception] = None

    def sign_in(self, email, secret):
        self.sign_in_calls.append((email, secret))
        account = self.accounts.get(email)
        if account is None or account[0] != secret:
            raise InvalidCredentialsError("Invalid login credentials", email=email)
        self.current = account[1]
        self._emit(self.current)
        return self.current

    def sign_out(self):
        self.sign_out_calls += 1
        if self.sign_out_error is not None:
            raise self.sign_out_error
        self.current = None
        self._emit(None)

    def expire(self):
        """Session ends on the provider side without a sign-out call."""
        self.current = None
        self._emit(None)

    def on_session_change(self, callback):
        self.listeners.append(callback)
        return lambda: self.listeners.remove(callback)

    def current_identity(self):
        return self.current

    def _emit(self, identity):
        for listener in list(self.listeners):
            listener(identity)


class FakeRemoteStore(RemoteStore):
    """Remote store returning canned rows, an error, or blocking on a gate."""

    def __init__(self, rows=None):
        self.rows = list(rows or [])
        self.error: Optional[Exception] = None
        self.gate: Optional[threading.Event] = None
        self.started = threading.Event()
        self.calls: List[str] = []

    def fetch_collection(self, name):
        self.calls.append(name)
        self.started.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return [dict(row) for row in self.rows]


@pytest.fixture
def provider():
    return FakeIdentityProvider()


@pytest.fixture
def remote_store():
    return FakeRemoteStore()


@pytest.fixture
def local_cache(tmp_path):
    """SQLite cache in a temporary directory"""
    cache = LocalCache(tmp_path / "cache.db")
    yield cache
    cache.close()


@pytest.fixture
def cache_manager(local_cache):
    return CacheManager(local_cache)


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def engine(cache_manager, remote_store, store):
    """SyncEngine that refreshes inline after sign-in"""
    return SyncEngine(cache_manager, remote_store, store, auto_refresh_in_background=False)


@pytest.fixture
def alerts():
    return []


@pytest.fixture
def service(provider, engine, local_cache, alerts):
    """Started RosterService wired to fakes"""
    svc = RosterService(provider, SessionMonitor(provider), engine, local_cache, on_error=alerts.append)
    svc.start()
    yield svc
    svc.shutdown(timeout=1)


@pytest.fixture
def remote_failure():
    return RemoteFetchError("Network unreachable", collection="mahasiswa", cause="ConnectError")


@pytest.fixture
def provider_failure():
    return IdentityProviderError("Sign-out failed: timeout", operation="sign_out")


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_supabase():
    """Mock Supabase client"""
    mock_client = MagicMock()
    mock_client.table.return_value.select.return_value.execute.return_value.data = []
    mock_client.auth.get_session.return_value = None
    return mock_client
