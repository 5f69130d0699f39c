# =============================================================================
# tests/unit/test_cache.py
# Unit Tests for LocalCache and CacheManager
# =============================================================================

import sqlite3

import pytest

from roster_core.data.models import SessionProfile, Student
from roster_core.offline.cache_manager import (
    CacheManager,
    MAHASISWA_STORAGE_KEY,
    PROFILE_STORAGE_KEY,
)
from roster_core.offline.local_cache import LocalCache


class TestLocalCache:
    """Durable key-value operations"""

    def test_missing_key_returns_none(self, local_cache):
        assert local_cache.get("nothing.here") is None

    def test_set_replaces_value(self, local_cache):
        local_cache.set("k", b"first")
        local_cache.set("k", b"second")
        assert local_cache.get("k") == b"second"

    def test_delete_missing_key_is_noop(self, local_cache):
        local_cache.delete("never.set")
        assert local_cache.keys() == []

    def test_conditional_delete(self, local_cache):
        local_cache.set("k", b"new")

        assert not local_cache.delete_if_unchanged("k", b"old")
        assert local_cache.get("k") == b"new"
        assert local_cache.delete_if_unchanged("k", b"new")
        assert local_cache.get("k") is None

    def test_values_survive_reopen(self, tmp_path):
        """Cache contents are durable across process restarts"""
        path = tmp_path / "durable.db"
        with LocalCache(path) as cache:
            cache.set("user.profile", b'{"identity_id": "u1"}')

        with LocalCache(path) as reopened:
            assert reopened.get("user.profile") == b'{"identity_id": "u1"}'

    def test_closed_cache_rejects_access(self, tmp_path):
        cache = LocalCache(tmp_path / "closed.db")
        cache.close()
        cache.close()

        with pytest.raises(sqlite3.ProgrammingError):
            cache.get("k")


class TestCacheManagerProfile:
    """Profile snapshot handling"""

    def test_profile_round_trip(self, cache_manager):
        profile = SessionProfile(identity_id="uid-ana", email="ana@kampus.ac.id")
        cache_manager.save_profile(profile)
        assert cache_manager.load_profile() == profile

    def test_absent_profile(self, cache_manager):
        assert cache_manager.load_profile() is None

    def test_corrupt_profile_treated_as_absent(self, cache_manager, local_cache):
        """Undecodable bytes never crash startup and are removed"""
        local_cache.set(PROFILE_STORAGE_KEY, b"\xff\xfe not json")

        assert cache_manager.load_profile() is None
        assert local_cache.get(PROFILE_STORAGE_KEY) is None

    def test_profile_without_identity_is_corrupt(self, cache_manager, local_cache):
        local_cache.set(PROFILE_STORAGE_KEY, b'{"email": "x@y.z"}')
        assert cache_manager.load_profile() is None


class TestCacheManagerStudents:
    """Collection snapshot handling"""

    def test_students_round_trip(self, cache_manager):
        students = [Student("1", "001", "Ana", "CS"), Student("2", "002", "Budi", "Math")]
        cache_manager.save_students("uid-ana", students)
        assert cache_manager.load_students("uid-ana") == students

    def test_other_owner_sees_nothing(self, cache_manager):
        cache_manager.save_students("uid-ana", [Student("1", "001", "Ana", "CS")])
        assert cache_manager.load_students("uid-bayu") is None

    def test_corrupt_collection_treated_as_absent(self, cache_manager, local_cache):
        local_cache.set(MAHASISWA_STORAGE_KEY, b'{"owner": "uid-ana", "items": 42}')

        assert cache_manager.load_students("uid-ana") is None
        assert local_cache.get(MAHASISWA_STORAGE_KEY) is None

    def test_corrupt_discard_keeps_concurrent_write(self, cache_manager, local_cache, monkeypatch):
        """A good collection written after the bad one was read survives the discard"""
        local_cache.set(MAHASISWA_STORAGE_KEY, b"not json")
        good = [Student("1", "001", "Ana", "CS")]
        read = local_cache.get

        def read_then_concurrent_write(key):
            raw = read(key)
            cache_manager.save_students("uid-ana", good)
            return raw

        monkeypatch.setattr(local_cache, "get", read_then_concurrent_write)
        assert cache_manager.load_students("uid-ana") is None

        monkeypatch.setattr(local_cache, "get", read)
        assert cache_manager.load_students("uid-ana") == good

    def test_collection_item_without_id_is_corrupt(self, cache_manager, local_cache):
        local_cache.set(MAHASISWA_STORAGE_KEY, b'{"owner": "uid-ana", "items": [{"nim": "001"}]}')
        assert cache_manager.load_students("uid-ana") is None

    def test_empty_collection_is_present(self, cache_manager):
        cache_manager.save_students("uid-ana", [])
        assert cache_manager.load_students("uid-ana") == []


class TestCacheManagerPurge:
    """Sign-out purge"""

    def test_purge_removes_both_keys(self, cache_manager, local_cache):
        cache_manager.save_profile(SessionProfile(identity_id="uid-ana"))
        cache_manager.save_students("uid-ana", [Student("1", "001", "Ana", "CS")])

        cache_manager.purge()

        assert local_cache.get(PROFILE_STORAGE_KEY) is None
        assert local_cache.get(MAHASISWA_STORAGE_KEY) is None

    def test_purge_on_empty_cache_is_noop(self, cache_manager, local_cache):
        """Purging twice, or with nothing cached, is not an error"""
        cache_manager.purge()
        cache_manager.purge()
        assert local_cache.keys() == []

    def test_purge_keeps_unrelated_keys(self, local_cache):
        local_cache.set("app.theme", b"dark")
        CacheManager(local_cache).purge()
        assert local_cache.get("app.theme") == b"dark"
