# =============================================================================
# roster_core/offline/cache_manager.py
# Typed Access to the Cached Profile and Student Collection
# =============================================================================
"""
CacheManager - Reads, writes and purges the two cached snapshots.

Cached entries:
--------------
user.profile     -> {"identity_id": ..., "email": ...}
mahasiswa.data   -> {"owner": <identity_id>, "items": [{id, nim, nama, jurusan}, ...]}

A corrupt entry is logged, removed and reported as absent so it can never
break startup.
"""

from __future__ import annotations
import json
from typing import Any, List, Optional
import logging

from roster_core.data.models import SessionProfile, Student
from roster_core.errors import CacheCorruptError
from roster_core.offline.local_cache import LocalCache

logger = logging.getLogger(__name__)


PROFILE_STORAGE_KEY = "user.profile"
MAHASISWA_STORAGE_KEY = "mahasiswa.data"


class CacheManager:
    """
    Cache access wrapper around a single injected LocalCache.

    Usage:
        manager = CacheManager(LocalCache(path))
        manager.save_profile(profile)
        students = manager.load_students(owner=profile.identity_id)
        manager.purge()
    """

    def __init__(self, cache: LocalCache):
        self.cache = cache

    # =========================================================================
    # ENCODING
    # =========================================================================

    @staticmethod
    def _encode(payload: Any) -> bytes:
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")

    @staticmethod
    def _decode(key: str, raw: Optional[bytes]) -> Optional[Any]:
        """Return the decoded JSON payload read for key; raises CacheCorruptError."""
        if raw is None:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CacheCorruptError(f"Cached entry '{key}' is not valid JSON", key=key) from e

    def _discard_corrupt(self, error: CacheCorruptError, raw: bytes) -> None:
        key = error.details.get("key")
        logger.warning(f"{error}; treating as absent")
        # A concurrent writer may already have replaced the bad entry
        if key and not self.cache.delete_if_unchanged(key, raw):
            logger.debug(f"Cached entry '{key}' changed before it could be discarded")

    # =========================================================================
    # PROFILE
    # =========================================================================

    def load_profile(self) -> Optional[SessionProfile]:
        """Cached profile, or None when absent or unreadable."""
        raw = self.cache.get(PROFILE_STORAGE_KEY)
        try:
            payload = self._decode(PROFILE_STORAGE_KEY, raw)
            if payload is None:
                return None
            try:
                return SessionProfile.from_dict(payload)
            except ValueError as e:
                raise CacheCorruptError(str(e), key=PROFILE_STORAGE_KEY) from e
        except CacheCorruptError as e:
            self._discard_corrupt(e, raw)
            return None

    def save_profile(self, profile: SessionProfile) -> None:
        self.cache.set(PROFILE_STORAGE_KEY, self._encode(profile.to_dict()))
        logger.debug(f"Profile cached for {profile.identity_id}")

    # =========================================================================
    # STUDENT COLLECTION
    # =========================================================================

    def load_students(self, owner: str) -> Optional[List[Student]]:
        """
        Cached collection for owner.

        Returns None when nothing is cached, the entry is unreadable, or it
        was written for a different identity.
        """
        raw = self.cache.get(MAHASISWA_STORAGE_KEY)
        try:
            payload = self._decode(MAHASISWA_STORAGE_KEY, raw)
            if payload is None:
                return None
            if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
                raise CacheCorruptError("Cached collection has no item list", key=MAHASISWA_STORAGE_KEY)
            try:
                students = [Student.from_record(item) for item in payload["items"]]
            except ValueError as e:
                raise CacheCorruptError(str(e), key=MAHASISWA_STORAGE_KEY) from e
        except CacheCorruptError as e:
            self._discard_corrupt(e, raw)
            return None

        if payload.get("owner") != owner:
            logger.info("Cached collection belongs to another session, ignoring it")
            return None
        return students

    def save_students(self, owner: str, students: List[Student]) -> None:
        """Replace the cached collection in one write."""
        payload = {"owner": owner, "items": [s.to_dict() for s in students]}
        self.cache.set(MAHASISWA_STORAGE_KEY, self._encode(payload))
        logger.debug(f"Cached {len(students)} mahasiswa records")

    def delete_students(self) -> None:
        self.cache.delete(MAHASISWA_STORAGE_KEY)

    # =========================================================================
    # PURGE
    # =========================================================================

    def purge(self) -> None:
        """Remove both cached entries. Safe to call when nothing is cached."""
        self.cache.delete(PROFILE_STORAGE_KEY)
        self.cache.delete(MAHASISWA_STORAGE_KEY)
        logger.info("Profile and mahasiswa cache purged")
