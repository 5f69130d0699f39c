# =============================================================================
# roster_core/data/models.py
# Data Model for the Roster Sync Core
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List, Optional


# Entity fields besides the remote-assigned id
STUDENT_FIELDS = ("nim", "nama", "jurusan")


@dataclass(frozen=True)
class Identity:
    """A signed-in user as reported by the identity provider."""
    id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class SessionProfile:
    """Cached copy of the signed-in user's profile."""
    identity_id: str
    email: Optional[str] = None

    @classmethod
    def from_identity(cls, identity: Identity) -> SessionProfile:
        return cls(identity_id=identity.id, email=identity.email)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SessionProfile:
        """Build from a decoded cache payload; raises ValueError when malformed."""
        if not isinstance(data, dict) or not data.get("identity_id"):
            raise ValueError("profile payload has no identity_id")
        email = data.get("email")
        return cls(identity_id=str(data["identity_id"]), email=None if email is None else str(email))


@dataclass(frozen=True)
class Student:
    """
    One mahasiswa record. Snapshots are immutable; a refresh replaces the
    whole collection.
    """
    id: str
    nim: str = ""
    nama: str = ""
    jurusan: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> Student:
        """
        Build a Student from a remote row or a cached dict.

        Missing text fields become empty strings. A record without an id
        raises ValueError.
        """
        if not isinstance(record, dict):
            raise ValueError(f"expected a mapping, got {type(record).__name__}")
        record_id = record.get("id")
        if record_id is None or str(record_id) == "":
            raise ValueError("record has no id")

        values = {}
        for name in STUDENT_FIELDS:
            value = record.get(name)
            values[name] = "" if value is None else str(value)
        return cls(id=str(record_id), **values)


def students_from_records(records: Iterable[Dict[str, Any]]) -> List[Student]:
    """Convert rows to Students, keeping the first occurrence of each id."""
    seen = set()
    students = []
    for record in records:
        student = Student.from_record(record)
        if student.id in seen:
            continue
        seen.add(student.id)
        students.append(student)
    return students
