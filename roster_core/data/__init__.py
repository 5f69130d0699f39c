from .models import Identity, SessionProfile, Student, students_from_records
from .supabase_client import (
    RemoteStore,
    SupabaseRemoteStore,
    create_supabase_client,
    DEFAULT_REMOTE_TIMEOUT,
)

__all__ = [
    "Identity",
    "SessionProfile",
    "Student",
    "students_from_records",
    "RemoteStore",
    "SupabaseRemoteStore",
    "create_supabase_client",
    "DEFAULT_REMOTE_TIMEOUT",
]
