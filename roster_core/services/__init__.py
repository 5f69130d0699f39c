# =============================================================================
# roster_core/services/__init__.py
# Service Layer for the Roster Sync Core
# =============================================================================

from .base_service import BaseService, ServiceResult
from .roster_service import RosterService, create_service

__all__ = [
    "BaseService",
    "ServiceResult",
    "RosterService",
    "create_service",
]
