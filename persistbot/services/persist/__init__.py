"""
PersistBot - Persist Service Package
====================================

Capture on leave, restore on rejoin.
"""

from .models import (
    MemberArrival,
    MemberDeparture,
    ProfileEdit,
    RestoreOutcome,
    RestoreResult,
)
from .service import (
    PersistService,
    build_persist_record,
    intersect_roles,
    member_lock_key,
    plan_restore,
)
from .editor import DiscordProfileEditor
from .store import PersistedStateStore

__all__ = [
    "MemberArrival",
    "MemberDeparture",
    "ProfileEdit",
    "RestoreOutcome",
    "RestoreResult",
    "PersistService",
    "DiscordProfileEditor",
    "PersistedStateStore",
    "build_persist_record",
    "intersect_roles",
    "member_lock_key",
    "plan_restore",
]
