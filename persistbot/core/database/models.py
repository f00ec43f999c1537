"""
PersistBot - Database Type Definitions
======================================

Record types returned from the database.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, TypedDict


@dataclass(frozen=True)
class PersistedStateRecord:
    """
    State captured when a member left a guild.

    Either field may be empty; a record with both empty is never written.
    """

    roles: Tuple[int, ...] = ()
    nickname: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.roles and not self.nickname


class AllowedGuildRecord(TypedDict, total=False):
    """Type for allowed guild records."""
    id: int
    name: Optional[str]
    icon: Optional[str]
    owner_id: Optional[int]
    created_at: float


class AuditEventRecord(TypedDict, total=False):
    """Type for audit event records."""
    id: int
    guild_id: int
    event_type: str
    payload: Dict[str, Any]
    created_at: float


__all__ = [
    "PersistedStateRecord",
    "AllowedGuildRecord",
    "AuditEventRecord",
]
