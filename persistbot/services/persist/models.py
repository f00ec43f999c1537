"""
PersistBot - Persist Models
===========================

Event and result types passed through the persist service.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from persistbot.core.constants import RESTORED_NICKNAME, RESTORED_ROLES


@dataclass(frozen=True)
class MemberDeparture:
    """A member left a guild, with the state they held at that moment."""
    guild_id: int
    member_id: int
    roles: Tuple[int, ...] = ()
    nickname: Optional[str] = None
    member_info: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class MemberArrival:
    """A member joined a guild, with the roles Discord assigned on join."""
    guild_id: int
    member_id: int
    roles: Tuple[int, ...] = ()
    member_info: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class ProfileEdit:
    """
    Fields to apply in one member edit.

    None means "leave unchanged"; roles is the full target role list.
    """
    roles: Optional[Tuple[int, ...]] = None
    nickname: Optional[str] = None

    @property
    def restored(self) -> Tuple[str, ...]:
        """Categories carried by this edit, in audit order."""
        parts = []
        if self.roles is not None:
            parts.append(RESTORED_ROLES)
        if self.nickname is not None:
            parts.append(RESTORED_NICKNAME)
        return tuple(parts)

    def __bool__(self) -> bool:
        return bool(self.restored)


class RestoreOutcome(str, Enum):
    """How an arrival was resolved."""
    NO_RECORD = "no_record"
    UNMATCHED_KEPT = "unmatched_kept"
    UNMATCHED_CLEARED = "unmatched_cleared"
    RESTORED = "restored"


@dataclass(frozen=True)
class RestoreResult:
    outcome: RestoreOutcome
    edit: Optional[ProfileEdit] = None

    @property
    def restored(self) -> Tuple[str, ...]:
        return self.edit.restored if self.edit else ()


__all__ = [
    "MemberDeparture",
    "MemberArrival",
    "ProfileEdit",
    "RestoreOutcome",
    "RestoreResult",
]
