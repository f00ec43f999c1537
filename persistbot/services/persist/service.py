"""
PersistBot - Persist Service
============================

Captures member state on leave and restores it on rejoin.

DESIGN:
    Departure: intersect the member's roles with the guild's persisted
    roles, add the nickname if enabled, and replace the stored record
    when anything qualifies. No lock; a member cannot leave twice
    without rejoining in between.

    Arrival, per member:
        NoLock -> Locked -> (EarlyExit | Restoring) -> Unlocked

    The member lock (key "member-roles-{id}") makes the
    find -> edit -> clear sequence run at most once at a time per member,
    so duplicate join events restore once and the second sees no record.
    The target role list is the union of the restorable roles and the
    roles Discord just assigned; restoring never removes a role.

    If the edit fails the record stays stored. The lock is released on
    every path.
"""

from typing import Any, Dict, Iterable, Optional, Tuple

from persistbot.core.config import RestoreConfig
from persistbot.core.constants import MEMBER_LOCK_PREFIX, RESTORE_REASON
from persistbot.core.database.models import PersistedStateRecord
from persistbot.core.errors import ProfileEditRejected
from persistbot.core.logger import logger
from persistbot.services.audit import AuditLog, LogType
from persistbot.utils.locks import KeyedLockManager

from .models import (
    MemberArrival,
    MemberDeparture,
    ProfileEdit,
    RestoreOutcome,
    RestoreResult,
)


# =============================================================================
# Pure Policy Functions
# =============================================================================

def member_lock_key(member_id: int) -> str:
    """Lock key for a member. Member IDs are global, so no guild prefix."""
    return f"{MEMBER_LOCK_PREFIX}{member_id}"


def intersect_roles(persisted_roles: Iterable[int], member_roles: Iterable[int]) -> Tuple[int, ...]:
    """Roles present in both, in persisted_roles order."""
    held = set(member_roles)
    return tuple(role for role in persisted_roles if role in held)


def build_persist_record(
    config: RestoreConfig,
    roles: Iterable[int],
    nickname: Optional[str],
) -> Optional[PersistedStateRecord]:
    """
    Decide what to store for a departing member.

    Returns:
        The record to store, or None when nothing qualifies.
    """
    roles_to_persist: Tuple[int, ...] = ()
    if config.persisted_roles and roles:
        roles_to_persist = intersect_roles(config.persisted_roles, roles)

    nickname_to_persist = nickname if config.persist_nicknames and nickname else None

    record = PersistedStateRecord(roles=roles_to_persist, nickname=nickname_to_persist)
    return None if record.is_empty() else record


def plan_restore(
    config: RestoreConfig,
    record: PersistedStateRecord,
    live_roles: Iterable[int],
) -> ProfileEdit:
    """
    Merge a stored record with the member's live state.

    Returns:
        The edit to apply; falsy when nothing in the record matches config.
    """
    target_roles: Optional[Tuple[int, ...]] = None
    if config.persisted_roles:
        roles_to_restore = intersect_roles(config.persisted_roles, record.roles)
        if roles_to_restore:
            merged = list(roles_to_restore)
            merged.extend(role for role in live_roles if role not in roles_to_restore)
            target_roles = tuple(dict.fromkeys(merged))

    target_nickname = record.nickname if config.persist_nicknames and record.nickname else None

    return ProfileEdit(roles=target_roles, nickname=target_nickname)


# =============================================================================
# Persist Service
# =============================================================================

class PersistService:
    """
    Departure/arrival handlers over injected collaborators.

    Attributes:
        store: Object with find/set/clear(guild_id, member_id, ...).
        editor: Object with async edit_member_profile(guild_id, member_id,
            edit, reason) raising ProfileEditRejected on refusal.
        audit: Audit sink.
        locks: Keyed lock registry shared by all arrivals.
    """

    def __init__(
        self,
        store,
        editor,
        audit: AuditLog,
        locks: Optional[KeyedLockManager] = None,
    ) -> None:
        self.store = store
        self.editor = editor
        self.audit = audit
        self.locks = locks or KeyedLockManager()

    # =========================================================================
    # Departure
    # =========================================================================

    def handle_departure(self, event: MemberDeparture, config: RestoreConfig) -> Optional[PersistedStateRecord]:
        """
        Store the qualifying part of a departing member's state.

        Returns:
            The stored record, or None if nothing qualified.

        Raises:
            TransientStoreError: If the store write fails.
        """
        record = build_persist_record(config, event.roles, event.nickname)
        if record is None:
            logger.debug("Nothing To Persist", [
                ("Guild", str(event.guild_id)),
                ("Member", str(event.member_id)),
            ])
            return None

        self.store.set(event.guild_id, event.member_id, record)

        persisted = []
        if record.roles:
            persisted.append("roles")
        if record.nickname:
            persisted.append("nickname")
        self.audit.log(LogType.MEMBER_PERSIST, event.guild_id, {
            "member": self._member_payload(event.member_id, event.member_info),
            "persisted_data": ", ".join(persisted),
            "roles": list(record.roles),
        })
        return record

    # =========================================================================
    # Arrival
    # =========================================================================

    async def handle_arrival(self, event: MemberArrival, config: RestoreConfig) -> RestoreResult:
        """
        Restore a rejoining member's stored state.

        Raises:
            TransientStoreError: If the store read or clear fails.
            ProfileEditRejected: If Discord refuses the edit; the record is kept.
            LockAcquisitionStarvation: If the member lock stayed held too long.
        """
        handle = await self.locks.acquire(member_lock_key(event.member_id))
        try:
            return await self._restore_locked(event, config)
        finally:
            handle.release()

    async def _restore_locked(self, event: MemberArrival, config: RestoreConfig) -> RestoreResult:
        record = self.store.find(event.guild_id, event.member_id)
        if record is None:
            return RestoreResult(RestoreOutcome.NO_RECORD)

        edit = plan_restore(config, record, event.roles)

        if not edit:
            return self._handle_unmatched(event, config, record)

        try:
            await self.editor.edit_member_profile(event.guild_id, event.member_id, edit, RESTORE_REASON)
        except ProfileEditRejected as e:
            logger.error("Member Restore Failed", [
                ("Guild", str(event.guild_id)),
                ("Member", str(event.member_id)),
                ("Restoring", ", ".join(edit.restored)),
                ("Reason", e.reason),
                ("Record", "Kept for retry"),
            ])
            self.audit.log(LogType.MEMBER_RESTORE_FAILED, event.guild_id, {
                "member": self._member_payload(event.member_id, event.member_info),
                "restored_data": ", ".join(edit.restored),
                "error": e.reason,
            })
            raise

        self.store.clear(event.guild_id, event.member_id)

        self.audit.log(LogType.MEMBER_RESTORE, event.guild_id, {
            "member": self._member_payload(event.member_id, event.member_info),
            "restored_data": ", ".join(edit.restored),
        })
        return RestoreResult(RestoreOutcome.RESTORED, edit)

    def _handle_unmatched(
        self,
        event: MemberArrival,
        config: RestoreConfig,
        record: PersistedStateRecord,
    ) -> RestoreResult:
        """Apply the unmatched-record policy when nothing in the record is restorable."""
        if not config.clear_unmatched:
            logger.debug("Persisted Data Unmatched", [
                ("Guild", str(event.guild_id)),
                ("Member", str(event.member_id)),
                ("Stored Roles", str(len(record.roles))),
                ("Stored Nickname", "Yes" if record.nickname else "No"),
                ("Action", "Kept"),
            ])
            return RestoreResult(RestoreOutcome.UNMATCHED_KEPT)

        self.store.clear(event.guild_id, event.member_id)
        self.audit.log(LogType.MEMBER_RESTORE_SKIPPED, event.guild_id, {
            "member": self._member_payload(event.member_id, event.member_info),
            "stored_roles": list(record.roles),
            "stored_nickname": record.nickname,
        })
        return RestoreResult(RestoreOutcome.UNMATCHED_CLEARED)

    @staticmethod
    def _member_payload(member_id: int, member_info: Dict[str, Any]) -> Dict[str, Any]:
        return dict(member_info) if member_info else {"id": member_id}


__all__ = [
    "PersistService",
    "member_lock_key",
    "intersect_roles",
    "build_persist_record",
    "plan_restore",
]
