"""
PersistBot - Audit Log
======================

Records persist/restore outcomes to the console tree log and SQLite.

Single call logs to both destinations:
    audit.log(LogType.MEMBER_RESTORE, guild_id, payload)
    # -> Console: tree log with emoji
    # -> SQLite: audit_events row with JSON payload
"""

import sqlite3
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from persistbot.core.logger import logger
from persistbot.core.constants import AUDIT_QUERY_LIMIT, LOG_TRUNCATE_SHORT

if TYPE_CHECKING:
    import discord
    from persistbot.core.database import DatabaseManager, AuditEventRecord


class LogType(str, Enum):
    """Audit event kinds."""
    MEMBER_PERSIST = "MEMBER_PERSIST"
    MEMBER_RESTORE = "MEMBER_RESTORE"
    MEMBER_RESTORE_SKIPPED = "MEMBER_RESTORE_SKIPPED"
    MEMBER_RESTORE_FAILED = "MEMBER_RESTORE_FAILED"


_EMOJI = {
    LogType.MEMBER_PERSIST: "💾",
    LogType.MEMBER_RESTORE: "♻️",
    LogType.MEMBER_RESTORE_SKIPPED: "🗑️",
    LogType.MEMBER_RESTORE_FAILED: "⚠️",
}


# =============================================================================
# Helpers
# =============================================================================

def strip_member_to_scalars(member: "discord.Member", include: Iterable[str] = ("user", "roles")) -> Dict[str, Any]:
    """
    Reduce a Discord member to plain values for audit payloads.

    Args:
        member: The member.
        include: Nested parts to keep ("user", "roles").

    Returns:
        Dict of scalars (ids, names, nick, joined_at).
    """
    data: Dict[str, Any] = {
        "id": member.id,
        "nick": member.nick,
        "joined_at": member.joined_at.isoformat() if member.joined_at else None,
    }
    if "user" in include:
        data["user"] = {
            "id": member.id,
            "username": member.name,
            "bot": bool(member.bot),
        }
    if "roles" in include:
        data["roles"] = [role.id for role in member.roles if not role.is_default()]
    return data


def _truncate(value: Any, max_len: int = LOG_TRUNCATE_SHORT) -> str:
    text = str(value)
    return text if len(text) <= max_len else text[:max_len] + "..."


# =============================================================================
# Audit Log
# =============================================================================

class AuditLog:
    """Audit sink backed by the tree logger and the audit_events table."""

    def __init__(self, db: "DatabaseManager") -> None:
        self.db = db

    def log(self, kind: LogType, guild_id: int, payload: Dict[str, Any]) -> Optional[int]:
        """
        Record an audit event.

        A failed SQLite write is logged and does not raise: the event has
        already happened and must not be undone by its audit record.

        Returns:
            Row ID of the stored event, or None if storing failed.
        """
        items = [("Guild", str(guild_id))]
        items.extend((key.replace("_", " ").title(), _truncate(value)) for key, value in payload.items())
        logger.tree(kind.value.replace("_", " ").title(), items, emoji=_EMOJI.get(kind, "📋"))

        try:
            return self.db.save_audit_event(guild_id, kind.value, payload)
        except sqlite3.Error as e:
            logger.warning("Audit Event Not Stored", [
                ("Type", kind.value),
                ("Guild", str(guild_id)),
                ("Error", str(e)[:100]),
            ])
            return None

    def recent(
        self,
        guild_id: int,
        kind: Optional[LogType] = None,
        limit: int = AUDIT_QUERY_LIMIT,
    ) -> List["AuditEventRecord"]:
        """Get the newest audit events for a guild."""
        return self.db.get_audit_events(guild_id, kind.value if kind else None, limit)


__all__ = ["AuditLog", "LogType", "strip_member_to_scalars"]
