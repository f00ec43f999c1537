"""
PersistBot - Audit Events Database Mixin
========================================

Append-only storage for persist/restore audit events.
"""

import json
import time
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from persistbot.core.constants import AUDIT_QUERY_LIMIT
from persistbot.core.database.base import _safe_json_loads
from persistbot.core.database.models import AuditEventRecord

if TYPE_CHECKING:
    from persistbot.core.database.manager import DatabaseManager


class AuditMixin:
    """Mixin for audit event operations."""

    def save_audit_event(
        self: "DatabaseManager",
        guild_id: int,
        event_type: str,
        payload: Dict[str, Any],
    ) -> int:
        """
        Store an audit event.

        Returns:
            Row ID of the new event.
        """
        cursor = self.execute(
            "INSERT INTO audit_events (guild_id, event_type, payload, created_at) VALUES (?, ?, ?, ?)",
            (guild_id, event_type, json.dumps(payload, default=str), time.time()),
        )
        return cursor.lastrowid

    def get_audit_events(
        self: "DatabaseManager",
        guild_id: int,
        event_type: Optional[str] = None,
        limit: int = AUDIT_QUERY_LIMIT,
    ) -> List[AuditEventRecord]:
        """Get the newest audit events for a guild, optionally of one type."""
        if event_type:
            rows = self.fetchall(
                """SELECT id, guild_id, event_type, payload, created_at FROM audit_events
                   WHERE guild_id = ? AND event_type = ?
                   ORDER BY created_at DESC, id DESC LIMIT ?""",
                (guild_id, event_type, limit),
            )
        else:
            rows = self.fetchall(
                """SELECT id, guild_id, event_type, payload, created_at FROM audit_events
                   WHERE guild_id = ?
                   ORDER BY created_at DESC, id DESC LIMIT ?""",
                (guild_id, limit),
            )

        return [
            {
                "id": row["id"],
                "guild_id": row["guild_id"],
                "event_type": row["event_type"],
                "payload": _safe_json_loads(row["payload"], default={}),
                "created_at": row["created_at"],
            }
            for row in rows
        ]


__all__ = ["AuditMixin"]
