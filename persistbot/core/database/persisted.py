"""
PersistBot - Persisted Data Database Mixin
==========================================

Stores the roles and nickname captured when a member leaves.

DESIGN:
    Plain read/write/delete keyed by (guild_id, user_id). No merging:
    a write always replaces the whole row. Driver errors are raised as
    TransientStoreError so the handlers can release their lock and
    propagate instead of treating a failed read as "nothing stored".
"""

import json
import sqlite3
import time
from typing import TYPE_CHECKING, Optional

from persistbot.core.errors import TransientStoreError
from persistbot.core.database.models import PersistedStateRecord
from persistbot.core.database.base import _safe_json_loads

if TYPE_CHECKING:
    from persistbot.core.database.manager import DatabaseManager


class PersistedDataMixin:
    """Database mixin for persisted member state."""

    def find_persisted_data(
        self: "DatabaseManager",
        guild_id: int,
        user_id: int,
    ) -> Optional[PersistedStateRecord]:
        """
        Get the stored state for a member.

        Returns:
            The record, or None if nothing is stored.

        Raises:
            TransientStoreError: If the database read fails.
        """
        try:
            row = self.fetchone(
                "SELECT roles, nickname FROM persisted_data WHERE guild_id = ? AND user_id = ?",
                (guild_id, user_id),
            )
        except sqlite3.Error as e:
            raise TransientStoreError("find", guild_id, user_id, e) from e

        if not row:
            return None

        roles = _safe_json_loads(row["roles"], default=[])
        return PersistedStateRecord(
            roles=tuple(int(r) for r in roles),
            nickname=row["nickname"],
        )

    def set_persisted_data(
        self: "DatabaseManager",
        guild_id: int,
        user_id: int,
        record: PersistedStateRecord,
    ) -> None:
        """
        Store state for a member, replacing any previous row.

        Raises:
            TransientStoreError: If the database write fails.
        """
        try:
            self.execute(
                """
                INSERT OR REPLACE INTO persisted_data
                    (guild_id, user_id, roles, nickname, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    guild_id,
                    user_id,
                    json.dumps(list(record.roles)) if record.roles else None,
                    record.nickname,
                    time.time(),
                ),
            )
        except sqlite3.Error as e:
            raise TransientStoreError("set", guild_id, user_id, e) from e

    def clear_persisted_data(
        self: "DatabaseManager",
        guild_id: int,
        user_id: int,
    ) -> bool:
        """
        Delete stored state for a member. Absent rows are not an error.

        Returns:
            True if a row was deleted.

        Raises:
            TransientStoreError: If the database delete fails.
        """
        try:
            cursor = self.execute(
                "DELETE FROM persisted_data WHERE guild_id = ? AND user_id = ?",
                (guild_id, user_id),
            )
        except sqlite3.Error as e:
            raise TransientStoreError("clear", guild_id, user_id, e) from e
        return cursor.rowcount > 0

    def count_persisted_data(self: "DatabaseManager", guild_id: Optional[int] = None) -> int:
        """Count stored records, optionally for one guild."""
        if guild_id is None:
            row = self.fetchone("SELECT COUNT(*) AS count FROM persisted_data")
        else:
            row = self.fetchone(
                "SELECT COUNT(*) AS count FROM persisted_data WHERE guild_id = ?",
                (guild_id,),
            )
        return row["count"] if row else 0


__all__ = ["PersistedDataMixin"]
