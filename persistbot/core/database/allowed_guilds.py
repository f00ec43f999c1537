"""
PersistBot - Allowed Guilds Database Mixin
==========================================

Allow-list of guilds the bot operates in, plus API permission lookups.
"""

import json
import time
from enum import Enum
from typing import TYPE_CHECKING, Iterable, List, Optional

from persistbot.core.database.models import AllowedGuildRecord
from persistbot.core.logger import logger

if TYPE_CHECKING:
    from persistbot.core.database.manager import DatabaseManager


class ApiPermissionTypes(str, Enum):
    """Target kinds for api_permissions rows."""
    USER = "USER"
    ROLE = "ROLE"


def _row_to_guild(row) -> AllowedGuildRecord:
    return {
        "id": row["id"],
        "name": row["name"],
        "icon": row["icon"],
        "owner_id": row["owner_id"],
        "created_at": row["created_at"],
    }


class AllowedGuildsMixin:
    """Mixin for allowed guild operations."""

    # =========================================================================
    # Lookups
    # =========================================================================

    def is_guild_allowed(self: "DatabaseManager", guild_id: int) -> bool:
        """Check if the bot may operate in a guild."""
        row = self.fetchone("SELECT COUNT(*) AS count FROM allowed_guilds WHERE id = ?", (guild_id,))
        return bool(row and row["count"])

    def get_allowed_guild(self: "DatabaseManager", guild_id: int) -> Optional[AllowedGuildRecord]:
        """Get an allowed guild's stored info, or None if not allowed."""
        row = self.fetchone(
            "SELECT id, name, icon, owner_id, created_at FROM allowed_guilds WHERE id = ?",
            (guild_id,),
        )
        return _row_to_guild(row) if row else None

    def get_allowed_guilds(self: "DatabaseManager") -> List[AllowedGuildRecord]:
        """Get every allowed guild."""
        rows = self.fetchall("SELECT id, name, icon, owner_id, created_at FROM allowed_guilds ORDER BY id")
        return [_row_to_guild(row) for row in rows]

    def get_allowed_guilds_for_api_user(self: "DatabaseManager", user_id: int) -> List[AllowedGuildRecord]:
        """Get allowed guilds where a user holds a USER api permission."""
        rows = self.fetchall(
            """
            SELECT g.id, g.name, g.icon, g.owner_id, g.created_at
            FROM allowed_guilds g
            INNER JOIN api_permissions p
                ON p.guild_id = g.id AND p.type = ? AND p.target_id = ?
            ORDER BY g.id
            """,
            (ApiPermissionTypes.USER.value, user_id),
        )
        return [_row_to_guild(row) for row in rows]

    # =========================================================================
    # Updates
    # =========================================================================

    def add_allowed_guild(self: "DatabaseManager", guild_id: int, name: Optional[str] = None) -> bool:
        """
        Add a guild to the allow-list.

        Returns:
            True if the guild was newly added.
        """
        cursor = self.execute(
            "INSERT OR IGNORE INTO allowed_guilds (id, name, created_at) VALUES (?, ?, ?)",
            (guild_id, name, time.time()),
        )
        if cursor.rowcount > 0:
            logger.tree("Guild Allowed", [
                ("Guild ID", str(guild_id)),
                ("Name", name or "Unknown"),
            ], emoji="🟢")
            return True
        return False

    def seed_allowed_guilds(self: "DatabaseManager", guild_ids: Iterable[int]) -> int:
        """Add several guilds to the allow-list, returning how many were new."""
        return sum(1 for guild_id in guild_ids if self.add_allowed_guild(guild_id))

    def remove_allowed_guild(self: "DatabaseManager", guild_id: int) -> bool:
        """Remove a guild from the allow-list along with its API permissions."""
        with self.transaction() as tx:
            tx.execute("DELETE FROM api_permissions WHERE guild_id = ?", (guild_id,))
            cursor = tx.execute("DELETE FROM allowed_guilds WHERE id = ?", (guild_id,))
            removed = cursor.rowcount > 0
        return removed

    def update_allowed_guild_info(
        self: "DatabaseManager",
        guild_id: int,
        name: Optional[str],
        icon: Optional[str],
        owner_id: Optional[int],
    ) -> None:
        """Refresh display info for an allowed guild."""
        self.execute(
            "UPDATE allowed_guilds SET name = ?, icon = ?, owner_id = ? WHERE id = ?",
            (name, icon, owner_id, guild_id),
        )

    def grant_api_permission(
        self: "DatabaseManager",
        guild_id: int,
        target_id: int,
        permission_type: ApiPermissionTypes = ApiPermissionTypes.USER,
        permissions: Optional[List[str]] = None,
    ) -> None:
        """Grant a user or role API access to a guild."""
        self.execute(
            """INSERT OR REPLACE INTO api_permissions (guild_id, type, target_id, permissions)
               VALUES (?, ?, ?, ?)""",
            (guild_id, permission_type.value, target_id, json.dumps(permissions or [])),
        )


__all__ = ["AllowedGuildsMixin", "ApiPermissionTypes"]
