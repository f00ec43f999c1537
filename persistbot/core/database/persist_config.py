"""
PersistBot - Persist Config Database Mixin
==========================================

Per-guild restore policy storage.
"""

import json
import time
from typing import TYPE_CHECKING, Optional

from persistbot.core.config import RestoreConfig
from persistbot.core.database.base import _safe_json_loads

if TYPE_CHECKING:
    from persistbot.core.database.manager import DatabaseManager


class PersistConfigMixin:
    """Mixin for per-guild RestoreConfig operations."""

    def get_restore_config(
        self: "DatabaseManager",
        guild_id: int,
        default: Optional[RestoreConfig] = None,
    ) -> RestoreConfig:
        """
        Get a guild's restore policy.

        Args:
            guild_id: Guild ID.
            default: Policy returned when the guild has no stored row.

        Returns:
            The stored policy, the given default, or an empty policy.
        """
        row = self.fetchone(
            """SELECT persisted_roles, persist_nicknames, clear_unmatched
               FROM persist_config WHERE guild_id = ?""",
            (guild_id,),
        )
        if not row:
            return default if default is not None else RestoreConfig()

        return RestoreConfig.from_dict({
            "persisted_roles": _safe_json_loads(row["persisted_roles"], default=[]),
            "persist_nicknames": bool(row["persist_nicknames"]),
            "clear_unmatched": bool(row["clear_unmatched"]),
        })

    def set_restore_config(
        self: "DatabaseManager",
        guild_id: int,
        config: RestoreConfig,
    ) -> None:
        """Store a guild's restore policy, replacing any previous one."""
        self.execute(
            """
            INSERT OR REPLACE INTO persist_config
                (guild_id, persisted_roles, persist_nicknames, clear_unmatched, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                guild_id,
                json.dumps(list(config.persisted_roles)),
                int(config.persist_nicknames),
                int(config.clear_unmatched),
                time.time(),
            ),
        )

    def delete_restore_config(self: "DatabaseManager", guild_id: int) -> bool:
        """Drop a guild's stored policy so it falls back to the defaults."""
        cursor = self.execute("DELETE FROM persist_config WHERE guild_id = ?", (guild_id,))
        return cursor.rowcount > 0


__all__ = ["PersistConfigMixin"]
