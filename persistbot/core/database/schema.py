"""
PersistBot - Database Schema
============================

Table definitions.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from persistbot.core.database.manager import DatabaseManager


class SchemaMixin:
    """Mixin for database schema initialization."""

    def _init_tables(self: "DatabaseManager") -> None:
        """
        Initialize all database tables.

        DESIGN: Tables are created if not exist, allowing safe restarts.
        """
        conn = self._get_conn()
        cursor = conn.cursor()

        # -----------------------------------------------------------------
        # Persisted Data Table
        # DESIGN: One row per (guild, member) between a qualifying leave and
        # the next successful restore. Rows are replaced whole, never merged.
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS persisted_data (
                guild_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                roles TEXT,
                nickname TEXT,
                updated_at REAL NOT NULL,
                PRIMARY KEY (guild_id, user_id)
            )
        """)

        # -----------------------------------------------------------------
        # Persist Config Table
        # DESIGN: Per-guild restore policy; guilds without a row use the
        # environment defaults.
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS persist_config (
                guild_id INTEGER PRIMARY KEY,
                persisted_roles TEXT NOT NULL DEFAULT '[]',
                persist_nicknames INTEGER NOT NULL DEFAULT 0,
                clear_unmatched INTEGER NOT NULL DEFAULT 0,
                updated_at REAL NOT NULL
            )
        """)

        # -----------------------------------------------------------------
        # Allowed Guilds Table
        # DESIGN: The bot only operates in guilds listed here.
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS allowed_guilds (
                id INTEGER PRIMARY KEY,
                name TEXT,
                icon TEXT,
                owner_id INTEGER,
                created_at REAL NOT NULL
            )
        """)

        # -----------------------------------------------------------------
        # API Permissions Table
        # DESIGN: Grants a user (or role) API access to an allowed guild.
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS api_permissions (
                guild_id INTEGER NOT NULL,
                type TEXT NOT NULL,
                target_id INTEGER NOT NULL,
                permissions TEXT NOT NULL DEFAULT '[]',
                PRIMARY KEY (guild_id, type, target_id)
            )
        """)

        # -----------------------------------------------------------------
        # Audit Events Table
        # DESIGN: Append-only record of persist/restore outcomes.
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS audit_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id INTEGER NOT NULL,
                event_type TEXT NOT NULL,
                payload TEXT NOT NULL,
                created_at REAL NOT NULL
            )
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_audit_guild_type ON audit_events(guild_id, event_type, created_at DESC)"
        )

        conn.commit()


__all__ = ["SchemaMixin"]
