"""
PersistBot - Database Module
============================

SQLite storage for persisted member state, per-guild policy, the guild
allow-list and audit events.
"""

from persistbot.core.database.manager import DatabaseManager, get_db
from persistbot.core.database.base import DATA_DIR, DB_PATH, _safe_json_loads
from persistbot.core.database.allowed_guilds import ApiPermissionTypes
from persistbot.core.database.models import (
    PersistedStateRecord,
    AllowedGuildRecord,
    AuditEventRecord,
)

__all__ = [
    "DatabaseManager",
    "get_db",
    "DATA_DIR",
    "DB_PATH",
    "_safe_json_loads",
    "ApiPermissionTypes",
    "PersistedStateRecord",
    "AllowedGuildRecord",
    "AuditEventRecord",
]
