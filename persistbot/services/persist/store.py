"""
PersistBot - Persisted State Store
==================================

find / set / clear view of the persisted_data table, keyed by
(guild_id, member_id).

DESIGN:
    The persist service only needs these three calls, so it takes any
    object providing them. This class adapts the DatabaseManager mixin;
    tests can pass an in-memory stand-in with the same methods.
"""

from typing import TYPE_CHECKING, Optional

from persistbot.core.database.models import PersistedStateRecord

if TYPE_CHECKING:
    from persistbot.core.database import DatabaseManager


class PersistedStateStore:
    """SQLite-backed persisted state store."""

    def __init__(self, db: "DatabaseManager") -> None:
        self.db = db

    def find(self, guild_id: int, member_id: int) -> Optional[PersistedStateRecord]:
        return self.db.find_persisted_data(guild_id, member_id)

    def set(self, guild_id: int, member_id: int, record: PersistedStateRecord) -> None:
        self.db.set_persisted_data(guild_id, member_id, record)

    def clear(self, guild_id: int, member_id: int) -> None:
        self.db.clear_persisted_data(guild_id, member_id)

    def count(self, guild_id: Optional[int] = None) -> int:
        return self.db.count_persisted_data(guild_id)


__all__ = ["PersistedStateStore"]
