"""
PersistBot - Error Types
========================

Exceptions raised by the persist core.

DESIGN:
    Store and platform failures abort the current handler after the
    member lock is released. Callers distinguish them by type:
    - TransientStoreError: SQLite read/write/delete failed
    - ProfileEditRejected: Discord refused the member edit
    - LockAcquisitionStarvation: a member lock stayed held past its bound
"""

from typing import Optional


class PersistError(Exception):
    """Base class for all persist core errors."""


class TransientStoreError(PersistError):
    """Raised when the persisted data store cannot be read or written."""

    def __init__(self, operation: str, guild_id: int, member_id: int, cause: Optional[BaseException] = None) -> None:
        self.operation = operation
        self.guild_id = guild_id
        self.member_id = member_id
        self.cause = cause
        super().__init__(f"Persisted data {operation} failed for member {member_id} in guild {guild_id}: {cause}")


class ProfileEditRejected(PersistError):
    """Raised when Discord refuses to apply a restored profile edit."""

    def __init__(self, guild_id: int, member_id: int, reason: str) -> None:
        self.guild_id = guild_id
        self.member_id = member_id
        self.reason = reason
        super().__init__(f"Profile edit rejected for member {member_id} in guild {guild_id}: {reason}")


class LockAcquisitionStarvation(PersistError):
    """Raised when a keyed lock could not be acquired within its timeout."""

    def __init__(self, key: str, waited: float) -> None:
        self.key = key
        self.waited = waited
        super().__init__(f"Lock '{key}' not acquired after {waited:.1f}s")


__all__ = [
    "PersistError",
    "TransientStoreError",
    "ProfileEditRejected",
    "LockAcquisitionStarvation",
]
