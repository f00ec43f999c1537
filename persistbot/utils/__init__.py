"""
PersistBot - Utilities Package
==============================

Keyed locks, async helpers and error handling.
"""

from persistbot.utils.locks import KeyedLockManager, LockHandle
from persistbot.utils.async_utils import safe_async_operation

__all__ = [
    "KeyedLockManager",
    "LockHandle",
    "safe_async_operation",
]
