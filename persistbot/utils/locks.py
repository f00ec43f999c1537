"""
PersistBot - Keyed Locks
========================

Process-wide registry of asyncio locks keyed by string.

DESIGN:
    Each key maps to its own asyncio.Lock, created on first use and
    dropped again once nobody holds or waits for it, so a key acquired
    later starts uncontended and the registry does not grow with every
    member ever seen. Unrelated keys never contend.

    Waiters are served in FIFO order (asyncio.Lock semantics). Waiting is
    bounded: past warn_after seconds the wait is reported as a stuck
    holder, past timeout seconds LockAcquisitionStarvation is raised.

Usage:
    locks = KeyedLockManager(warn_after=10, timeout=60)

    handle = await locks.acquire("member-roles-1234")
    try:
        ...
    finally:
        handle.release()

    # or
    async with locks.hold("member-roles-1234"):
        ...
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from persistbot.core.errors import LockAcquisitionStarvation
from persistbot.core.logger import logger


_DEFAULT = object()


class _LockEntry:
    """A lock plus the number of holders and waiters referencing it."""

    __slots__ = ("lock", "refs", "held_since")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.refs = 0
        self.held_since: Optional[float] = None


class LockHandle:
    """
    Proof of holding a keyed lock.

    release() must be called exactly once.
    """

    def __init__(self, manager: "KeyedLockManager", key: str, entry: _LockEntry) -> None:
        self._manager = manager
        self._entry = entry
        self.key = key
        self.released = False

    def release(self) -> None:
        """Release the lock to the next waiter."""
        if self.released:
            raise RuntimeError(f"Lock handle for '{self.key}' already released")
        self.released = True
        self._manager._release(self.key, self._entry)

    def __repr__(self) -> str:
        state = "released" if self.released else "held"
        return f"<LockHandle key={self.key!r} {state}>"


class KeyedLockManager:
    """
    Registry of per-key mutual exclusion locks.

    Attributes:
        warn_after: Seconds of waiting before a stuck holder is reported.
        timeout: Seconds of waiting before giving up, or None to wait forever.
    """

    def __init__(self, warn_after: float = 10.0, timeout: Optional[float] = 60.0) -> None:
        self.warn_after = warn_after
        self.timeout = timeout
        self._locks: Dict[str, _LockEntry] = {}

    # =========================================================================
    # Acquire / Release
    # =========================================================================

    async def acquire(self, key: str, timeout=_DEFAULT) -> LockHandle:
        """
        Wait until no one else holds key, then take it.

        Args:
            key: Lock key.
            timeout: Override for this call (None waits forever).

        Returns:
            Handle whose release() frees the key.

        Raises:
            LockAcquisitionStarvation: If the wait exceeded the timeout.
        """
        if timeout is _DEFAULT:
            timeout = self.timeout

        entry = self._locks.get(key)
        if entry is None:
            entry = _LockEntry()
            self._locks[key] = entry
        entry.refs += 1

        try:
            await self._wait_for(key, entry, timeout)
        except BaseException:
            entry.refs -= 1
            self._prune(key, entry)
            raise

        entry.held_since = time.monotonic()
        return LockHandle(self, key, entry)

    async def _wait_for(self, key: str, entry: _LockEntry, timeout: Optional[float]) -> None:
        """Acquire entry.lock, reporting long waits and enforcing timeout."""
        # Sole referent: the lock is free and nobody is queued.
        if entry.refs == 1:
            await entry.lock.acquire()
            return

        started = time.monotonic()
        acquiring = asyncio.ensure_future(entry.lock.acquire())

        try:
            first = self.warn_after if timeout is None else min(self.warn_after, timeout)
            done, _ = await asyncio.wait({acquiring}, timeout=first)

            if not done and (timeout is None or timeout > first):
                held_for = time.monotonic() - entry.held_since if entry.held_since else 0.0
                logger.error("Lock Held Unexpectedly Long", [
                    ("Key", key),
                    ("Waited", f"{first:.1f}s"),
                    ("Held For", f"{held_for:.1f}s"),
                    ("Waiters", str(entry.refs - 1)),
                ])
                remaining = None if timeout is None else timeout - first
                done, _ = await asyncio.wait({acquiring}, timeout=remaining)

            if not done:
                waited = time.monotonic() - started
                logger.critical("Lock Acquisition Starved", [
                    ("Key", key),
                    ("Waited", f"{waited:.1f}s"),
                ])
                raise LockAcquisitionStarvation(key, waited)

        except BaseException:
            if acquiring.done() and not acquiring.cancelled() and acquiring.exception() is None:
                entry.lock.release()
            else:
                acquiring.cancel()
            raise

    def _release(self, key: str, entry: _LockEntry) -> None:
        entry.held_since = None
        entry.lock.release()
        entry.refs -= 1
        self._prune(key, entry)

    def _prune(self, key: str, entry: _LockEntry) -> None:
        """Drop the registry entry once nothing references it."""
        if entry.refs <= 0 and self._locks.get(key) is entry:
            del self._locks[key]

    @asynccontextmanager
    async def hold(self, key: str, timeout=_DEFAULT) -> AsyncIterator[LockHandle]:
        """Hold key for the duration of an async with block."""
        handle = await self.acquire(key, timeout=timeout)
        try:
            yield handle
        finally:
            handle.release()

    # =========================================================================
    # Introspection
    # =========================================================================

    def is_locked(self, key: str) -> bool:
        """Check if someone currently holds key."""
        entry = self._locks.get(key)
        return bool(entry and entry.lock.locked())

    def __len__(self) -> int:
        """Number of keys currently held or waited on."""
        return len(self._locks)

    def __contains__(self, key: str) -> bool:
        return key in self._locks


__all__ = ["KeyedLockManager", "LockHandle"]
