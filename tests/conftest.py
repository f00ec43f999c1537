"""
PersistBot - Test Fixtures
==========================

Shared fixtures for all tests.
"""

import os
import sys
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

# Keep log files out of the working tree; must run before persistbot imports
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="persistbot-logs-"))


GUILD_ID = 987654321
MEMBER_ID = 123456789


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
def temp_db_path(tmp_path):
    """Create a temporary database path for testing."""
    return tmp_path / "test_persistbot.db"


@pytest.fixture
def test_db(temp_db_path):
    """Create a fresh test database instance."""
    from persistbot.core.database import DatabaseManager

    DatabaseManager._instance = None
    db = DatabaseManager(temp_db_path)

    yield db

    db.close()
    DatabaseManager._instance = None


# =============================================================================
# In-Memory Collaborators
# =============================================================================

class MemoryStore:
    """Dict-backed stand-in for PersistedStateStore."""

    def __init__(self):
        self.records = {}
        self.fail_on = set()

    def _check(self, operation, guild_id, member_id):
        if operation in self.fail_on:
            from persistbot.core.errors import TransientStoreError
            raise TransientStoreError(operation, guild_id, member_id, RuntimeError("store offline"))

    def find(self, guild_id, member_id):
        self._check("find", guild_id, member_id)
        return self.records.get((guild_id, member_id))

    def set(self, guild_id, member_id, record):
        self._check("set", guild_id, member_id)
        self.records[(guild_id, member_id)] = record

    def clear(self, guild_id, member_id):
        self._check("clear", guild_id, member_id)
        self.records.pop((guild_id, member_id), None)

    def count(self, guild_id=None):
        return len(self.records)


class RecordingEditor:
    """Editor that records edits and can be slowed down or made to fail."""

    def __init__(self, delay=0.0, reject_with=None):
        self.delay = delay
        self.reject_with = reject_with
        self.edits = []
        self.active = 0
        self.max_active = 0

    async def edit_member_profile(self, guild_id, member_id, edit, reason):
        import asyncio
        from persistbot.core.errors import ProfileEditRejected

        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.reject_with:
                raise ProfileEditRejected(guild_id, member_id, self.reject_with)
            self.edits.append((guild_id, member_id, edit, reason))
        finally:
            self.active -= 1


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def editor():
    return RecordingEditor()


@pytest.fixture
def audit():
    """Audit sink mock exposing .log calls."""
    sink = MagicMock()
    sink.log = MagicMock(return_value=1)
    return sink


@pytest.fixture
def persist_service(memory_store, editor, audit):
    from persistbot.services.persist import PersistService
    from persistbot.utils.locks import KeyedLockManager

    return PersistService(memory_store, editor, audit, KeyedLockManager(warn_after=5, timeout=10))


# =============================================================================
# Discord Mocks
# =============================================================================

def make_role(role_id, default=False):
    """Create a mock Discord role."""
    role = MagicMock()
    role.id = role_id
    role.is_default = MagicMock(return_value=default)
    return role


@pytest.fixture
def mock_discord_guild():
    """Create a mock Discord guild."""
    guild = MagicMock()
    guild.id = GUILD_ID
    guild.name = "Test Server"
    guild.owner_id = 111222333
    guild.icon = None
    guild.get_role = MagicMock(side_effect=lambda role_id: make_role(role_id))
    guild.get_member = MagicMock(return_value=None)
    guild.fetch_member = AsyncMock()
    guild.leave = AsyncMock()
    return guild


@pytest.fixture
def mock_discord_member(mock_discord_guild):
    """Create a mock Discord member."""
    from datetime import datetime

    member = MagicMock()
    member.id = MEMBER_ID
    member.name = "testuser"
    member.nick = None
    member.bot = False
    member.joined_at = datetime(2022, 4, 15, 10, 0, 0)
    member.guild = mock_discord_guild
    member.roles = [make_role(GUILD_ID, default=True)]
    member.mention = f"<@{MEMBER_ID}>"
    member.edit = AsyncMock()
    return member


@pytest.fixture
def mock_bot(test_db):
    """Create a mock bot carrying a config and the test database."""
    from persistbot.core.config import Config

    bot = MagicMock()
    bot.config = Config(discord_token="test-token")
    bot.db = test_db
    bot.get_guild = MagicMock(return_value=None)
    return bot


@pytest.fixture
def role_factory():
    """Factory for mock roles."""
    return make_role
