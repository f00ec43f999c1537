"""
PersistBot - Health Check Tests
===============================

Tests for the /health endpoint payload.
"""

import json
from unittest.mock import MagicMock

import pytest

from persistbot.core.database.models import PersistedStateRecord
from persistbot.core.health import HealthCheckServer
from persistbot.utils.locks import KeyedLockManager


@pytest.fixture
def bot(mock_bot):
    mock_bot.is_ready = MagicMock(return_value=True)
    mock_bot.guilds = [MagicMock(), MagicMock()]
    mock_bot.locks = KeyedLockManager()
    return mock_bot


class TestHealthCheck:
    """Tests for HealthCheckServer."""

    def test_status_payload(self, bot, test_db):
        test_db.set_persisted_data(1, 2, PersistedStateRecord(roles=(3,)))
        server = HealthCheckServer(bot, port=0)

        status = server.build_status()

        assert status["status"] == "healthy"
        assert status["connected"] is True
        assert status["guilds"] == 2
        assert status["active_locks"] == 0
        assert status["persisted_records"] == 1

    @pytest.mark.asyncio
    async def test_counts_held_locks(self, bot):
        server = HealthCheckServer(bot)
        handle = await bot.locks.acquire("member-roles-1")

        assert server.build_status()["active_locks"] == 1
        handle.release()

    def test_starting_when_not_ready(self, bot):
        bot.is_ready = MagicMock(return_value=False)

        assert HealthCheckServer(bot).build_status()["status"] == "starting"

    @pytest.mark.asyncio
    async def test_handler_returns_json(self, bot):
        response = await HealthCheckServer(bot).health_handler(MagicMock())

        assert response.status == 200
        assert json.loads(response.text)["bot"] == "PersistBot"

    @pytest.mark.asyncio
    async def test_handler_error(self, bot):
        bot.db = MagicMock()
        bot.db.count_persisted_data = MagicMock(side_effect=RuntimeError("db closed"))

        response = await HealthCheckServer(bot).health_handler(MagicMock())

        assert response.status == 500
        assert json.loads(response.text)["status"] == "error"

    @pytest.mark.asyncio
    async def test_stop_without_start(self, bot):
        await HealthCheckServer(bot).stop()
