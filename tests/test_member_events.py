"""
PersistBot - Member Events Tests
================================

Tests for the member leave/join cog wired to a real database.
"""

from unittest.mock import patch

import pytest

from persistbot.core.config import RestoreConfig
from persistbot.core.database.models import PersistedStateRecord
from persistbot.handlers.members import MemberEvents
from persistbot.handlers.members.cog import member_role_ids
from persistbot.services.audit import AuditLog, LogType, strip_member_to_scalars
from persistbot.services.persist import PersistedStateStore, PersistService
from persistbot.utils.locks import KeyedLockManager


ROLE_A, ROLE_B, ROLE_C = 101, 102, 103


@pytest.fixture
def cog(mock_bot, test_db, editor, mock_discord_guild):
    mock_bot.persist_service = PersistService(
        PersistedStateStore(test_db),
        editor,
        AuditLog(test_db),
        KeyedLockManager(warn_after=5, timeout=10),
    )
    test_db.add_allowed_guild(mock_discord_guild.id, mock_discord_guild.name)
    test_db.set_restore_config(
        mock_discord_guild.id,
        RestoreConfig(persisted_roles=(ROLE_A, ROLE_B), persist_nicknames=True),
    )
    return MemberEvents(mock_bot)


class TestHelpers:
    """Tests for member scalar helpers."""

    def test_member_role_ids_skips_everyone(self, mock_discord_member, role_factory):
        mock_discord_member.roles.append(role_factory(ROLE_A))

        assert member_role_ids(mock_discord_member) == (ROLE_A,)

    def test_strip_member_to_scalars(self, mock_discord_member, role_factory):
        mock_discord_member.nick = "Nick"
        mock_discord_member.roles.append(role_factory(ROLE_A))

        data = strip_member_to_scalars(mock_discord_member)

        assert data["id"] == mock_discord_member.id
        assert data["nick"] == "Nick"
        assert data["user"] == {"id": mock_discord_member.id, "username": "testuser", "bot": False}
        assert data["roles"] == [ROLE_A]
        assert data["joined_at"].startswith("2022-04-15")

    def test_strip_member_without_nested(self, mock_discord_member):
        data = strip_member_to_scalars(mock_discord_member, include=())

        assert "user" not in data
        assert "roles" not in data


class TestMemberRemove:
    """Tests for on_member_remove."""

    @pytest.mark.asyncio
    async def test_persists_roles_and_nickname(self, cog, test_db, mock_discord_member, role_factory):
        mock_discord_member.nick = "Nick"
        mock_discord_member.roles.extend([role_factory(ROLE_A), role_factory(ROLE_C)])

        await cog.on_member_remove(mock_discord_member)

        record = test_db.find_persisted_data(mock_discord_member.guild.id, mock_discord_member.id)
        assert record == PersistedStateRecord(roles=(ROLE_A,), nickname="Nick")

        events = test_db.get_audit_events(mock_discord_member.guild.id, LogType.MEMBER_PERSIST.value)
        assert len(events) == 1
        assert events[0]["payload"]["member"]["id"] == mock_discord_member.id

    @pytest.mark.asyncio
    async def test_ignores_non_allowed_guild(self, cog, test_db, mock_discord_member, role_factory):
        mock_discord_member.guild.id = 5555
        mock_discord_member.roles.append(role_factory(ROLE_A))

        await cog.on_member_remove(mock_discord_member)

        assert test_db.count_persisted_data() == 0

    @pytest.mark.asyncio
    async def test_store_error_is_handled(self, cog, test_db, mock_discord_member, role_factory):
        from persistbot.core.errors import TransientStoreError

        mock_discord_member.roles.append(role_factory(ROLE_A))
        error = TransientStoreError("set", 1, 2)

        with patch.object(test_db, "set_persisted_data", side_effect=error), \
                patch("persistbot.handlers.members.cog.ErrorHandler.handle") as handle:
            await cog.on_member_remove(mock_discord_member)

        handle.assert_called_once()
        assert handle.call_args.args[0] is error


class TestMemberJoin:
    """Tests for on_member_join."""

    @pytest.mark.asyncio
    async def test_restores_stored_state(self, cog, test_db, editor, mock_discord_member, role_factory):
        guild_id = mock_discord_member.guild.id
        test_db.set_persisted_data(guild_id, mock_discord_member.id, PersistedStateRecord(roles=(ROLE_B,), nickname="Nick"))
        mock_discord_member.roles.append(role_factory(ROLE_C))

        await cog.on_member_join(mock_discord_member)

        _, member_id, edit, _ = editor.edits[0]
        assert member_id == mock_discord_member.id
        assert set(edit.roles) == {ROLE_B, ROLE_C}
        assert edit.nickname == "Nick"
        assert test_db.find_persisted_data(guild_id, mock_discord_member.id) is None
        assert len(test_db.get_audit_events(guild_id, LogType.MEMBER_RESTORE.value)) == 1

    @pytest.mark.asyncio
    async def test_no_record(self, cog, editor, mock_discord_member):
        await cog.on_member_join(mock_discord_member)

        assert editor.edits == []

    @pytest.mark.asyncio
    async def test_ignores_non_allowed_guild(self, cog, test_db, editor, mock_discord_member):
        mock_discord_member.guild.id = 5555
        test_db.set_persisted_data(5555, mock_discord_member.id, PersistedStateRecord(roles=(ROLE_A,)))

        await cog.on_member_join(mock_discord_member)

        assert editor.edits == []
        assert test_db.find_persisted_data(5555, mock_discord_member.id) is not None

    @pytest.mark.asyncio
    async def test_rejected_edit_is_handled(self, cog, test_db, editor, mock_discord_member):
        guild_id = mock_discord_member.guild.id
        test_db.set_persisted_data(guild_id, mock_discord_member.id, PersistedStateRecord(roles=(ROLE_A,)))
        editor.reject_with = "Missing permissions or role hierarchy"

        with patch("persistbot.handlers.members.cog.ErrorHandler.handle") as handle:
            await cog.on_member_join(mock_discord_member)

        handle.assert_called_once()
        assert handle.call_args.kwargs["critical"] is False
        assert test_db.find_persisted_data(guild_id, mock_discord_member.id) is not None
        assert len(test_db.get_audit_events(guild_id, LogType.MEMBER_RESTORE_FAILED.value)) == 1

    @pytest.mark.asyncio
    async def test_uses_env_defaults_without_stored_policy(self, cog, test_db, mock_bot, editor, mock_discord_member):
        guild_id = mock_discord_member.guild.id
        test_db.delete_restore_config(guild_id)
        mock_bot.config.default_restore = RestoreConfig(persisted_roles=(ROLE_C,))
        test_db.set_persisted_data(guild_id, mock_discord_member.id, PersistedStateRecord(roles=(ROLE_C,)))

        await cog.on_member_join(mock_discord_member)

        assert editor.edits[0][2].roles == (ROLE_C,)
