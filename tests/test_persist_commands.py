"""
PersistBot - Persist Command Tests
==================================

Tests for the /persist slash command callbacks.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from persistbot.commands.persist import PersistCog
from persistbot.core.config import RestoreConfig
from persistbot.core.database.models import PersistedStateRecord


@pytest.fixture
def cog(mock_bot):
    return PersistCog(mock_bot)


@pytest.fixture
def interaction(mock_discord_guild):
    interaction = MagicMock()
    interaction.guild = mock_discord_guild
    interaction.user.id = 111222333
    interaction.user.name = "admin"
    interaction.response.send_message = AsyncMock()
    return interaction


@pytest.fixture
def role(role_factory):
    role = role_factory(555)
    role.name = "Veteran"
    role.mention = "<@&555>"
    role.managed = False
    return role


@pytest.fixture
def user():
    user = MagicMock()
    user.id = 424242
    user.name = "leaver"
    user.mention = "<@424242>"
    return user


def _sent_embed(interaction):
    return interaction.response.send_message.call_args.kwargs["embed"]


def _sent_text(interaction):
    return interaction.response.send_message.call_args.args[0]


class TestPolicyCommands:
    """Tests for status and policy edits."""

    @pytest.mark.asyncio
    async def test_status_shows_defaults(self, cog, interaction):
        await cog.status.callback(cog, interaction)

        embed = _sent_embed(interaction)
        fields = {f.name: f.value for f in embed.fields}
        assert fields["Persisted Roles"] == "None"
        assert fields["Persist Nicknames"] == "Disabled"
        assert fields["Unmatched Records"] == "Kept"
        assert interaction.response.send_message.call_args.kwargs["ephemeral"] is True

    @pytest.mark.asyncio
    async def test_role_add(self, cog, test_db, interaction, role):
        await cog.role_add.callback(cog, interaction, role)

        assert test_db.get_restore_config(interaction.guild.id).persisted_roles == (555,)

    @pytest.mark.asyncio
    async def test_role_add_twice(self, cog, test_db, interaction, role):
        await cog.role_add.callback(cog, interaction, role)
        await cog.role_add.callback(cog, interaction, role)

        assert "already persisted" in _sent_text(interaction)
        assert test_db.get_restore_config(interaction.guild.id).persisted_roles == (555,)

    @pytest.mark.asyncio
    async def test_role_add_managed_refused(self, cog, test_db, interaction, role):
        role.managed = True

        await cog.role_add.callback(cog, interaction, role)

        assert "cannot be persisted" in _sent_text(interaction)
        assert test_db.get_restore_config(interaction.guild.id) == RestoreConfig()

    @pytest.mark.asyncio
    async def test_role_remove(self, cog, test_db, interaction, role):
        test_db.set_restore_config(interaction.guild.id, RestoreConfig(persisted_roles=(555, 666)))

        await cog.role_remove.callback(cog, interaction, role)

        assert test_db.get_restore_config(interaction.guild.id).persisted_roles == (666,)

    @pytest.mark.asyncio
    async def test_role_remove_not_persisted(self, cog, interaction, role):
        await cog.role_remove.callback(cog, interaction, role)

        assert "is not persisted" in _sent_text(interaction)

    @pytest.mark.asyncio
    async def test_nicknames_toggle_keeps_roles(self, cog, test_db, interaction):
        test_db.set_restore_config(interaction.guild.id, RestoreConfig(persisted_roles=(555,)))

        await cog.nicknames.callback(cog, interaction, True)

        assert test_db.get_restore_config(interaction.guild.id) == RestoreConfig(
            persisted_roles=(555,),
            persist_nicknames=True,
        )

    @pytest.mark.asyncio
    async def test_unmatched_policy(self, cog, test_db, interaction):
        await cog.unmatched.callback(cog, interaction, True)

        assert test_db.get_restore_config(interaction.guild.id).clear_unmatched is True
        fields = {f.name: f.value for f in _sent_embed(interaction).fields}
        assert fields["Unmatched Records"] == "Cleared"

    @pytest.mark.asyncio
    async def test_env_defaults_used_until_edited(self, cog, mock_bot, test_db, interaction, role):
        mock_bot.config.default_restore = RestoreConfig(persisted_roles=(777,))

        await cog.role_add.callback(cog, interaction, role)

        assert test_db.get_restore_config(interaction.guild.id).persisted_roles == (777, 555)


class TestRecordCommands:
    """Tests for show and forget."""

    @pytest.mark.asyncio
    async def test_show_nothing(self, cog, interaction, user):
        await cog.show.callback(cog, interaction, user)

        assert "Nothing stored" in _sent_text(interaction)

    @pytest.mark.asyncio
    async def test_show_record(self, cog, test_db, interaction, user):
        test_db.set_persisted_data(interaction.guild.id, user.id, PersistedStateRecord(roles=(555,), nickname="Nick"))

        await cog.show.callback(cog, interaction, user)

        fields = {f.name: f.value for f in _sent_embed(interaction).fields}
        assert fields["Roles"] == "<@&555>"
        assert fields["Nickname"] == "Nick"

    @pytest.mark.asyncio
    async def test_show_flags_deleted_roles(self, cog, test_db, interaction, user):
        interaction.guild.get_role = MagicMock(return_value=None)
        test_db.set_persisted_data(interaction.guild.id, user.id, PersistedStateRecord(roles=(555,)))

        await cog.show.callback(cog, interaction, user)

        fields = {f.name: f.value for f in _sent_embed(interaction).fields}
        assert fields["Roles"] == "`555` (deleted)"

    @pytest.mark.asyncio
    async def test_forget(self, cog, test_db, interaction, user):
        test_db.set_persisted_data(interaction.guild.id, user.id, PersistedStateRecord(roles=(555,)))

        await cog.forget.callback(cog, interaction, user)

        assert "Deleted stored data" in _sent_text(interaction)
        assert test_db.find_persisted_data(interaction.guild.id, user.id) is None

    @pytest.mark.asyncio
    async def test_forget_nothing(self, cog, interaction, user):
        await cog.forget.callback(cog, interaction, user)

        assert "Nothing stored" in _sent_text(interaction)
