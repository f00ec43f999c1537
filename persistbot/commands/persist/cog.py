"""
PersistBot - Persist Command Cog
================================

/persist slash commands for managing a guild's restore policy and
inspecting stored records. Requires Manage Server.
"""

from typing import TYPE_CHECKING, List

import discord
from discord import app_commands
from discord.ext import commands

from persistbot.core.config import EmbedColors, RestoreConfig
from persistbot.core.constants import MAX_ROLES_DISPLAYED
from persistbot.core.database import get_db
from persistbot.core.errors import TransientStoreError
from persistbot.core.logger import logger

if TYPE_CHECKING:
    from persistbot.bot import PersistBot


def _format_roles(role_ids, guild: discord.Guild) -> str:
    """Render role IDs as mentions, flagging roles deleted from the guild."""
    if not role_ids:
        return "None"
    parts: List[str] = []
    for role_id in list(role_ids)[:MAX_ROLES_DISPLAYED]:
        parts.append(f"<@&{role_id}>" if guild.get_role(role_id) else f"`{role_id}` (deleted)")
    if len(role_ids) > MAX_ROLES_DISPLAYED:
        parts.append(f"+{len(role_ids) - MAX_ROLES_DISPLAYED} more")
    return ", ".join(parts)


class PersistCog(commands.Cog):
    """Admin commands for role and nickname persistence."""

    persist = app_commands.Group(
        name="persist",
        description="Configure role and nickname persistence",
        guild_only=True,
        default_permissions=discord.Permissions(manage_guild=True),
    )

    def __init__(self, bot: "PersistBot") -> None:
        self.bot = bot
        self.db = get_db()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get_config(self, guild_id: int) -> RestoreConfig:
        return self.db.get_restore_config(guild_id, default=self.bot.config.default_restore)

    def _save_config(self, interaction: discord.Interaction, config: RestoreConfig, change: str) -> None:
        self.db.set_restore_config(interaction.guild.id, config)
        logger.tree("Persist Config Changed", [
            ("Guild", f"{interaction.guild.name} ({interaction.guild.id})"),
            ("By", f"{interaction.user.name} ({interaction.user.id})"),
            ("Change", change),
        ], emoji="⚙️")

    def _config_embed(self, guild: discord.Guild, config: RestoreConfig, title: str) -> discord.Embed:
        embed = discord.Embed(title=title, color=EmbedColors.INFO)
        embed.add_field(name="Persisted Roles", value=_format_roles(config.persisted_roles, guild), inline=False)
        embed.add_field(name="Persist Nicknames", value="Enabled" if config.persist_nicknames else "Disabled")
        embed.add_field(name="Unmatched Records", value="Cleared" if config.clear_unmatched else "Kept")
        embed.add_field(name="Stored Records", value=str(self.db.count_persisted_data(guild.id)))
        return embed

    # =========================================================================
    # Policy Commands
    # =========================================================================

    @persist.command(name="status", description="Show this server's persistence settings")
    async def status(self, interaction: discord.Interaction) -> None:
        config = self._get_config(interaction.guild.id)
        await interaction.response.send_message(
            embed=self._config_embed(interaction.guild, config, "Persist Settings"),
            ephemeral=True,
        )

    @persist.command(name="role-add", description="Persist a role across leave/rejoin")
    @app_commands.describe(role="Role to restore when a member rejoins")
    async def role_add(self, interaction: discord.Interaction, role: discord.Role) -> None:
        if role.is_default() or role.managed:
            await interaction.response.send_message(
                f"{role.mention} is managed by Discord or an integration and cannot be persisted.",
                ephemeral=True,
            )
            return

        config = self._get_config(interaction.guild.id)
        if role.id in config.persisted_roles:
            await interaction.response.send_message(f"{role.mention} is already persisted.", ephemeral=True)
            return

        updated = config.with_role(role.id)
        self._save_config(interaction, updated, f"+ role {role.name} ({role.id})")
        await interaction.response.send_message(
            embed=self._config_embed(interaction.guild, updated, "Role Added"),
            ephemeral=True,
        )

    @persist.command(name="role-remove", description="Stop persisting a role")
    @app_commands.describe(role="Role to stop restoring")
    async def role_remove(self, interaction: discord.Interaction, role: discord.Role) -> None:
        config = self._get_config(interaction.guild.id)
        if role.id not in config.persisted_roles:
            await interaction.response.send_message(f"{role.mention} is not persisted.", ephemeral=True)
            return

        updated = config.without_role(role.id)
        self._save_config(interaction, updated, f"- role {role.name} ({role.id})")
        await interaction.response.send_message(
            embed=self._config_embed(interaction.guild, updated, "Role Removed"),
            ephemeral=True,
        )

    @persist.command(name="nicknames", description="Enable or disable nickname persistence")
    @app_commands.describe(enabled="Restore server nicknames on rejoin")
    async def nicknames(self, interaction: discord.Interaction, enabled: bool) -> None:
        config = self._get_config(interaction.guild.id)
        updated = RestoreConfig(
            persisted_roles=config.persisted_roles,
            persist_nicknames=enabled,
            clear_unmatched=config.clear_unmatched,
        )
        self._save_config(interaction, updated, f"persist_nicknames={enabled}")
        await interaction.response.send_message(
            embed=self._config_embed(interaction.guild, updated, "Nickname Persistence Updated"),
            ephemeral=True,
        )

    @persist.command(name="unmatched", description="Choose what happens to stored data that no longer matches")
    @app_commands.describe(clear="Delete stored data on rejoin when nothing in it is restorable")
    async def unmatched(self, interaction: discord.Interaction, clear: bool) -> None:
        config = self._get_config(interaction.guild.id)
        updated = RestoreConfig(
            persisted_roles=config.persisted_roles,
            persist_nicknames=config.persist_nicknames,
            clear_unmatched=clear,
        )
        self._save_config(interaction, updated, f"clear_unmatched={clear}")
        await interaction.response.send_message(
            embed=self._config_embed(interaction.guild, updated, "Unmatched Policy Updated"),
            ephemeral=True,
        )

    # =========================================================================
    # Record Commands
    # =========================================================================

    @persist.command(name="show", description="Show data stored for a user who left")
    @app_commands.describe(user="User (or user ID) to look up")
    async def show(self, interaction: discord.Interaction, user: discord.User) -> None:
        try:
            record = self.db.find_persisted_data(interaction.guild.id, user.id)
        except TransientStoreError as e:
            logger.error("Persist Show Failed", [("User", str(user.id)), ("Error", str(e.cause)[:100])])
            await interaction.response.send_message("Database unavailable, try again later.", ephemeral=True)
            return

        if record is None:
            await interaction.response.send_message(f"Nothing stored for {user.mention}.", ephemeral=True)
            return

        embed = discord.Embed(title=f"Stored Data - {user.name}", color=EmbedColors.INFO)
        embed.add_field(name="Roles", value=_format_roles(record.roles, interaction.guild), inline=False)
        embed.add_field(name="Nickname", value=record.nickname or "None")
        embed.set_footer(text=f"ID: {user.id}")
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @persist.command(name="forget", description="Delete data stored for a user")
    @app_commands.describe(user="User (or user ID) whose stored data to delete")
    async def forget(self, interaction: discord.Interaction, user: discord.User) -> None:
        try:
            removed = self.db.clear_persisted_data(interaction.guild.id, user.id)
        except TransientStoreError as e:
            logger.error("Persist Forget Failed", [("User", str(user.id)), ("Error", str(e.cause)[:100])])
            await interaction.response.send_message("Database unavailable, try again later.", ephemeral=True)
            return

        if removed:
            logger.tree("Persisted Data Forgotten", [
                ("Guild", f"{interaction.guild.name} ({interaction.guild.id})"),
                ("User", str(user.id)),
                ("By", f"{interaction.user.name} ({interaction.user.id})"),
            ], emoji="🗑️")
            await interaction.response.send_message(f"Deleted stored data for {user.mention}.", ephemeral=True)
        else:
            await interaction.response.send_message(f"Nothing stored for {user.mention}.", ephemeral=True)


__all__ = ["PersistCog"]
