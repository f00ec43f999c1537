"""
PersistBot - Discord Profile Editor
===================================

Applies a restored ProfileEdit to a guild member through discord.py.

DESIGN:
    One Member.edit call carries every restored field, so roles and
    nickname land together or not at all. Any refusal from Discord is
    raised as ProfileEditRejected; the caller keeps the stored record.
"""

from typing import TYPE_CHECKING, List

import discord

from persistbot.core.errors import ProfileEditRejected
from persistbot.core.logger import logger

from .models import ProfileEdit

if TYPE_CHECKING:
    from discord.ext import commands


class DiscordProfileEditor:
    """Edits member roles and nicknames through the bot client."""

    def __init__(self, bot: "commands.Bot") -> None:
        self.bot = bot

    async def _resolve_member(self, guild: discord.Guild, member_id: int) -> discord.Member:
        member = guild.get_member(member_id)
        if member is not None:
            return member
        try:
            return await guild.fetch_member(member_id)
        except discord.NotFound as e:
            raise ProfileEditRejected(guild.id, member_id, "Member is no longer in the guild") from e
        except discord.HTTPException as e:
            raise ProfileEditRejected(guild.id, member_id, f"Member fetch failed (HTTP {e.status})") from e

    def _resolve_roles(self, guild: discord.Guild, member_id: int, role_ids) -> List[discord.abc.Snowflake]:
        """Map role IDs to snowflakes, dropping roles deleted from the guild."""
        roles = []
        missing = []
        for role_id in role_ids:
            if guild.get_role(role_id) is None:
                missing.append(role_id)
            else:
                roles.append(discord.Object(id=role_id))
        if missing:
            logger.warning("Restored Roles Missing From Guild", [
                ("Guild", str(guild.id)),
                ("Member", str(member_id)),
                ("Missing", ", ".join(str(r) for r in missing)),
            ])
        return roles

    async def edit_member_profile(
        self,
        guild_id: int,
        member_id: int,
        edit: ProfileEdit,
        reason: str,
    ) -> None:
        """
        Apply edit to the member.

        Raises:
            ProfileEditRejected: If the guild/member is unavailable or
                Discord refuses the edit.
        """
        guild = self.bot.get_guild(guild_id)
        if guild is None:
            raise ProfileEditRejected(guild_id, member_id, "Guild is not available")

        member = await self._resolve_member(guild, member_id)

        kwargs = {}
        if edit.roles is not None:
            kwargs["roles"] = self._resolve_roles(guild, member_id, edit.roles)
        if edit.nickname is not None:
            kwargs["nick"] = edit.nickname

        try:
            await member.edit(reason=reason, **kwargs)
        except discord.Forbidden as e:
            raise ProfileEditRejected(guild_id, member_id, "Missing permissions or role hierarchy") from e
        except discord.HTTPException as e:
            raise ProfileEditRejected(guild_id, member_id, f"HTTP {e.status}: {str(e.text)[:100]}") from e


__all__ = ["DiscordProfileEditor"]
