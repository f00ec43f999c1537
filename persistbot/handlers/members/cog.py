"""
PersistBot - Member Events Cog
==============================

Routes member leave/join events into the persist service.
"""

from typing import TYPE_CHECKING, Tuple

import discord
from discord.ext import commands

from persistbot.core.config import RestoreConfig
from persistbot.core.database import get_db
from persistbot.core.errors import LockAcquisitionStarvation, PersistError
from persistbot.core.logger import logger
from persistbot.services.audit import strip_member_to_scalars
from persistbot.services.persist import MemberArrival, MemberDeparture, RestoreOutcome
from persistbot.utils.error_handler import ErrorHandler

if TYPE_CHECKING:
    from persistbot.bot import PersistBot


def member_role_ids(member: discord.Member) -> Tuple[int, ...]:
    """Role IDs held by a member, without @everyone."""
    return tuple(role.id for role in member.roles if not role.is_default())


class MemberEvents(commands.Cog):
    """Member leave/join handlers."""

    def __init__(self, bot: "PersistBot") -> None:
        self.bot = bot
        self.db = get_db()

    def _restore_config(self, guild_id: int) -> RestoreConfig:
        """Snapshot of the guild's policy for one event."""
        return self.db.get_restore_config(guild_id, default=self.bot.config.default_restore)

    @commands.Cog.listener()
    async def on_member_remove(self, member: discord.Member) -> None:
        """Capture the member's persisted roles and nickname."""
        if not self.db.is_guild_allowed(member.guild.id):
            return

        event = MemberDeparture(
            guild_id=member.guild.id,
            member_id=member.id,
            roles=member_role_ids(member),
            nickname=member.nick,
            member_info=strip_member_to_scalars(member),
        )

        try:
            self.bot.persist_service.handle_departure(event, self._restore_config(member.guild.id))
        except PersistError as e:
            ErrorHandler.handle(e, location="MemberEvents.on_member_remove", member=member)

    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member) -> None:
        """Restore the member's stored roles and nickname."""
        if not self.db.is_guild_allowed(member.guild.id):
            return

        event = MemberArrival(
            guild_id=member.guild.id,
            member_id=member.id,
            roles=member_role_ids(member),
            member_info=strip_member_to_scalars(member),
        )

        try:
            result = await self.bot.persist_service.handle_arrival(event, self._restore_config(member.guild.id))
        except PersistError as e:
            ErrorHandler.handle(
                e,
                location="MemberEvents.on_member_join",
                critical=isinstance(e, LockAcquisitionStarvation),
                member=member,
            )
            return

        if result.outcome is RestoreOutcome.RESTORED:
            logger.tree("Member Restored", [
                ("User", f"{member.name} ({member.id})"),
                ("Guild", member.guild.name),
                ("Restored", ", ".join(result.restored)),
            ], emoji="♻️")


__all__ = ["MemberEvents", "member_role_ids"]
