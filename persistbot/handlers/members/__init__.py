"""
PersistBot - Member Events Package
==================================

Handles member join and leave events.
"""

from typing import TYPE_CHECKING

from persistbot.core.logger import logger

from .cog import MemberEvents, member_role_ids

if TYPE_CHECKING:
    from persistbot.bot import PersistBot


async def setup(bot: "PersistBot") -> None:
    """Add the member events cog to the bot."""
    await bot.add_cog(MemberEvents(bot))
    logger.tree("Member Events Loaded", [
        ("Events", "join, leave"),
        ("Features", "role/nickname persistence"),
    ], emoji="👤")


__all__ = ["MemberEvents", "member_role_ids", "setup"]
