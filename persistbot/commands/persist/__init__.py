"""
PersistBot - Persist Command Package
====================================

Admin commands for the guild's role and nickname persistence policy.
"""

from typing import TYPE_CHECKING

from persistbot.core.logger import logger

from .cog import PersistCog

if TYPE_CHECKING:
    from persistbot.bot import PersistBot


async def setup(bot: "PersistBot") -> None:
    """Load the Persist cog."""
    await bot.add_cog(PersistCog(bot))
    logger.tree("Persist Cog Loaded", [
        ("Commands", "/persist"),
        ("Subcommands", "status, role-add, role-remove, nicknames, unmatched, show, forget"),
    ], emoji="📌")


__all__ = ["PersistCog", "setup"]
