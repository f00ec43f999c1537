"""
PersistBot - Commands Package
=============================

Slash command cogs. Each entry in COMMAND_COGS is a package exposing
``async def setup(bot)`` and is loaded by the bot at startup.

Available Commands:
    /persist status: Show the guild's persistence settings
    /persist role-add, role-remove: Edit the persisted role list
    /persist nicknames: Toggle nickname persistence
    /persist unmatched: Keep or clear records that no longer match
    /persist show, forget: Inspect or delete a stored record
"""

# =============================================================================
# Command Cog Registry
# =============================================================================

COMMAND_COGS = [
    "persistbot.commands.persist",
]


__all__ = [
    "COMMAND_COGS",
]
