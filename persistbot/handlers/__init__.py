"""
PersistBot - Handlers Package
=============================

Event handler Cogs, loaded dynamically by the bot using load_extension().
"""

EVENT_COGS = [
    "persistbot.handlers.members",
]
"""Event cog module paths loaded at startup."""


__all__ = ["EVENT_COGS"]
