"""
PersistBot - Source Package
===========================

Discord bot that captures a configured subset of a member's state (roles,
server nickname) when they leave a guild and restores it when they rejoin.

Package Structure:
- bot.py: Main Discord bot class and lifecycle
- commands/: /persist admin slash commands
- core/: Config, logging, errors, database
- handlers/: Member join/leave event cogs
- services/: Persist/restore core, audit sink, Discord profile editor
- utils/: Keyed locks, async helpers, error handler

Version: v1.0.0
"""

__version__ = "1.0.0"
