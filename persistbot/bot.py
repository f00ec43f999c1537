"""
PersistBot - Main Bot Class
===========================

Discord client that restores persisted roles and nicknames when a
member rejoins a guild.

DESIGN: Central orchestrator that:
- Builds the persist service once and shares it with every cog
- Keeps the bot inside allow-listed guilds only
- Manages bot lifecycle (startup, shutdown)

SERVICE INITIALIZATION ORDER:
1. __init__: config, database, member locks, persist service
2. setup_hook: event cogs, command cogs, command tree sync
3. on_ready: allow-list seeding and enforcement, health server
"""

from datetime import datetime

import discord
from discord.ext import commands

from persistbot.core.config import get_config
from persistbot.core.database import get_db
from persistbot.core.logger import logger
from persistbot.services.audit import AuditLog
from persistbot.services.persist import (
    DiscordProfileEditor,
    PersistedStateStore,
    PersistService,
)
from persistbot.utils.async_utils import safe_async_operation
from persistbot.utils.locks import KeyedLockManager


class PersistBot(commands.Bot):
    """Main Discord bot class."""

    # =========================================================================
    # Initialization
    # =========================================================================

    def __init__(self) -> None:
        self.config = get_config()

        intents = discord.Intents.default()
        intents.members = True

        super().__init__(
            command_prefix="!",
            intents=intents,
            help_command=None,
        )

        self.db = get_db()
        self.start_time: datetime = datetime.now()

        self.locks = KeyedLockManager(
            warn_after=self.config.lock_warn_seconds,
            timeout=self.config.lock_timeout_seconds or None,
        )
        self.persist_service = PersistService(
            store=PersistedStateStore(self.db),
            editor=DiscordProfileEditor(self),
            audit=AuditLog(self.db),
            locks=self.locks,
        )

        self.health_server = None
        self._ready_initialized: bool = False

        logger.info("Bot Instance Created")

    # =========================================================================
    # Setup Hook
    # =========================================================================

    async def setup_hook(self) -> None:
        """Load cogs and sync commands before on_ready."""
        from persistbot.handlers import EVENT_COGS
        for cog in EVENT_COGS:
            try:
                await self.load_extension(cog)
                logger.debug(f"Event Cog Loaded: {cog.split('.')[-1]}")
            except commands.ExtensionError as e:
                logger.error("Failed to Load Event Cog", [("Cog", cog), ("Error", str(e))])

        from persistbot.commands import COMMAND_COGS
        for cog in COMMAND_COGS:
            try:
                await self.load_extension(cog)
                logger.info(f"Cog Loaded: {cog.split('.')[-1]}")
            except commands.ExtensionError as e:
                logger.error("Failed to Load Cog", [("Cog", cog), ("Error", str(e))])

        try:
            synced = await self.tree.sync()
            logger.tree("Commands Synced", [("Count", str(len(synced)))], emoji="✅")
        except discord.HTTPException as e:
            logger.error("Command Sync Failed", [("Error", str(e))])

    # =========================================================================
    # On Ready
    # =========================================================================

    async def on_ready(self) -> None:
        """Enforce the allow-list and start the health server."""
        if self._ready_initialized:
            logger.info("Bot Reconnected (skipping re-initialization)")
            return

        self._ready_initialized = True

        if not self.user:
            return

        logger.tree("BOT ONLINE", [
            ("Name", self.user.name),
            ("ID", str(self.user.id)),
            ("Guilds", str(len(self.guilds))),
        ], emoji="🚀")

        if self.config.error_webhook_url:
            logger.set_webhook(self.config.error_webhook_url, self.config.developer_id)

        seeded = self.db.seed_allowed_guilds(self.config.allowed_guild_ids)
        await self._enforce_allowed_guilds()

        if self.config.health_check_port:
            from persistbot.core.health import HealthCheckServer
            self.health_server = HealthCheckServer(self, port=self.config.health_check_port)
            await self.health_server.start()

        logger.tree("PERSISTBOT READY", [
            ("Guilds", str(len(self.guilds))),
            ("Allowed Guilds", str(len(self.db.get_allowed_guilds()))),
            ("Seeded", str(seeded)),
            ("Stored Records", str(self.db.count_persisted_data())),
            ("Health Server", "Running" if self.health_server else "Disabled"),
        ], emoji="📌")

    # =========================================================================
    # Allowed Guilds
    # =========================================================================

    async def _enforce_allowed_guilds(self) -> None:
        """Refresh info for allowed guilds and leave every other guild."""
        for guild in list(self.guilds):
            if self.db.is_guild_allowed(guild.id):
                self.db.update_allowed_guild_info(
                    guild.id,
                    guild.name,
                    guild.icon.key if guild.icon else None,
                    guild.owner_id,
                )
            else:
                await self._leave_guild(guild)

    async def _leave_guild(self, guild: discord.Guild) -> None:
        logger.warning("Leaving Non-Allowed Guild", [
            ("Guild", f"{guild.name} ({guild.id})"),
            ("Owner", str(guild.owner_id)),
        ])
        await safe_async_operation(f"Leave Guild {guild.id}", guild.leave(), log_level="error")

    async def on_guild_join(self, guild: discord.Guild) -> None:
        """Leave immediately unless the guild is allow-listed."""
        if not self.db.is_guild_allowed(guild.id):
            await self._leave_guild(guild)
            return

        self.db.update_allowed_guild_info(
            guild.id,
            guild.name,
            guild.icon.key if guild.icon else None,
            guild.owner_id,
        )
        logger.tree("Joined Allowed Guild", [
            ("Guild", f"{guild.name} ({guild.id})"),
            ("Members", str(guild.member_count)),
        ], emoji="📥")

    # =========================================================================
    # Shutdown
    # =========================================================================

    async def shutdown(self) -> None:
        """Graceful shutdown with proper cleanup."""
        if self.is_closed():
            return

        logger.info("Initiating Graceful Shutdown")

        if self.health_server:
            await self.health_server.stop()

        await super().close()
        self.db.close()

        logger.tree("SHUTDOWN COMPLETE", [
            ("Uptime", str(datetime.now() - self.start_time)),
        ], emoji="🛑")

    async def close(self) -> None:
        """Override close to ensure proper shutdown."""
        await self.shutdown()


__all__ = ["PersistBot"]
