"""
PersistBot - Health Check Server
================================

Liveness endpoint for uptime monitors.

DESIGN:
    /health returns JSON with connection state, guild count, the number
    of member locks currently registered and the number of stored
    records. No member data is exposed.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from aiohttp import web

from persistbot.core.logger import NY_TZ, logger

if TYPE_CHECKING:
    from persistbot.bot import PersistBot


class HealthCheckServer:
    """
    Small aiohttp server running inside the bot's event loop.

    Attributes:
        bot: Bot instance queried for status.
        port: Port the server binds to on 0.0.0.0.
    """

    def __init__(self, bot: "PersistBot", port: int = 8080) -> None:
        self.bot = bot
        self.port = port
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None

        self.app.router.add_get("/health", self.health_handler)
        self.app.router.add_get("/", self.health_handler)

    # =========================================================================
    # Request Handlers
    # =========================================================================

    def build_status(self) -> dict:
        """Status payload served by /health."""
        is_connected = self.bot.is_ready()
        return {
            "status": "healthy" if is_connected else "starting",
            "bot": "PersistBot",
            "connected": is_connected,
            "guilds": len(self.bot.guilds),
            "active_locks": len(self.bot.locks),
            "persisted_records": self.bot.db.count_persisted_data(),
            "timestamp": datetime.now(NY_TZ).isoformat(),
        }

    async def health_handler(self, request: web.Request) -> web.Response:
        try:
            status = self.build_status()
        except Exception as e:
            logger.error("Health Check Error", [
                ("Error", str(e)[:100]),
            ])
            return web.json_response({"status": "error", "error": str(e)}, status=500)

        logger.debug("Health Probe", [("Status", status["status"])])
        return web.json_response(status)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Start serving. Bind failures are logged, not raised."""
        try:
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()
            site = web.TCPSite(self.runner, "0.0.0.0", self.port)
            await site.start()
        except OSError as e:
            logger.error("Health Server Could Not Bind", [
                ("Port", str(self.port)),
                ("Error", str(e)[:100]),
            ])
            return

        logger.tree("Health Server Started", [
            ("Port", str(self.port)),
            ("Endpoint", f"http://0.0.0.0:{self.port}/health"),
        ], emoji="🏥")

    async def stop(self) -> None:
        """Stop serving. Safe to call if start() never ran."""
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
            logger.info("Health Server Stopped")


__all__ = ["HealthCheckServer"]
