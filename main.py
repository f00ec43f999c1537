#!/usr/bin/env python3
"""
PersistBot - Entry Point
========================

Restores persisted roles and nicknames when members rejoin a guild.

Startup:
1. Loads .env into the environment
2. Validates configuration and logs a summary
3. Connects to Discord and runs until interrupted
"""

import asyncio
import sys

from dotenv import load_dotenv

load_dotenv()

from persistbot.bot import PersistBot  # noqa: E402
from persistbot.core.config import ConfigValidationError, get_config, validate_and_log_config  # noqa: E402
from persistbot.core.logger import logger  # noqa: E402
from persistbot.utils.error_handler import ErrorHandler  # noqa: E402


async def main() -> None:
    """
    Run the bot until it disconnects.

    Raises:
        SystemExit: If configuration is invalid or the bot fails to start.
    """
    try:
        validate_and_log_config()
    except ConfigValidationError as e:
        logger.error("Invalid Configuration", [("Error", str(e))])
        sys.exit(1)

    logger.tree("PERSISTBOT STARTING", [
        ("Commands", "/persist"),
        ("Events", "member join, member remove"),
    ], emoji="📌")

    bot = PersistBot()
    try:
        async with bot:
            await bot.start(get_config().discord_token)
    except Exception as e:
        ErrorHandler.handle(e, location="main.main", critical=True)
        sys.exit(1)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user (Ctrl+C)")
