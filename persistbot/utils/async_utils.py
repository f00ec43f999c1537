"""
PersistBot - Async Utilities
============================

Usage:
    from persistbot.utils.async_utils import safe_async_operation

    await safe_async_operation("Leave Guild", guild.leave(), log_level="error")
"""

from typing import Any, Awaitable

from persistbot.core.logger import logger


async def safe_async_operation(
    name: str,
    awaitable: Awaitable[Any],
    default: Any = None,
    log_level: str = "warning",
) -> Any:
    """
    Await side work whose failure is logged and must not abort the caller.

    Never use this around store writes or profile edits; those errors
    have to reach the persist handlers.

    Args:
        name: Operation label for the log entry.
        awaitable: The work to await.
        default: Returned when the work raises.
        log_level: "debug", "warning" or "error".
    """
    try:
        return await awaitable
    except Exception as e:
        log = {"debug": logger.debug, "error": logger.error}.get(log_level, logger.warning)
        log("Async Operation Failed", [
            ("Operation", name),
            ("Error Type", type(e).__name__),
            ("Error", str(e)[:100]),
        ])
        return default


__all__ = ["safe_async_operation"]
