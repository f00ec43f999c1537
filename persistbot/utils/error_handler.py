"""
PersistBot - Error Handler
==========================

Error categorization, recovery hints and critical error capture.

Features:
- Error categorization (Discord, Database, Lock, Persist)
- Recovery suggestions per category
- Member context capture for restore failures
- Critical error file logging
"""

import json
import sqlite3
import sys
import traceback
from datetime import datetime
from typing import Any, Dict

import discord

from persistbot.core.errors import (
    LockAcquisitionStarvation,
    PersistError,
    ProfileEditRejected,
    TransientStoreError,
)
from persistbot.core.logger import LOGS_DIR, logger


ERRORS_DIR = LOGS_DIR / "errors"


class ErrorContext:
    """Captures and formats detailed error context."""

    @staticmethod
    def get_full_context(e: BaseException, location: str, **kwargs) -> Dict[str, Any]:
        """
        Get comprehensive error context.

        Args:
            e: The exception.
            location: Where the error occurred.
            **kwargs: Additional context (member, guild_id, ...).

        Returns:
            Dictionary with full error context.
        """
        context = {
            "timestamp": datetime.now().isoformat(),
            "location": location,
            "error_type": type(e).__name__,
            "error_message": str(e),
            "traceback": "".join(traceback.format_exception(type(e), e, e.__traceback__)),
            "python_version": sys.version,
            "additional_context": {k: v for k, v in kwargs.items() if k != "member"},
        }

        member = kwargs.get("member")
        if isinstance(member, discord.Member):
            context["member_context"] = {
                "name": str(member),
                "id": member.id,
                "guild_id": member.guild.id,
                "roles": [role.id for role in member.roles if not role.is_default()],
                "nick": member.nick,
            }

        return context


class ErrorHandler:
    """Error handling with context and recovery hints."""

    ERROR_CATEGORIES = (
        ("lock", (LockAcquisitionStarvation,)),
        ("database", (TransientStoreError, sqlite3.Error)),
        ("discord", (ProfileEditRejected, discord.Forbidden, discord.NotFound, discord.HTTPException)),
        ("persist", (PersistError,)),
        ("api", (ConnectionError, TimeoutError, OSError)),
    )

    SUGGESTIONS = {
        "lock": "A previous restore for this member is stuck - check for hung Discord calls",
        "database": "Database unavailable - stored record left unchanged, next rejoin retries",
        "discord": "Check bot permissions and role hierarchy - stored record kept for retry",
        "persist": "Persist core error - check logs for details",
        "api": "Network issue - check connectivity",
    }

    @classmethod
    def categorize_error(cls, e: BaseException) -> str:
        """Return the category name for an exception."""
        for category, error_types in cls.ERROR_CATEGORIES:
            if isinstance(e, error_types):
                return category
        return "general"

    @classmethod
    def get_recovery_suggestion(cls, category: str) -> str:
        """Return a recovery hint for a category."""
        return cls.SUGGESTIONS.get(category, "Unexpected error - check logs for details")

    @classmethod
    def handle(cls, e: BaseException, location: str, critical: bool = False, **context) -> Dict[str, Any]:
        """
        Log an error with full context.

        Args:
            e: The exception.
            location: Where the error occurred.
            critical: Whether this error should be stored for analysis.
            **context: Additional context.

        Returns:
            The captured context.
        """
        category = cls.categorize_error(e)
        suggestion = cls.get_recovery_suggestion(category)
        full_context = ErrorContext.get_full_context(e, location, **context)

        details = [
            ("Location", location),
            ("Category", category),
            ("Error Type", full_context["error_type"]),
            ("Error", full_context["error_message"][:200]),
            ("Recovery", suggestion),
        ]

        if critical or category == "lock":
            logger.error("💥 CRITICAL ERROR", details)
            logger.info(f"Traceback:\n{full_context['traceback']}")
            cls._store_critical_error(full_context)
        else:
            logger.warning("Handler Error", details)

        return full_context

    @staticmethod
    def _store_critical_error(context: Dict[str, Any]) -> None:
        """Write a critical error's context to logs/errors/ as JSON."""
        try:
            ERRORS_DIR.mkdir(exist_ok=True, parents=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
            error_file = ERRORS_DIR / f"error_{timestamp}.json"
            with open(error_file, "w", encoding="utf-8") as f:
                json.dump(context, f, indent=2, default=str)
            logger.info(f"Critical error saved to {error_file}")
        except OSError as save_error:
            logger.warning(f"Failed to save error details: {save_error}")


__all__ = ["ErrorContext", "ErrorHandler"]
