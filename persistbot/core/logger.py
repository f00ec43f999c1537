"""
PersistBot - Logger Module
==========================

Tree-style console and file logging with Eastern-time timestamps.

DESIGN:
    Persist and restore events carry several fields each (member, guild,
    roles, nickname), so they are logged as one heading with a tree of
    key/value lines beneath it:

        [02:30:45 PM EST] ♻️ Member Restored
          ├─ User: someone (1234)
          ├─ Guild: Example
          └─ Restored: roles, nickname

    Files live in LOG_DIR/YYYY-MM-DD/, one general log and one error-only
    log per day. Folders older than LOG_RETENTION_DAYS are removed at
    startup. Errors with details are also posted to a Discord webhook
    when one is set.
"""

import asyncio
import os
import shutil
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional, Tuple

import aiohttp
from zoneinfo import ZoneInfo


LOGS_DIR = Path(os.getenv("LOG_DIR", "logs"))
LOG_RETENTION_DAYS = 7
NY_TZ = ZoneInfo("America/New_York")

Details = Optional[List[Tuple[str, str]]]


class TreeLogger:
    """
    Session logger.

    Attributes:
        run_id: Short id written in the session header and webhook footer.
        log_file: Daily log for everything.
        error_file: Daily log for errors only.
    """

    def __init__(self, logs_dir: Path = LOGS_DIR) -> None:
        self.run_id = uuid.uuid4().hex[:8]
        self._root = logs_dir
        self._webhook_url: Optional[str] = None
        self._ping_user_id: Optional[int] = None

        today = datetime.now(NY_TZ).strftime("%Y-%m-%d")
        day_dir = logs_dir / today
        day_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = day_dir / f"PersistBot-{today}.log"
        self.error_file = day_dir / f"PersistBot-Errors-{today}.log"

        self._prune_old_days()
        self._append(self.log_file, f"\n{'=' * 60}\nSESSION {self.run_id} {self._stamp()}\n{'=' * 60}\n")

    def set_webhook(self, url: Optional[str], ping_user_id: Optional[int] = None) -> None:
        """Post future errors to this Discord webhook (None disables), pinging ping_user_id."""
        self._webhook_url = url
        self._ping_user_id = ping_user_id

    # =========================================================================
    # Files
    # =========================================================================

    def _prune_old_days(self) -> None:
        cutoff = datetime.now() - timedelta(days=LOG_RETENTION_DAYS)
        for folder in self._root.iterdir():
            if not folder.is_dir():
                continue
            try:
                day = datetime.strptime(folder.name, "%Y-%m-%d")
            except ValueError:
                continue
            if day < cutoff:
                shutil.rmtree(folder, ignore_errors=True)

    @staticmethod
    def _append(path: Path, text: str) -> None:
        with open(path, "a", encoding="utf-8") as f:
            f.write(text)

    @staticmethod
    def _stamp() -> str:
        return datetime.now(NY_TZ).strftime("[%I:%M:%S %p %Z]")

    def _emit(self, line: str, to_errors: bool = False) -> None:
        print(line)
        self._append(self.log_file, line + "\n")
        if to_errors:
            self._append(self.error_file, line + "\n")

    def _line(self, msg: str, emoji: str, to_errors: bool = False) -> None:
        self._emit(f"{self._stamp()} {emoji} {msg}", to_errors)

    def _branches(self, items: List[Tuple[str, str]], to_errors: bool = False) -> None:
        last = len(items) - 1
        for i, (key, value) in enumerate(items):
            self._emit(f"  {'└─' if i == last else '├─'} {key}: {value}", to_errors)

    # =========================================================================
    # Public API
    # =========================================================================

    def tree(self, title: str, items: List[Tuple[str, str]], emoji: str = "📦") -> None:
        """Log a heading with key/value lines beneath it."""
        self._line(title, emoji)
        self._branches(items)

    def debug(self, msg: str, details: Details = None) -> None:
        """Only written when the DEBUG env var is set."""
        if not os.getenv("DEBUG"):
            return
        self._line(msg, "🔍")
        if details:
            self._branches(details)

    def info(self, msg: str) -> None:
        self._line(msg, "ℹ️")

    def warning(self, msg: str, details: Details = None) -> None:
        self._line(msg, "⚠️")
        if details:
            self._branches(details)

    def error(self, msg: str, details: Details = None) -> None:
        """
        Log an error to both files.

        With details and a webhook set, the error is also posted to
        Discord from the running event loop; outside a loop it is only
        written locally.
        """
        self._line(msg, "❌", to_errors=True)
        if not details:
            return
        self._branches(details, to_errors=True)

        if self._webhook_url:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                return
            loop.create_task(self._post_webhook(msg, details))

    def critical(self, msg: str, details: Details = None) -> None:
        self._line(msg, "🚨", to_errors=True)
        if details:
            self._branches(details, to_errors=True)

    # =========================================================================
    # Webhook
    # =========================================================================

    async def _post_webhook(self, title: str, details: List[Tuple[str, str]]) -> None:
        embed = {
            "title": f"❌ {title}",
            "description": "\n".join(f"**{k}:** {v}" for k, v in details),
            "color": 0xFF0000,
            "timestamp": datetime.now(NY_TZ).isoformat(),
            "footer": {"text": f"PersistBot • Run {self.run_id}"},
        }
        payload = {"embeds": [embed]}
        if self._ping_user_id:
            payload["content"] = f"<@{self._ping_user_id}>"
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self._webhook_url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=10),
                ) as resp:
                    if resp.status >= 400:
                        print(f"Error webhook rejected: HTTP {resp.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            print(f"Error webhook failed: {e}")


logger = TreeLogger()


__all__ = [
    "logger",
    "TreeLogger",
    "LOGS_DIR",
    "NY_TZ",
]
