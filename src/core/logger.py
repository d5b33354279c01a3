"""
Ticketeer - Logger Module
=========================

Tree-style console and file logging with New York timestamps.

DESIGN:
    Each event is one titled block with its details hanging underneath,
    so an opening or a closure reads as a unit when scanning the log:

        [05:13:20 PM EST] 🎫 Ticket Opened
          ├─ Ticket ID: 12
          ├─ Category: Billing
          └─ User: alice (111)

    Every line goes to stdout and to a per-day file. Errors and critical
    entries are duplicated into a separate errors file and, when a
    webhook is set, forwarded to Discord.

    LOG_DIR and LOG_RETENTION_DAYS may be overridden from the
    environment; DEBUG enables debug entries.
"""

import asyncio
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import aiohttp
from zoneinfo import ZoneInfo


# =============================================================================
# Constants
# =============================================================================

LOGS_DIR = Path(os.getenv("LOG_DIR", "logs"))
LOG_RETENTION_DAYS = int(os.getenv("LOG_RETENTION_DAYS", "7"))
NY_TZ = ZoneInfo("America/New_York")

WEBHOOK_TIMEOUT = 10
WEBHOOK_DESCRIPTION_MAX = 4000
ERROR_COLOR = 0xDC3545

Details = Optional[List[Tuple[str, str]]]


def _day_folder(directory: Path) -> Optional[datetime]:
    """Parse a YYYY-MM-DD folder name, None for anything else."""
    try:
        return datetime.strptime(directory.name, "%Y-%m-%d")
    except ValueError:
        return None


# =============================================================================
# Tree Logger
# =============================================================================

class TreeLogger:
    """
    Process-wide logger.

    Attributes:
        run_id: Short id of this process, printed in the session banner
            and in webhook footers.
        log_file: Today's log file.
        error_file: Today's errors-only file.
    """

    def __init__(self, name: str = "Ticketeer") -> None:
        self.name = name
        self.run_id = uuid.uuid4().hex[:8]
        self._webhook_url: Optional[str] = None
        self._webhook_session: Optional[aiohttp.ClientSession] = None

        day = datetime.now(NY_TZ).strftime("%Y-%m-%d")
        self.log_dir = LOGS_DIR / day
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = self.log_dir / f"{name}-{day}.log"
        self.error_file = self.log_dir / f"{name}-Errors-{day}.log"

        self._prune(LOG_RETENTION_DAYS)
        self._append(self.log_file, [
            "",
            "=" * 60,
            f"SESSION {self.run_id} STARTED {datetime.now(NY_TZ).strftime('%m/%d/%Y %I:%M:%S %p %Z')}",
            "=" * 60,
        ])

    # =========================================================================
    # Files
    # =========================================================================

    def _prune(self, keep_days: int) -> None:
        """Delete day folders older than keep_days."""
        if not LOGS_DIR.exists():
            return

        removed = 0
        now = datetime.now()
        for folder in LOGS_DIR.iterdir():
            day = _day_folder(folder) if folder.is_dir() else None
            if day is None or (now - day).days <= keep_days:
                continue
            for entry in folder.iterdir():
                entry.unlink()
            folder.rmdir()
            removed += 1

        if removed:
            print(f"[LOG CLEANUP] Removed {removed} old log directories")

    @staticmethod
    def _append(path: Path, lines: Iterable[str]) -> None:
        with open(path, "a", encoding="utf-8") as handle:
            for line in lines:
                handle.write(f"{line}\n")

    def _emit(self, title: str, emoji: str, details: Details = None, error: bool = False) -> None:
        """Print one entry and append it to today's file(s)."""
        stamp = datetime.now(NY_TZ).strftime("[%I:%M:%S %p %Z]")
        lines = [f"{stamp} {emoji} {title}" if emoji else f"{stamp} {title}"]
        for index, (key, value) in enumerate(details or []):
            branch = "└─" if index == len(details) - 1 else "├─"
            lines.append(f"  {branch} {key}: {value}")

        for line in lines:
            print(line)
        self._append(self.log_file, lines)
        if error:
            self._append(self.error_file, lines)

    # =========================================================================
    # Public API
    # =========================================================================

    def tree(self, title: str, items: List[Tuple[str, str]], emoji: str = "📦") -> None:
        """Log a titled block of (key, value) details, set off by blank lines in the file."""
        self._append(self.log_file, [""])
        self._emit(title, emoji, items)
        self._append(self.log_file, [""])

    def debug(self, msg: str, details: Details = None) -> None:
        if os.getenv("DEBUG"):
            self._emit(msg, "🔍", details)

    def info(self, msg: str, details: Details = None) -> None:
        self._emit(msg, "ℹ️", details)

    def success(self, msg: str, details: Details = None) -> None:
        self._emit(msg, "✅", details)

    def warning(self, msg: str, details: Details = None) -> None:
        self._emit(msg, "⚠️", details)

    def error(self, msg: str, details: Details = None) -> None:
        """
        Log an error.

        Errors with details are also forwarded to the webhook when one is
        set and an event loop is running (never during startup or tests
        without a loop).
        """
        self._emit(msg, "❌", details, error=True)
        if not details or not self._webhook_url:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        loop.create_task(self._post_webhook(msg, details))

    def critical(self, msg: str, details: Details = None) -> None:
        self._emit(msg, "🚨", details, error=True)

    # =========================================================================
    # Webhook
    # =========================================================================

    def set_webhook(self, url: Optional[str]) -> None:
        """Forward future errors to a Discord webhook (None disables)."""
        self._webhook_url = url

    async def close(self) -> None:
        """Close the webhook HTTP session."""
        if self._webhook_session and not self._webhook_session.closed:
            await self._webhook_session.close()
        self._webhook_session = None

    async def _post_webhook(self, title: str, details: List[Tuple[str, str]]) -> None:
        if self._webhook_session is None or self._webhook_session.closed:
            self._webhook_session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=WEBHOOK_TIMEOUT),
            )

        body = "\n".join(f"**{key}:** {value}" for key, value in details)
        payload = {
            "username": self.name,
            "embeds": [{
                "title": f"❌ {title}",
                "description": body[:WEBHOOK_DESCRIPTION_MAX],
                "color": ERROR_COLOR,
                "timestamp": datetime.now(NY_TZ).isoformat(),
                "footer": {"text": f"Run ID: {self.run_id}"},
            }],
        }

        # Printed, not logged: a failing webhook must not feed back into error()
        try:
            async with self._webhook_session.post(self._webhook_url, json=payload) as response:
                if response.status not in (200, 204):
                    print(f"Webhook error: {response.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            print(f"Failed to send webhook: {e}")


# =============================================================================
# Global Instance
# =============================================================================

logger = TreeLogger()


__all__ = [
    "logger",
    "TreeLogger",
    "NY_TZ",
]
