"""
mira.bot.cogs.tasks — Periodic Background Tasks
================================================

Scheduled jobs on ``discord.ext.tasks`` loops:

- **Heartbeat**: every 30 seconds, so the dashboard can tell the bot is up.
- **Command list refresh**: every 60 seconds, re-registers the guild's
  slash commands when command lists were added, renamed or deleted.

Both loops survive failures: errors are logged and the next tick runs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from discord.ext import commands, tasks

from mira.database.engine import run_db
from mira.services.setup_service import save_bot_heartbeat

if TYPE_CHECKING:
    from mira.bot.core import MiraBot

logger = logging.getLogger(__name__)


class PeriodicTasks(commands.Cog):
    """Cog for scheduled background tasks."""

    def __init__(self, bot: MiraBot) -> None:
        self.bot = bot

    async def cog_load(self) -> None:
        self.heartbeat_loop.start()
        self.command_refresh_loop.start()

    async def cog_unload(self) -> None:
        self.heartbeat_loop.cancel()
        self.command_refresh_loop.cancel()

    @tasks.loop(seconds=30)
    async def heartbeat_loop(self):
        try:
            await run_db(save_bot_heartbeat, self.bot.engine)
        except Exception:
            logger.exception("Heartbeat write failed", extra={"task": "heartbeat"})

    @heartbeat_loop.before_loop
    async def _wait_heartbeat(self):
        await self.bot.wait_until_ready()

    @tasks.loop(seconds=60)
    async def command_refresh_loop(self):
        cog = self.bot.get_cog("CommandLists")
        if cog is None:
            return
        try:
            await cog.refresh()
        except Exception:
            logger.exception("Command list refresh failed", extra={"task": "command_refresh"})

    @command_refresh_loop.before_loop
    async def _wait_command_refresh(self):
        await self.bot.wait_until_ready()


async def setup(bot: MiraBot) -> None:
    await bot.add_cog(PeriodicTasks(bot))
