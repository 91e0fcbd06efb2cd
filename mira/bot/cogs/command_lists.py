"""
mira.bot.cogs.command_lists — Random-reply slash commands
==========================================================

Every row in ``command_lists`` becomes a guild slash command ``/<name>``
that replies with one of its options, picked uniformly at random.

Options are read from the database on every invocation, so edits made in
the dashboard apply immediately.  Adding, renaming or deleting a list
changes the command tree itself; :meth:`CommandLists.refresh` (called by
the periodic task in :mod:`mira.bot.cogs.tasks`) re-syncs the guild when
that happens.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from mira.constants import is_valid_command_name
from mira.database.engine import run_db
from mira.database.models import CommandList
from mira.services.admin_service import get_command_list, list_command_lists

if TYPE_CHECKING:
    from mira.bot.core import MiraBot

logger = logging.getLogger(__name__)

# Discord caps guild slash commands at 100.
MAX_GUILD_COMMANDS = 100
EMPTY_REPLY = "This command doesn't have anything to say yet."


def pick_option(options: list[str] | None, rng: random.Random | None = None) -> str | None:
    """Pick one non-blank option uniformly at random, or ``None`` if there are none."""
    candidates = [o for o in (options or []) if o and o.strip()]
    if not candidates:
        return None
    return (rng or random).choice(candidates)


def fingerprint(rows: list[CommandList]) -> tuple[tuple[int, str, str], ...]:
    """What the registered command tree depends on: ids, names, descriptions."""
    return tuple(sorted((r.id, r.name, r.description) for r in rows))


def build_command(bot: MiraBot, row: CommandList) -> app_commands.Command:
    """Build the ``/<name>`` command for one command list."""
    command_list_id = row.id

    async def reply(interaction: discord.Interaction) -> None:
        current = await run_db(get_command_list, bot.engine, command_list_id)
        option = pick_option(current.options if current else None)
        if option is None:
            await interaction.response.send_message(EMPTY_REPLY, ephemeral=True)
            return
        await interaction.response.send_message(option)

    return app_commands.Command(
        name=row.name,
        description=row.description,
        callback=reply,
    )


class CommandLists(commands.Cog, name="CommandLists"):
    """Registers command lists as guild slash commands."""

    def __init__(self, bot: MiraBot) -> None:
        self.bot = bot
        self._fingerprint: tuple | None = None
        self._registered = 0
        self._refresh_lock = asyncio.Lock()

    def _reserved_names(self) -> set[str]:
        return {cmd.name for cmd in self.bot.tree.get_commands()}

    async def refresh(self, *, force: bool = False) -> int:
        """Re-register command lists if they changed.  Returns the number registered.

        Calls are serialised, so a tick that lands during the startup sync
        sees the fresh fingerprint and leaves the tree alone.
        """
        async with self._refresh_lock:
            return await self._refresh(force)

    async def _refresh(self, force: bool) -> int:
        guild_id = self.bot.cfg.guild_id
        rows = await run_db(list_command_lists, self.bot.engine, guild_id)
        current = fingerprint(rows)
        if not force and current == self._fingerprint:
            return self._registered

        guild = discord.Object(id=guild_id)
        tree = self.bot.tree
        tree.clear_commands(guild=guild)
        if self.bot.dev_guild_id == guild_id:
            tree.copy_global_to(guild=guild)

        reserved = self._reserved_names()
        registered = 0
        for row in rows:
            if not is_valid_command_name(row.name) or row.name in reserved:
                logger.warning("Skipping command list %d: unusable name /%s", row.id, row.name)
                continue
            if registered >= MAX_GUILD_COMMANDS:
                logger.warning(
                    "Guild %d has more than %d command lists; /%s not registered",
                    guild_id, MAX_GUILD_COMMANDS, row.name,
                )
                continue
            tree.add_command(build_command(self.bot, row), guild=guild)
            registered += 1

        await tree.sync(guild=guild)
        self._fingerprint = current
        self._registered = registered
        logger.info("Registered %d command lists in guild %d", registered, guild_id)
        return registered


async def setup(bot: MiraBot) -> None:
    await bot.add_cog(CommandLists(bot))
