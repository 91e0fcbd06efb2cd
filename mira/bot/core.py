"""
mira.bot.core — Bot Instance & Cog Loader
==========================================

:class:`MiraBot` carries the config (``bot.cfg``) and DB engine
(``bot.engine``) for its cogs.  On connect it:

1. snapshots the primary guild's channels for the dashboard,
2. syncs the global command tree (copied into ``DEV_GUILD_ID`` when set,
   so changes show up instantly while developing),
3. registers the guild's command lists as slash commands.
"""

from __future__ import annotations

import logging
import os

import discord
from discord.ext import commands
from sqlalchemy import Engine

from mira.config import MiraConfig
from mira.database.engine import run_db
from mira.services.channel_service import sync_channels_from_snapshot
from mira.services.setup_service import ChannelInfo, GuildSnapshot, save_guild_snapshot

logger = logging.getLogger(__name__)

EXTENSIONS: list[str] = [
    "mira.bot.cogs.command_lists",
    "mira.bot.cogs.reports",
    "mira.bot.cogs.tasks",
]

# Channel kinds the dashboard knows about; threads and the rest are skipped.
CHANNEL_KINDS: dict[discord.ChannelType, str] = {
    discord.ChannelType.text: "text",
    discord.ChannelType.news: "text",
    discord.ChannelType.voice: "voice",
    discord.ChannelType.stage_voice: "stage",
    discord.ChannelType.forum: "forum",
    discord.ChannelType.category: "category",
}


def channel_info(channel: discord.abc.GuildChannel) -> ChannelInfo | None:
    """Flatten a guild channel, or ``None`` for kinds the dashboard ignores."""
    kind = CHANNEL_KINDS.get(channel.type)
    if kind is None:
        return None
    category = getattr(channel, "category", None)
    return ChannelInfo(
        id=channel.id,
        name=channel.name,
        type=kind,
        category_id=category.id if category else None,
        category_name=category.name if category else None,
        position=channel.position,
    )


class MiraBot(commands.Bot):

    def __init__(self, cfg: MiraConfig, engine: Engine) -> None:
        intents = discord.Intents.default()
        intents.members = True  # privileged; /report resolves members

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            description=f"{cfg.bot_name}, the community helper",
        )
        self.cfg = cfg
        self.engine = engine

        raw_dev_guild = os.getenv("DEV_GUILD_ID", "").strip()
        self.dev_guild_id: int | None = int(raw_dev_guild) if raw_dev_guild else None

    async def setup_hook(self) -> None:
        # A broken cog is logged and skipped.
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
            except Exception:
                logger.exception("Could not load extension %s", ext)
            else:
                logger.info("Loaded extension %s", ext)

    async def on_ready(self) -> None:
        if self.user is None:
            logger.error("on_ready fired without a logged-in user; skipping startup sync")
            return
        logger.info("Connected as %s (%s)", self.user, self.user.id)

        await self.snapshot_channels()

        if self.dev_guild_id:
            dev_guild = discord.Object(id=self.dev_guild_id)
            self.tree.copy_global_to(guild=dev_guild)
            synced = await self.tree.sync(guild=dev_guild)
            logger.info("Synced %d commands to dev guild %d", len(synced), self.dev_guild_id)
        else:
            synced = await self.tree.sync()
            logger.info("Synced %d global commands", len(synced))

        command_lists = self.get_cog("CommandLists")
        if command_lists is not None:
            await command_lists.refresh(force=True)

    async def snapshot_channels(self) -> None:
        """Publish the primary guild's channels to ``settings`` and ``channels``."""
        guild = self.get_guild(self.cfg.guild_id)
        if guild is None:
            logger.warning("Not a member of guild %d; channel snapshot skipped", self.cfg.guild_id)
            return

        infos = [info for info in map(channel_info, guild.channels) if info is not None]
        await run_db(
            save_guild_snapshot,
            self.engine,
            GuildSnapshot(guild_id=guild.id, guild_name=guild.name, channels=infos),
        )
        await run_db(
            sync_channels_from_snapshot,
            self.engine,
            guild.id,
            [info.to_dict() for info in infos],
        )

    def _is_primary(self, channel: discord.abc.GuildChannel) -> bool:
        return channel.guild.id == self.cfg.guild_id

    async def on_guild_channel_create(self, channel: discord.abc.GuildChannel) -> None:
        if self._is_primary(channel):
            await self.snapshot_channels()

    async def on_guild_channel_delete(self, channel: discord.abc.GuildChannel) -> None:
        if self._is_primary(channel):
            await self.snapshot_channels()

    async def on_guild_channel_update(
        self, before: discord.abc.GuildChannel, after: discord.abc.GuildChannel
    ) -> None:
        if self._is_primary(after) and (before.name, before.type) != (after.name, after.type):
            await self.snapshot_channels()
