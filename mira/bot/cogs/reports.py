"""
mira.bot.cogs.reports — /report
================================

Members report another member with a short description, optionally
anonymously.  The report is stored for the dashboard and, when
``report_channel_id`` is configured, announced to the moderators.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from mira.constants import REPORT_DESCRIPTION_MAX
from mira.database.engine import run_db
from mira.database.models import Report
from mira.services.embeds import build_report_embed
from mira.services.report_service import SelfReportError, file_report

if TYPE_CHECKING:
    from mira.bot.core import MiraBot

logger = logging.getLogger(__name__)


class Reports(commands.Cog, name="Reports"):
    """Member reporting."""

    def __init__(self, bot: MiraBot) -> None:
        self.bot = bot

    @app_commands.command(name="report", description="Report a member to the moderators.")
    @app_commands.describe(
        member="The member you want to report",
        description="What happened?",
        anonymous="Hide your name from the moderators",
    )
    @app_commands.guild_only()
    async def report(
        self,
        interaction: discord.Interaction,
        member: discord.Member,
        description: app_commands.Range[str, 1, REPORT_DESCRIPTION_MAX],
        anonymous: bool = False,
    ) -> None:
        if member.bot:
            await interaction.response.send_message(
                "❌ Bots can't be reported.", ephemeral=True,
            )
            return

        try:
            report = await run_db(
                file_report,
                self.bot.engine,
                guild_id=interaction.guild_id or 0,
                channel_id=interaction.channel_id or 0,
                reporter_id=interaction.user.id,
                reporter_name=interaction.user.display_name,
                reported_id=member.id,
                reported_name=member.display_name,
                description=description,
                anonymous=anonymous,
            )
        except SelfReportError:
            await interaction.response.send_message(
                "❌ You can't report yourself.", ephemeral=True,
            )
            return

        await interaction.response.send_message(
            f"✅ Thanks, your report about **{member.display_name}** was sent to the moderators.",
            ephemeral=True,
        )
        await self._notify_moderators(report)

    async def _notify_moderators(self, report: Report) -> None:
        channel_id = self.bot.cfg.report_channel_id
        if not channel_id:
            return
        channel = self.bot.get_channel(channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            logger.warning("Report channel %d not found or not messageable", channel_id)
            return
        embed = build_report_embed(report, dashboard_url=os.getenv("FRONTEND_URL"))
        try:
            await channel.send(embed=embed)
        except discord.HTTPException:
            logger.exception("Failed to post report %d to channel %d", report.id, channel_id)


async def setup(bot: MiraBot) -> None:
    await bot.add_cog(Reports(bot))
