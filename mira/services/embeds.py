"""
mira.services.embeds — Discord embed builders
==============================================

Embed construction lives here so cogs only supply data.
"""

from __future__ import annotations

import discord

from mira.database.models import Report


def build_report_embed(report: Report, *, dashboard_url: str | None = None) -> discord.Embed:
    """Moderator notice for a freshly filed report.

    Anonymous reports never show who filed them.
    """
    reported = report.reported_guild_member
    embed = discord.Embed(
        title=f"\U0001f6a9 Report #{report.id}",
        description=report.description,
        color=discord.Color.red(),
    )
    embed.add_field(
        name="Reported member",
        value=f"<@{reported.user_id}> ({reported.display_name})",
        inline=True,
    )
    if report.anonymous:
        reporter_value = "*Anonymous*"
    else:
        reporter = report.guild_member
        reporter_value = f"<@{reporter.user_id}> ({reporter.display_name})"
    embed.add_field(name="Reported by", value=reporter_value, inline=True)
    embed.add_field(name="Channel", value=f"<#{report.channel_id}>", inline=True)
    if dashboard_url:
        embed.url = f"{dashboard_url.rstrip('/')}/reports/{report.id}"
    embed.set_footer(text="Resolve this report from the dashboard.")
    return embed
