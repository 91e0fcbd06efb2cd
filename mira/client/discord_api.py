"""
mira.client.discord_api — Guild lookups
========================================
"""

from __future__ import annotations

from collections.abc import Iterable

from mira.client.http import ApiClient
from mira.client.types import GuildTextChannel
from mira.constants import channel_sort_key


class Discord:
    """Client for ``/discord``."""

    def __init__(self, api: ApiClient) -> None:
        self.api = api

    async def get_guild_text_channels(
        self, guild_id: str | int, token: str | None = None
    ) -> list[GuildTextChannel]:
        rows = await self.api.get_json(
            f"/discord/guilds/{guild_id}/text-channels", token=token
        )
        return [GuildTextChannel.from_json(r) for r in rows]

    @staticmethod
    def sort_channels_by_name_asc(
        channels: Iterable[GuildTextChannel],
    ) -> list[GuildTextChannel]:
        """Return *channels* ordered ascending by name (case-insensitive)."""
        return sorted(channels, key=channel_sort_key)
