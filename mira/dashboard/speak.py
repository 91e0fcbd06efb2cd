"""
mira.dashboard.speak — "Let the bot send a message" flow
=========================================================
"""

from __future__ import annotations

import logging

from mira.client.discord_api import Discord
from mira.client.mira_api import Mira
from mira.client.types import GuildTextChannel
from mira.dashboard.ui import SPEAK_SENT, SUBMIT_ERROR, DashboardUi

logger = logging.getLogger(__name__)


class SpeakForm:
    """Channel picker + message box for one guild."""

    def __init__(
        self,
        discord_api: Discord,
        mira_api: Mira,
        ui: DashboardUi,
        token: str,
    ) -> None:
        self.discord_api = discord_api
        self.mira_api = mira_api
        self.ui = ui
        self.token = token

        self.channels: list[GuildTextChannel] = []
        self.channel_id = ""
        self.message = ""
        self.is_loading_channels = False
        self.is_submitting = False
        self.error: Exception | None = None

    async def load(self, guild_id: str | int) -> bool:
        """Fetch the guild's text channels, sorted ascending by name.

        Preselects the first channel when none is chosen yet.
        """
        self.is_loading_channels = True
        try:
            channels = await self.discord_api.get_guild_text_channels(
                guild_id, token=self.token
            )
        except Exception as exc:
            logger.exception("Failed to load text channels for guild %s", guild_id)
            self.error = exc
            return False
        finally:
            self.is_loading_channels = False

        self.error = None
        self.channels = Discord.sort_channels_by_name_asc(channels)
        known = {ch.id for ch in self.channels}
        if self.channel_id not in known:
            self.channel_id = self.channels[0].id if self.channels else ""
        return True

    async def submit(self) -> bool:
        """Send ``{channelId, message}``; alerts with the outcome."""
        if self.is_submitting:
            return False

        data = {"channelId": self.channel_id, "message": self.message}
        self.is_submitting = True
        try:
            ok = await self.mira_api.speak(self.token, data)
        except Exception:
            logger.exception("Speak request to channel %s failed", self.channel_id)
            ok = False
        finally:
            self.is_submitting = False

        self.ui.alert(SPEAK_SENT if ok else SUBMIT_ERROR)
        return ok
