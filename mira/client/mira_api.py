"""
mira.client.mira_api — Bot actions
===================================
"""

from __future__ import annotations

from mira.client.http import ApiClient


class Mira:
    """Client for ``/mira``."""

    def __init__(self, api: ApiClient) -> None:
        self.api = api

    async def speak(self, token: str, data: dict) -> bool:
        """Ask the bot to post ``data["message"]`` in ``data["channelId"]``."""
        return await self.api.succeeded("POST", "/mira/speak", token=token, json=data)
