"""
mira.services.speak_service — Bot Messages via the Discord REST API
====================================================================

The dashboard API runs in a separate process from the bot, so "let the
bot speak" posts straight to Discord's REST API with the bot token
instead of going through the gateway connection.
"""

from __future__ import annotations

import logging
import os

import httpx

logger = logging.getLogger(__name__)

DISCORD_API = "https://discord.com/api/v10"


class SpeakError(RuntimeError):
    """Discord refused or failed to deliver the message."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _bot_token() -> str:
    token = os.getenv("DISCORD_TOKEN", "").strip()
    if not token:
        raise SpeakError("DISCORD_TOKEN is not set; the API cannot send messages.")
    return token


async def send_channel_message(
    channel_id: int,
    message: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Post *message* to *channel_id* as the bot.  Returns the message id.

    Mentions are suppressed so dashboard text can't ping @everyone or roles.
    Raises :class:`SpeakError` on any failure.
    """
    headers = {"Authorization": f"Bot {_bot_token()}"}
    payload = {"content": message, "allowed_mentions": {"parse": []}}

    transport = transport or httpx.AsyncHTTPTransport(retries=1)
    try:
        async with httpx.AsyncClient(timeout=10, transport=transport) as client:
            resp = await client.post(
                f"{DISCORD_API}/channels/{channel_id}/messages",
                headers=headers,
                json=payload,
            )
    except httpx.HTTPError as exc:
        logger.warning("Discord request failed for channel %d: %s", channel_id, exc)
        raise SpeakError(f"Discord request failed: {exc}") from exc

    if resp.status_code not in (200, 201):
        logger.warning(
            "Discord rejected message to channel %d: %d %s",
            channel_id, resp.status_code, resp.text[:200],
        )
        raise SpeakError(
            f"Discord returned HTTP {resp.status_code}", status_code=resp.status_code
        )

    message_id = str(resp.json().get("id", ""))
    logger.info("Sent message %s to channel %d", message_id, channel_id)
    return message_id
