"""
mira.api.routes.speak — Let the bot send a message
===================================================
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from mira.api.deps import actor_id, get_engine
from mira.api.rate_limit import rate_limited_admin
from mira.constants import MESSAGE_MAX, MESSAGE_MIN
from mira.database.engine import get_session, run_db
from mira.services.admin_service import log_admin_action
from mira.services.channel_service import get_text_channel
from mira.services.speak_service import SpeakError, send_channel_message

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/mira", tags=["mira"])


class SpeakBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    channel_id: int = Field(alias="channelId")
    message: str = Field(min_length=MESSAGE_MIN, max_length=MESSAGE_MAX)


def _log_speak(engine, *, actor: int, channel_id: int, message_id: str, message: str) -> None:
    with get_session(engine) as session:
        log_admin_action(
            session,
            actor_id=actor,
            action_type="SPEAK",
            target_table="channels",
            target_id=str(channel_id),
            before=None,
            after={"message_id": message_id, "content": message},
        )


@router.post("/speak")
async def speak(
    body: SpeakBody,
    admin: dict = Depends(rate_limited_admin),
    engine=Depends(get_engine),
):
    """Post ``message`` into ``channelId`` as the bot."""
    channel = await run_db(get_text_channel, engine, body.channel_id)
    if channel is None:
        raise HTTPException(404, "Text channel not found")

    try:
        message_id = await send_channel_message(channel.id, body.message)
    except SpeakError as exc:
        raise HTTPException(502, f"Discord did not accept the message: {exc}")

    await run_db(
        _log_speak, engine,
        actor=actor_id(admin), channel_id=channel.id,
        message_id=message_id, message=body.message,
    )
    return {"sent": True, "messageId": message_id, "channelId": str(channel.id)}
