"""
mira.api.routes.guilds — Guild summary & channel listing
=========================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from mira.api.deps import get_current_admin, get_engine
from mira.services.channel_service import list_text_channels
from mira.services.setup_service import load_guild_snapshot

router = APIRouter(prefix="/discord", tags=["discord"])


@router.get("/guilds/{guild_id}")
def guild_summary(
    guild_id: int,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    """Name and channel count from the bot's latest snapshot of the guild."""
    snapshot = load_guild_snapshot(engine)
    if snapshot is None or snapshot.guild_id != guild_id:
        raise HTTPException(404, "The bot has not reported this guild yet")
    return {
        "id": str(snapshot.guild_id),
        "name": snapshot.guild_name,
        "channelCount": len(snapshot.channels),
        "capturedAt": snapshot.captured_at or None,
    }


@router.get("/guilds/{guild_id}/text-channels")
def guild_text_channels(
    guild_id: int,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    """Return the guild's text channels as ``[{id, name}]``, sorted by name."""
    return [
        {"id": str(ch.id), "name": ch.name}
        for ch in list_text_channels(engine, guild_id)
    ]
