"""
mira.services.channel_service — Guild Channel Sync
===================================================

The bot snapshots the guild's channels on connect; this module upserts
that snapshot into the ``channels`` table and serves the text-channel
listing used by the dashboard's speak page.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from mira.constants import channel_sort_key
from mira.database.models import Channel

logger = logging.getLogger(__name__)


def sync_channels_from_snapshot(engine, guild_id: int, channels: list[dict]) -> dict:
    """Upsert *channels* for *guild_id* and remove channels no longer present.

    Parameters
    ----------
    engine : SQLAlchemy Engine
    guild_id : Discord guild snowflake
    channels : list of dicts with keys: id, name, type, category_id,
        category_name, position

    Returns ``{"upserted": int, "removed": int}``.
    """
    seen: set[int] = set()
    with Session(engine) as session:
        for ch in channels:
            ch_id = int(ch["id"])
            seen.add(ch_id)
            row = session.get(Channel, ch_id)
            if row is None:
                row = Channel(id=ch_id, guild_id=guild_id)
                session.add(row)
            row.guild_id = guild_id
            row.name = ch.get("name") or "unknown"
            row.type = ch.get("type") or "text"
            row.discord_category_id = ch.get("category_id")
            row.discord_category_name = ch.get("category_name")
            row.position = ch.get("position") or 0

        stale = delete(Channel).where(Channel.guild_id == guild_id)
        if seen:
            stale = stale.where(Channel.id.not_in(seen))
        removed = session.execute(stale).rowcount or 0
        session.commit()

    logger.info(
        "Channel sync for guild %d: %d upserted, %d removed",
        guild_id, len(seen), removed,
    )
    return {"upserted": len(seen), "removed": removed}


def list_text_channels(engine, guild_id: int) -> list[Channel]:
    """Return the guild's text channels sorted ascending by name."""
    with Session(engine, expire_on_commit=False) as session:
        rows = list(session.scalars(
            select(Channel).where(Channel.guild_id == guild_id, Channel.type == "text")
        ).all())
        session.expunge_all()
    return sorted(rows, key=channel_sort_key)


def get_text_channel(engine, channel_id: int) -> Channel | None:
    """Return the text channel with *channel_id*, or ``None``."""
    with Session(engine, expire_on_commit=False) as session:
        row = session.get(Channel, channel_id)
        if row is None or row.type != "text":
            return None
        session.expunge(row)
        return row
