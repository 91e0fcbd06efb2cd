"""
mira.services.setup_service — Guild Snapshot & Bot Heartbeat
=============================================================

The bot publishes two pieces of state to the dashboard through the
``settings`` table:

- ``guild.snapshot``: the guild's channel structure, written on connect
  and whenever channels change.
- ``bot.heartbeat``: an ISO-8601 UTC timestamp, written every 30 seconds
  by :mod:`mira.bot.cogs.tasks`.  ``/api/health/bot`` reports the bot
  offline once it is older than :data:`HEARTBEAT_STALE_SECONDS`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

from mira.database.engine import get_session
from mira.database.models import Setting

logger = logging.getLogger(__name__)

GUILD_SNAPSHOT_KEY = "guild.snapshot"
BOT_HEARTBEAT_KEY = "bot.heartbeat"
HEARTBEAT_STALE_SECONDS = 90


@dataclass
class ChannelInfo:
    id: int
    name: str
    type: str  # text | voice | forum | stage | category
    category_id: int | None = None
    category_name: str | None = None
    position: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class GuildSnapshot:
    guild_id: int
    guild_name: str
    channels: list[ChannelInfo] = field(default_factory=list)
    captured_at: str = ""

    def to_json(self) -> str:
        data = asdict(self)
        data["captured_at"] = self.captured_at or datetime.now(UTC).isoformat()
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str) -> GuildSnapshot:
        data = json.loads(raw)
        return cls(
            guild_id=data["guild_id"],
            guild_name=data["guild_name"],
            channels=[ChannelInfo(**ch) for ch in data.get("channels", [])],
            captured_at=data.get("captured_at", ""),
        )


# ---------------------------------------------------------------------------
# Settings rows hold JSON text
# ---------------------------------------------------------------------------
def _read_raw(engine, key: str) -> str | None:
    with get_session(engine) as session:
        row = session.get(Setting, key)
        return row.value_json if row else None


def _write_raw(engine, key: str, value_json: str, *, description: str) -> None:
    with get_session(engine) as session:
        row = session.get(Setting, key)
        if row is None:
            session.add(Setting(
                key=key, value_json=value_json, category="bot", description=description,
            ))
        else:
            row.value_json = value_json


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------
def save_guild_snapshot(engine, snapshot: GuildSnapshot) -> None:
    _write_raw(
        engine, GUILD_SNAPSHOT_KEY, snapshot.to_json(),
        description="Channel structure captured by the bot",
    )
    logger.info(
        "Saved snapshot of guild %d (%d channels)",
        snapshot.guild_id, len(snapshot.channels),
    )


def load_guild_snapshot(engine) -> GuildSnapshot | None:
    raw = _read_raw(engine, GUILD_SNAPSHOT_KEY)
    return GuildSnapshot.from_json(raw) if raw else None


# ---------------------------------------------------------------------------
# Heartbeat
# ---------------------------------------------------------------------------
def save_bot_heartbeat(engine) -> None:
    _write_raw(
        engine, BOT_HEARTBEAT_KEY, json.dumps(datetime.now(UTC).isoformat()),
        description="Last time the bot reported in",
    )


def get_bot_heartbeat(engine) -> dict[str, Any]:
    """``{"status": "online"|"offline", "last_heartbeat", "age_seconds"}``."""
    offline = {"status": "offline", "last_heartbeat": None}
    raw = _read_raw(engine, BOT_HEARTBEAT_KEY)
    if not raw:
        return offline
    try:
        stamp = json.loads(raw)
        seen_at = datetime.fromisoformat(stamp)
    except (TypeError, ValueError):
        return offline
    if seen_at.tzinfo is None:
        seen_at = seen_at.replace(tzinfo=UTC)

    age = (datetime.now(UTC) - seen_at).total_seconds()
    return {
        "status": "online" if age < HEARTBEAT_STALE_SECONDS else "offline",
        "last_heartbeat": stamp,
        "age_seconds": round(age, 1),
    }
