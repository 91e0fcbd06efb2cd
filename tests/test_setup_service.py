"""
tests/test_setup_service.py — Guild Snapshot & Heartbeat Tests
===============================================================
"""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session

from mira.database.models import Setting
from mira.services.setup_service import (
    BOT_HEARTBEAT_KEY,
    ChannelInfo,
    GuildSnapshot,
    get_bot_heartbeat,
    load_guild_snapshot,
    save_bot_heartbeat,
    save_guild_snapshot,
)


class TestGuildSnapshot:

    def test_none_before_first_save(self, db_engine):
        assert load_guild_snapshot(db_engine) is None

    def test_save_then_load(self, db_engine):
        snapshot = GuildSnapshot(
            guild_id=1,
            guild_name="Home",
            channels=[
                ChannelInfo(id=10, name="Text", type="category"),
                ChannelInfo(id=11, name="general", type="text", category_id=10, category_name="Text", position=2),
            ],
        )
        save_guild_snapshot(db_engine, snapshot)
        save_guild_snapshot(db_engine, snapshot)

        loaded = load_guild_snapshot(db_engine)
        assert loaded.guild_name == "Home"
        assert [c.name for c in loaded.channels] == ["Text", "general"]
        assert loaded.channels[1].category_name == "Text"
        assert loaded.captured_at


class TestHeartbeat:

    def test_offline_without_heartbeat(self, db_engine):
        assert get_bot_heartbeat(db_engine) == {"status": "offline", "last_heartbeat": None}

    def test_fresh_heartbeat_is_online(self, db_engine):
        save_bot_heartbeat(db_engine)
        assert get_bot_heartbeat(db_engine)["status"] == "online"

    def test_stale_heartbeat_is_offline(self, db_engine):
        stale = (datetime.now(UTC) - timedelta(minutes=5)).isoformat()
        with Session(db_engine) as s:
            s.add(Setting(key=BOT_HEARTBEAT_KEY, value_json=json.dumps(stale), category="setup"))
            s.commit()

        status = get_bot_heartbeat(db_engine)
        assert status["status"] == "offline"
        assert status["last_heartbeat"] == stale

    def test_garbage_is_offline(self, db_engine):
        with Session(db_engine) as s:
            s.add(Setting(key=BOT_HEARTBEAT_KEY, value_json="not json", category="setup"))
            s.commit()
        assert get_bot_heartbeat(db_engine)["status"] == "offline"

    def test_naive_timestamp_is_read_as_utc(self, db_engine):
        naive = datetime.now(UTC).replace(tzinfo=None) - timedelta(seconds=5)
        with Session(db_engine) as s:
            s.add(Setting(
                key=BOT_HEARTBEAT_KEY, value_json=json.dumps(naive.isoformat()), category="bot",
            ))
            s.commit()

        status = get_bot_heartbeat(db_engine)
        assert status["status"] == "online"
        assert 4 <= status["age_seconds"] < 60
