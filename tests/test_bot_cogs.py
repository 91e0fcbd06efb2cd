"""
tests/test_bot_cogs.py — Bot Cog Tests
=======================================
Command list registration, the ``/report`` command and the periodic
tasks, driven with a mock bot over the SQLite engine.
"""

from __future__ import annotations

import asyncio
import random
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord

from mira.bot.core import MiraBot, channel_info
from mira.bot.cogs.command_lists import (
    EMPTY_REPLY,
    CommandLists,
    build_command,
    fingerprint,
    pick_option,
)
from mira.bot.cogs.reports import Reports
from mira.bot.cogs.tasks import PeriodicTasks
from mira.config import MiraConfig
from mira.services.admin_service import create_command_list, update_command_list
from mira.services.report_service import list_reports
from mira.services.setup_service import get_bot_heartbeat

GUILD_ID = 424242


# Helper to run async tests without pytest-asyncio
def run_async(coro):
    """Run an async coroutine in a new event loop."""
    return asyncio.get_event_loop_policy().new_event_loop().run_until_complete(coro)


def _make_bot(engine, *, report_channel_id=None, channels=None) -> MagicMock:
    bot = MagicMock()
    bot.engine = engine
    bot.cfg = MiraConfig(
        bot_name="Mira", guild_id=GUILD_ID, dashboard_port=8000,
        admin_role_id=1, report_channel_id=report_channel_id,
    )
    bot.dev_guild_id = None
    bot.tree = MagicMock()
    bot.tree.get_commands.return_value = [SimpleNamespace(name="report")]
    bot.tree.sync = AsyncMock(return_value=[])
    bot.get_channel = lambda ch_id: (channels or {}).get(ch_id)
    return bot


def _make_interaction(user_id=1, name="Alice") -> MagicMock:
    interaction = MagicMock()
    interaction.guild_id = GUILD_ID
    interaction.channel_id = 77
    interaction.user = SimpleNamespace(id=user_id, display_name=name)
    interaction.response.send_message = AsyncMock()
    return interaction


def _add(engine, name, options=("hello",)):
    return create_command_list(
        engine, guild_id=GUILD_ID, name=name, description=f"/{name}",
        options=list(options), actor_id=1,
    )


# ===========================================================================
# Helpers
# ===========================================================================
class TestPickOption:

    def test_none_when_empty(self):
        assert pick_option([]) is None
        assert pick_option(None) is None
        assert pick_option(["", "   "]) is None

    def test_picks_only_real_options(self):
        rng = random.Random(3)
        picks = {pick_option(["a", "", "b"], rng) for _ in range(50)}
        assert picks == {"a", "b"}

    def test_single_option(self):
        assert pick_option(["only"]) == "only"


class TestFingerprint:

    def test_ignores_options_and_order(self):
        a = SimpleNamespace(id=1, name="a", description="d", options=["x"])
        b = SimpleNamespace(id=2, name="b", description="d", options=[])
        a2 = SimpleNamespace(id=1, name="a", description="d", options=["y", "z"])
        assert fingerprint([a, b]) == fingerprint([b, a2])

    def test_rename_changes_it(self):
        a = SimpleNamespace(id=1, name="a", description="d")
        renamed = SimpleNamespace(id=1, name="c", description="d")
        assert fingerprint([a]) != fingerprint([renamed])


# ===========================================================================
# CommandLists cog
# ===========================================================================
class TestCommandListsCog:

    def _registered_names(self, bot) -> list[str]:
        return [c.args[0].name for c in bot.tree.add_command.call_args_list]

    def test_refresh_registers_valid_lists(self, db_engine):
        _add(db_engine, "quotes")
        _add(db_engine, "report")
        _add(db_engine, "Bad Name")
        bot = _make_bot(db_engine)

        count = run_async(CommandLists(bot).refresh())

        assert count == 1
        assert self._registered_names(bot) == ["quotes"]
        bot.tree.clear_commands.assert_called_once()
        bot.tree.sync.assert_awaited_once()
        assert bot.tree.sync.await_args.kwargs["guild"].id == GUILD_ID

    def test_refresh_skips_sync_when_unchanged(self, db_engine):
        row = _add(db_engine, "quotes")
        bot = _make_bot(db_engine)
        cog = CommandLists(bot)
        run_async(cog.refresh())

        # Options don't affect the command tree.
        update_command_list(
            db_engine, command_list_id=row.id, name="quotes",
            description="/quotes", options=["other"], actor_id=1,
        )
        assert run_async(cog.refresh()) == 1
        assert bot.tree.sync.await_count == 1

        _add(db_engine, "jokes")
        assert run_async(cog.refresh()) == 2
        assert bot.tree.sync.await_count == 2

    def test_force_resyncs(self, db_engine):
        _add(db_engine, "quotes")
        bot = _make_bot(db_engine)
        cog = CommandLists(bot)
        run_async(cog.refresh())
        run_async(cog.refresh(force=True))
        assert bot.tree.sync.await_count == 2

    def test_overlapping_refreshes_sync_once(self, db_engine):
        _add(db_engine, "quotes")
        bot = _make_bot(db_engine)
        cog = CommandLists(bot)

        async def startup_and_first_tick():
            return await asyncio.gather(cog.refresh(force=True), cog.refresh())

        assert run_async(startup_and_first_tick()) == [1, 1]
        bot.tree.clear_commands.assert_called_once()
        bot.tree.sync.assert_awaited_once()

    def test_dev_guild_keeps_global_commands(self, db_engine):
        bot = _make_bot(db_engine)
        bot.dev_guild_id = GUILD_ID
        run_async(CommandLists(bot).refresh())
        bot.tree.copy_global_to.assert_called_once()

    def test_command_replies_with_current_option(self, db_engine):
        row = _add(db_engine, "quotes", options=["first"])
        command = build_command(_make_bot(db_engine), row)
        assert command.name == "quotes"
        assert command.description == "/quotes"

        update_command_list(
            db_engine, command_list_id=row.id, name="quotes",
            description="/quotes", options=["second"], actor_id=1,
        )
        interaction = _make_interaction()
        run_async(command.callback(interaction))
        interaction.response.send_message.assert_awaited_once_with("second")

    def test_command_without_options(self, db_engine):
        row = _add(db_engine, "quiet", options=[])
        interaction = _make_interaction()
        run_async(build_command(_make_bot(db_engine), row).callback(interaction))
        interaction.response.send_message.assert_awaited_once_with(EMPTY_REPLY, ephemeral=True)


# ===========================================================================
# Reports cog
# ===========================================================================
class TestReportsCog:

    def _member(self, user_id=2, name="Bob", bot=False):
        return SimpleNamespace(id=user_id, display_name=name, bot=bot)

    def _report(self, cog, interaction, member, anonymous=False):
        run_async(cog.report.callback(cog, interaction, member, "Spamming links", anonymous))

    def test_files_report(self, db_engine):
        cog = Reports(_make_bot(db_engine))
        interaction = _make_interaction()

        self._report(cog, interaction, self._member())

        [report] = list_reports(db_engine, guild_id=GUILD_ID)
        assert report.description == "Spamming links"
        assert report.channel_id == 77
        assert report.reported_guild_member.display_name == "Bob"
        assert interaction.response.send_message.await_args.kwargs["ephemeral"] is True

    def test_self_report(self, db_engine):
        cog = Reports(_make_bot(db_engine))
        interaction = _make_interaction(user_id=2)

        self._report(cog, interaction, self._member(user_id=2))

        assert list_reports(db_engine, guild_id=GUILD_ID) == []
        assert "yourself" in interaction.response.send_message.await_args.args[0]

    def test_bots_cannot_be_reported(self, db_engine):
        cog = Reports(_make_bot(db_engine))
        self._report(cog, _make_interaction(), self._member(bot=True))
        assert list_reports(db_engine, guild_id=GUILD_ID) == []

    def test_moderators_notified(self, db_engine):
        channel = MagicMock(spec=discord.TextChannel)
        channel.send = AsyncMock()
        cog = Reports(_make_bot(db_engine, report_channel_id=900, channels={900: channel}))

        self._report(cog, _make_interaction(), self._member(), anonymous=True)

        embed = channel.send.await_args.kwargs["embed"]
        fields = {f.name: f.value for f in embed.fields}
        assert fields["Reported by"] == "*Anonymous*"

    def test_notify_failure_does_not_raise(self, db_engine):
        channel = MagicMock(spec=discord.TextChannel)
        channel.send = AsyncMock(side_effect=discord.HTTPException(MagicMock(status=403), "Missing Access"))
        cog = Reports(_make_bot(db_engine, report_channel_id=900, channels={900: channel}))

        self._report(cog, _make_interaction(), self._member())
        assert len(list_reports(db_engine, guild_id=GUILD_ID)) == 1


# ===========================================================================
# Periodic tasks
# ===========================================================================
class TestPeriodicTasks:

    def test_heartbeat(self, db_engine):
        cog = PeriodicTasks(_make_bot(db_engine))
        run_async(cog.heartbeat_loop())
        assert get_bot_heartbeat(db_engine)["status"] == "online"

    def test_refresh_calls_command_lists(self, db_engine):
        bot = _make_bot(db_engine)
        command_lists = MagicMock()
        command_lists.refresh = AsyncMock(return_value=0)
        bot.get_cog.return_value = command_lists

        run_async(PeriodicTasks(bot).command_refresh_loop())
        command_lists.refresh.assert_awaited_once_with()

    def test_refresh_failure_is_logged(self, db_engine, caplog):
        bot = _make_bot(db_engine)
        bot.get_cog.return_value.refresh = AsyncMock(side_effect=RuntimeError("discord down"))

        run_async(PeriodicTasks(bot).command_refresh_loop())
        assert "Command list refresh failed" in caplog.text

    def test_refresh_without_cog(self, db_engine):
        bot = _make_bot(db_engine)
        bot.get_cog.return_value = None
        run_async(PeriodicTasks(bot).command_refresh_loop())


# ===========================================================================
# Channel snapshot
# ===========================================================================
class TestChannelInfo:

    def _channel(self, type, category=None):
        return SimpleNamespace(id=5, name="general", type=type, position=3, category=category)

    def test_text_channel_with_category(self):
        info = channel_info(self._channel(
            discord.ChannelType.text, category=SimpleNamespace(id=1, name="Chat"),
        ))
        assert info.to_dict() == {
            "id": 5, "name": "general", "type": "text",
            "category_id": 1, "category_name": "Chat", "position": 3,
        }

    def test_announcement_channel_counts_as_text(self):
        assert channel_info(self._channel(discord.ChannelType.news)).type == "text"

    def test_threads_are_skipped(self):
        assert channel_info(self._channel(discord.ChannelType.public_thread)) is None


# ===========================================================================
# Startup
# ===========================================================================
class TestOnReady:

    def _ready_bot(self, monkeypatch, db_engine, user):
        monkeypatch.delenv("DEV_GUILD_ID", raising=False)
        bot = MiraBot(_make_bot(db_engine).cfg, db_engine)
        tree = MagicMock()
        tree.sync = AsyncMock(return_value=[])
        monkeypatch.setattr(MiraBot, "user", property(lambda self: user))
        monkeypatch.setattr(MiraBot, "tree", property(lambda self: tree))
        bot.snapshot_channels = AsyncMock()
        command_lists = MagicMock()
        command_lists.refresh = AsyncMock(return_value=0)
        bot.get_cog = MagicMock(return_value=command_lists)
        return bot, tree, command_lists

    def test_syncs_and_registers(self, monkeypatch, db_engine):
        bot, tree, command_lists = self._ready_bot(
            monkeypatch, db_engine, SimpleNamespace(id=1, name="Mira")
        )
        run_async(bot.on_ready())

        bot.snapshot_channels.assert_awaited_once()
        tree.sync.assert_awaited_once_with()
        command_lists.refresh.assert_awaited_once_with(force=True)

    def test_without_user_logs_and_skips(self, monkeypatch, db_engine, caplog):
        bot, tree, command_lists = self._ready_bot(monkeypatch, db_engine, None)
        run_async(bot.on_ready())

        assert "without a logged-in user" in caplog.text
        bot.snapshot_channels.assert_not_awaited()
        tree.sync.assert_not_awaited()
        command_lists.refresh.assert_not_awaited()
