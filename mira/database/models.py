"""
mira.database.models — SQLAlchemy 2.0 Data Models
==================================================

Tables:
- guild_members           — One user as seen from one guild
- command_lists           — Random-reply slash commands, one row per command
- reports                 — Member reports filed through /report
- channels                — Guild channels mirrored from the bot's snapshot
- admin_log               — Audit trail of dashboard writes
- settings                — Key-value state the bot publishes (snapshot, heartbeat)
- oauth_states            — One-time OAuth CSRF tokens
- admin_rate_limit_events — Dashboard write timestamps per admin

Nullability follows the ``Mapped[...]`` annotation: ``Mapped[int]`` is
NOT NULL, ``Mapped[int | None]`` is nullable.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from mira.constants import (
    COMMAND_DESCRIPTION_MAX,
    COMMAND_NAME_MAX,
    REPORT_DESCRIPTION_MAX,
)


class Base(DeclarativeBase):
    """Declarative base for every Mira table."""


def _now_column(*, on_update: bool = False) -> Mapped[datetime]:
    if on_update:
        return mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    return mapped_column(DateTime(timezone=True), server_default=func.now())


class TimestampMixin:
    """``created_at`` / ``updated_at`` for rows the dashboard shows."""

    created_at: Mapped[datetime] = _now_column()
    updated_at: Mapped[datetime] = _now_column(on_update=True)


# ---------------------------------------------------------------------------
# Guild content
# ---------------------------------------------------------------------------
class GuildMember(TimestampMixin, Base):
    """A Discord user within one guild.  Display names refresh on each report."""

    __tablename__ = "guild_members"
    __table_args__ = (
        UniqueConstraint("guild_id", "user_id", name="uq_guild_members_guild_user"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    guild_id: Mapped[int] = mapped_column(BigInteger)
    user_id: Mapped[int] = mapped_column(BigInteger)
    display_name: Mapped[str] = mapped_column(String(100))

    def __repr__(self) -> str:
        return f"<GuildMember #{self.id} {self.display_name!r} ({self.user_id})>"


class CommandList(TimestampMixin, Base):
    """``/<name>`` replies with one of ``options`` picked at random."""

    __tablename__ = "command_lists"
    __table_args__ = (
        UniqueConstraint("guild_id", "name", name="uq_command_lists_guild_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    guild_id: Mapped[int] = mapped_column(BigInteger)
    name: Mapped[str] = mapped_column(String(COMMAND_NAME_MAX))
    description: Mapped[str] = mapped_column(String(COMMAND_DESCRIPTION_MAX))
    # Ordered; empty strings and duplicates are kept as entered.
    options: Mapped[list] = mapped_column(JSONB, default=list)

    def __repr__(self) -> str:
        return f"<CommandList #{self.id} /{self.name} ({len(self.options or [])} options)>"


class Report(TimestampMixin, Base):
    """One member reporting another.  Reporter and reported always differ."""

    __tablename__ = "reports"
    __table_args__ = (
        Index("ix_reports_guild_resolved", "guild_id", "resolved"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    guild_id: Mapped[int] = mapped_column(BigInteger)
    channel_id: Mapped[int] = mapped_column(BigInteger)
    description: Mapped[str] = mapped_column(String(REPORT_DESCRIPTION_MAX))
    anonymous: Mapped[bool] = mapped_column(Boolean, default=False)
    resolved: Mapped[bool] = mapped_column(Boolean, default=False)

    guild_member_id: Mapped[int] = mapped_column(ForeignKey("guild_members.id"))
    reported_guild_member_id: Mapped[int] = mapped_column(ForeignKey("guild_members.id"))

    guild_member: Mapped[GuildMember] = relationship(
        foreign_keys=[guild_member_id], lazy="joined"
    )
    reported_guild_member: Mapped[GuildMember] = relationship(
        foreign_keys=[reported_guild_member_id], lazy="joined"
    )

    def __repr__(self) -> str:
        state = "resolved" if self.resolved else "open"
        return f"<Report #{self.id} {state}>"


class Channel(Base):
    """A guild channel as of the bot's last snapshot.

    The dashboard reads channels from here, so it works while the bot is
    offline.  ``id`` is the Discord snowflake.
    """

    __tablename__ = "channels"
    __table_args__ = (
        Index("ix_channels_guild_type", "guild_id", "type"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    guild_id: Mapped[int] = mapped_column(BigInteger)
    name: Mapped[str] = mapped_column(String(100))
    type: Mapped[str] = mapped_column(String(20))  # text | voice | forum | stage | category
    discord_category_id: Mapped[int | None] = mapped_column(BigInteger, default=None)
    discord_category_name: Mapped[str | None] = mapped_column(String(100), default=None)
    position: Mapped[int] = mapped_column(default=0)
    last_synced_at: Mapped[datetime] = _now_column(on_update=True)

    def __repr__(self) -> str:
        return f"<Channel {self.id} #{self.name} [{self.type}]>"


# ---------------------------------------------------------------------------
# Dashboard bookkeeping
# ---------------------------------------------------------------------------
class AdminLog(Base):
    """Before/after JSON of every dashboard write, newest rows last."""

    __tablename__ = "admin_log"
    __table_args__ = (
        Index("ix_admin_log_actor_time", "actor_id", "timestamp"),
        Index("ix_admin_log_target", "target_table", "target_id", "timestamp"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    actor_id: Mapped[int] = mapped_column(BigInteger)
    action_type: Mapped[str] = mapped_column(String(50))  # CREATE | UPDATE | DELETE | SPEAK
    target_table: Mapped[str] = mapped_column(String(50))
    target_id: Mapped[str | None] = mapped_column(String(100))
    before_snapshot: Mapped[dict | None] = mapped_column(JSONB)
    after_snapshot: Mapped[dict | None] = mapped_column(JSONB)
    reason: Mapped[str | None] = mapped_column(Text)
    timestamp: Mapped[datetime] = _now_column()

    def __repr__(self) -> str:
        return f"<AdminLog #{self.id} {self.action_type} {self.target_table}/{self.target_id}>"


class Setting(Base):
    """JSON-encoded values keyed by name (``guild.snapshot``, ``bot.heartbeat``)."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value_json: Mapped[str] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(50), default="general")
    description: Mapped[str | None] = mapped_column(Text, default=None)
    updated_at: Mapped[datetime] = _now_column(on_update=True)

    def __repr__(self) -> str:
        return f"<Setting {self.key}>"


class OAuthState(Base):
    """Issued by ``/auth/login``, consumed once by ``/auth/callback``."""

    __tablename__ = "oauth_states"
    __table_args__ = (
        Index("ix_oauth_states_created_at", "created_at"),
    )

    state: Mapped[str] = mapped_column(String(128), primary_key=True)
    created_at: Mapped[datetime] = _now_column()

    def __repr__(self) -> str:
        return f"<OAuthState {self.state[:8]}…>"


class AdminRateLimitEvent(Base):
    """One dashboard write by one admin; the limiter counts these per window."""

    __tablename__ = "admin_rate_limit_events"
    __table_args__ = (
        Index("ix_admin_rate_limit_admin_ts", "admin_id", "timestamp"),
        Index("ix_admin_rate_limit_ts", "timestamp"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    admin_id: Mapped[str] = mapped_column(String(64))
    timestamp: Mapped[datetime] = _now_column()

    def __repr__(self) -> str:
        return f"<AdminRateLimitEvent {self.admin_id} @ {self.timestamp}>"
