"""
mira.client.types — Data shapes returned by the dashboard API
==============================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class CommandListData:
    id: int
    name: str
    description: str
    options: list[str] = field(default_factory=list)
    guild_id: str | None = None

    @classmethod
    def from_json(cls, data: dict) -> CommandListData:
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            description=data.get("description") or "",
            options=list(data.get("options") or []),
            guild_id=data.get("guildId"),
        )


@dataclass(frozen=True, slots=True)
class GuildTextChannel:
    id: str  # Snowflake
    name: str

    @classmethod
    def from_json(cls, data: dict) -> GuildTextChannel:
        return cls(id=str(data["id"]), name=data["name"])


@dataclass(frozen=True, slots=True)
class GuildMemberData:
    id: int
    user_id: str
    display_name: str

    @classmethod
    def from_json(cls, data: dict) -> GuildMemberData:
        return cls(
            id=int(data["id"]),
            user_id=str(data["userId"]),
            display_name=data.get("displayName", ""),
        )


@dataclass(frozen=True, slots=True)
class ReportData:
    id: int
    channel_id: str
    description: str
    anonymous: bool
    resolved: bool
    reported_guild_member: GuildMemberData
    guild_member: GuildMemberData | None = None  # None for anonymous reports
    created_at: str | None = None

    @classmethod
    def from_json(cls, data: dict) -> ReportData:
        reporter = data.get("guildMember")
        return cls(
            id=int(data["id"]),
            channel_id=str(data["channelId"]),
            description=data["description"],
            anonymous=bool(data["anonymous"]),
            resolved=bool(data["resolved"]),
            reported_guild_member=GuildMemberData.from_json(data["reportedGuildMember"]),
            guild_member=GuildMemberData.from_json(reporter) if reporter else None,
            created_at=data.get("createdAt"),
        )
