"""
mira.api.routes.reports — Member report moderation (JWT‑protected)
===================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from mira.api.deps import actor_id, get_config, get_current_admin, get_engine
from mira.api.rate_limit import rate_limited_admin
from mira.config import MiraConfig
from mira.database.models import GuildMember, Report
from mira.services import report_service

router = APIRouter(prefix="/reports", tags=["reports"])


class ReportUpdate(BaseModel):
    resolved: bool


def _member_dict(member: GuildMember) -> dict:
    return {
        "id": member.id,
        "guildId": str(member.guild_id),
        "userId": str(member.user_id),
        "displayName": member.display_name,
    }


def _report_dict(report: Report) -> dict:
    """Serialize a report; anonymous reports never expose the reporter."""
    return {
        "id": report.id,
        "createdAt": report.created_at.isoformat() if report.created_at else None,
        "updatedAt": report.updated_at.isoformat() if report.updated_at else None,
        "channelId": str(report.channel_id),
        "description": report.description,
        "anonymous": report.anonymous,
        "resolved": report.resolved,
        "guildMember": None if report.anonymous else _member_dict(report.guild_member),
        "reportedGuildMember": _member_dict(report.reported_guild_member),
    }


@router.get("")
def list_reports(
    resolved: bool | None = None,
    guild_id: int | None = None,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
    cfg: MiraConfig = Depends(get_config),
):
    """Reports for a guild, newest first.  ``?resolved=false`` for the queue."""
    rows = report_service.list_reports(
        engine, guild_id=guild_id or cfg.guild_id, resolved=resolved
    )
    return [_report_dict(r) for r in rows]


@router.get("/{report_id}")
def get_report(
    report_id: int,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    report = report_service.get_report(engine, report_id)
    if report is None:
        raise HTTPException(404, "Report not found")
    return _report_dict(report)


@router.patch("/{report_id}")
def update_report(
    report_id: int,
    body: ReportUpdate,
    admin: dict = Depends(rate_limited_admin),
    engine=Depends(get_engine),
):
    report = report_service.set_resolved(
        engine, report_id=report_id, resolved=body.resolved, actor_id=actor_id(admin)
    )
    if report is None:
        raise HTTPException(404, "Report not found")
    return _report_dict(report)
