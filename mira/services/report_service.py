"""
mira.services.report_service — Member Reports
===============================================

Reports are filed by the bot's ``/report`` command and moderated from the
dashboard.  A report always references two different guild members: the
reporter and the reported member.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from mira.database.models import GuildMember, Report
from mira.services.admin_service import log_admin_action, row_snapshot

logger = logging.getLogger(__name__)


class SelfReportError(ValueError):
    """The reporter and the reported member are the same user."""


def get_or_create_member(
    session: Session, *, guild_id: int, user_id: int, display_name: str
) -> GuildMember:
    """Return the :class:`GuildMember` for (guild, user), creating it if needed.

    The stored display name is refreshed on every call.
    """
    member = session.scalar(
        select(GuildMember).where(
            GuildMember.guild_id == guild_id, GuildMember.user_id == user_id
        )
    )
    if member is None:
        member = GuildMember(
            guild_id=guild_id, user_id=user_id, display_name=display_name
        )
        session.add(member)
        session.flush()
    elif display_name and member.display_name != display_name:
        member.display_name = display_name
    return member


def file_report(
    engine,
    *,
    guild_id: int,
    channel_id: int,
    reporter_id: int,
    reporter_name: str,
    reported_id: int,
    reported_name: str,
    description: str,
    anonymous: bool = False,
) -> Report:
    """Persist a new report and return it (expunged, members loaded).

    Raises :class:`SelfReportError` when *reporter_id* equals *reported_id*.
    """
    if reporter_id == reported_id:
        raise SelfReportError("Members cannot report themselves.")

    with Session(engine, expire_on_commit=False) as session:
        reporter = get_or_create_member(
            session, guild_id=guild_id, user_id=reporter_id, display_name=reporter_name
        )
        reported = get_or_create_member(
            session, guild_id=guild_id, user_id=reported_id, display_name=reported_name
        )
        report = Report(
            guild_id=guild_id,
            channel_id=channel_id,
            description=description,
            anonymous=anonymous,
            resolved=False,
            guild_member=reporter,
            reported_guild_member=reported,
        )
        session.add(report)
        session.commit()
        session.refresh(report)
        session.expunge_all()

    logger.info(
        "Report %d filed in guild %d against member %d%s",
        report.id, guild_id, reported_id, " (anonymous)" if anonymous else "",
    )
    return report


def list_reports(
    engine, *, guild_id: int, resolved: bool | None = None
) -> list[Report]:
    """Return reports for *guild_id*, newest first, optionally filtered."""
    stmt = select(Report).where(Report.guild_id == guild_id)
    if resolved is not None:
        stmt = stmt.where(Report.resolved.is_(resolved))
    stmt = stmt.order_by(Report.created_at.desc(), Report.id.desc())
    with Session(engine, expire_on_commit=False) as session:
        rows = list(session.scalars(stmt).unique().all())
        session.expunge_all()
        return rows


def get_report(engine, report_id: int) -> Report | None:
    with Session(engine, expire_on_commit=False) as session:
        report = session.get(Report, report_id)
        if report is not None:
            session.expunge_all()
        return report


def set_resolved(
    engine, *, report_id: int, resolved: bool, actor_id: int
) -> Report | None:
    """Mark a report resolved (or reopen it).  Returns ``None`` if missing."""
    with Session(engine, expire_on_commit=False) as session:
        report = session.get(Report, report_id)
        if report is None:
            return None
        before = row_snapshot(report)
        report.resolved = resolved
        session.flush()
        log_admin_action(
            session,
            actor_id=actor_id,
            action_type="UPDATE",
            target_table="reports",
            target_id=str(report.id),
            before=before,
            after=row_snapshot(report),
        )
        session.commit()
        session.refresh(report)
        session.expunge_all()

    logger.info(
        "Report %d marked %s by %d",
        report_id, "resolved" if resolved else "open", actor_id,
    )
    return report
