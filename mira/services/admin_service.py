"""
mira.services.admin_service — Audited Command List Mutations
=============================================================

A dashboard write and its ``admin_log`` row share one transaction: the
row is changed and flushed, the audit entry records the column values
before and after, and :func:`~mira.database.engine.get_session` commits
both together (or neither).

The bot notices changes on its next refresh tick (see
:mod:`mira.bot.cogs.tasks`).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mira.database.engine import get_session
from mira.database.models import AdminLog, CommandList

logger = logging.getLogger(__name__)


class CommandListConflictError(ValueError):
    """A command list with the same name already exists in the guild."""

    def __init__(self, guild_id: int, name: str) -> None:
        super().__init__(f"Command /{name} already exists in guild {guild_id}")
        self.guild_id = guild_id
        self.name = name


# ---------------------------------------------------------------------------
# Audit trail
# ---------------------------------------------------------------------------
def row_snapshot(row: Any) -> dict[str, Any] | None:
    """Column values of *row* as JSON-ready data, keyed by column name."""
    if row is None:
        return None
    snapshot: dict[str, Any] = {}
    for column in row.__table__.columns:
        value = getattr(row, column.key, None)
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, list):
            value = list(value)
        snapshot[column.name] = value
    return snapshot


def log_admin_action(
    session: Session,
    *,
    actor_id: int,
    action_type: str,
    target_table: str,
    target_id: str | None,
    before: dict | None,
    after: dict | None,
    reason: str | None = None,
) -> None:
    """Stage an ``admin_log`` entry in *session*'s transaction."""
    entry = AdminLog(
        actor_id=actor_id,
        action_type=action_type,
        target_table=target_table,
        target_id=target_id,
        before_snapshot=before,
        after_snapshot=after,
        reason=reason,
    )
    session.add(entry)


def _audit(
    session: Session, action: str, row: CommandList, actor_id: int, before: dict | None
) -> None:
    after = None if action == "DELETE" else row_snapshot(row)
    log_admin_action(
        session,
        actor_id=actor_id,
        action_type=action,
        target_table=CommandList.__tablename__,
        target_id=str(row.id),
        before=before,
        after=after,
    )


def _detach(session: Session, row: CommandList) -> CommandList:
    """Load server-side values and hand *row* out of the session."""
    session.flush()
    session.refresh(row)
    session.expunge(row)
    return row


def _ensure_name_free(
    session: Session, guild_id: int, name: str, *, ignore_id: int | None = None
) -> None:
    clash = select(CommandList.id).where(
        CommandList.guild_id == guild_id, CommandList.name == name
    )
    if ignore_id is not None:
        clash = clash.where(CommandList.id != ignore_id)
    if session.scalar(clash) is not None:
        raise CommandListConflictError(guild_id, name)


def _flush_named(session: Session, guild_id: int, name: str) -> None:
    """Flush, turning a lost race on ``uq_command_lists_guild_name`` into a conflict."""
    try:
        session.flush()
    except IntegrityError as exc:
        session.rollback()
        raise CommandListConflictError(guild_id, name) from exc


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def list_command_lists(engine, guild_id: int) -> list[CommandList]:
    """Command lists of *guild_id*, ordered by name."""
    with get_session(engine) as session:
        rows = list(session.scalars(
            select(CommandList)
            .where(CommandList.guild_id == guild_id)
            .order_by(CommandList.name)
        ))
        session.expunge_all()
    return rows


def get_command_list(engine, command_list_id: int) -> CommandList | None:
    with get_session(engine) as session:
        row = session.get(CommandList, command_list_id)
        if row is not None:
            session.expunge(row)
    return row


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
def create_command_list(
    engine,
    *,
    guild_id: int,
    name: str,
    description: str,
    options: list[str] | None = None,
    actor_id: int,
) -> CommandList:
    """Insert a command list; :class:`CommandListConflictError` if *name* is taken."""
    with get_session(engine) as session:
        _ensure_name_free(session, guild_id, name)
        row = CommandList(
            guild_id=guild_id, name=name, description=description, options=list(options or [])
        )
        session.add(row)
        _flush_named(session, guild_id, name)
        _audit(session, "CREATE", row, actor_id, before=None)
        row = _detach(session, row)
    logger.info("Command list /%s created by %d (id=%d)", row.name, actor_id, row.id)
    return row


def update_command_list(
    engine,
    *,
    command_list_id: int,
    name: str,
    description: str,
    options: list[str],
    actor_id: int,
) -> CommandList | None:
    """Overwrite name, description and options.

    ``None`` when the list doesn't exist; :class:`CommandListConflictError`
    when renamed onto another list's name.
    """
    with get_session(engine) as session:
        row = session.get(CommandList, command_list_id)
        if row is None:
            return None
        if name != row.name:
            _ensure_name_free(session, row.guild_id, name, ignore_id=row.id)

        before = row_snapshot(row)
        row.name = name
        row.description = description
        row.options = list(options)  # fresh list marks the JSON column dirty
        _flush_named(session, row.guild_id, name)
        _audit(session, "UPDATE", row, actor_id, before=before)
        row = _detach(session, row)
    logger.info("Command list %d updated by %d", command_list_id, actor_id)
    return row


def delete_command_list(engine, *, command_list_id: int, actor_id: int) -> bool:
    """``True`` when a list was deleted, ``False`` when there was none."""
    with get_session(engine) as session:
        row = session.get(CommandList, command_list_id)
        if row is None:
            return False
        _audit(session, "DELETE", row, actor_id, before=row_snapshot(row))
        session.delete(row)
    logger.info("Command list %d deleted by %d", command_list_id, actor_id)
    return True
