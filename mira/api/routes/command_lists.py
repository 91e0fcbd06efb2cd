"""
mira.api.routes.command_lists — Command list CRUD (JWT‑protected)
==================================================================
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from mira.api.deps import actor_id, get_config, get_current_admin, get_engine
from mira.api.rate_limit import rate_limited_admin
from mira.config import MiraConfig
from mira.constants import (
    COMMAND_DESCRIPTION_MAX,
    COMMAND_DESCRIPTION_MIN,
    COMMAND_NAME_MAX,
    COMMAND_NAME_MIN,
    COMMAND_NAME_PATTERN,
    COMMAND_OPTION_MAX,
)
from mira.database.models import CommandList
from mira.services import admin_service
from mira.services.admin_service import CommandListConflictError

router = APIRouter(prefix="/command-lists", tags=["command-lists"])

OptionText = Annotated[str, Field(max_length=COMMAND_OPTION_MAX)]


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class CommandListBody(BaseModel):
    name: str = Field(
        min_length=COMMAND_NAME_MIN,
        max_length=COMMAND_NAME_MAX,
        pattern=COMMAND_NAME_PATTERN,
    )
    description: str = Field(
        min_length=COMMAND_DESCRIPTION_MIN, max_length=COMMAND_DESCRIPTION_MAX
    )
    options: list[OptionText] = Field(default_factory=list)


class CommandListCreate(CommandListBody):
    guild_id: int | None = Field(default=None, alias="guildId")


def _command_list_dict(row: CommandList) -> dict:
    return {
        "id": row.id,
        "guildId": str(row.guild_id),
        "name": row.name,
        "description": row.description,
        "options": list(row.options or []),
        "createdAt": row.created_at.isoformat() if row.created_at else None,
        "updatedAt": row.updated_at.isoformat() if row.updated_at else None,
    }


def _conflict(exc: CommandListConflictError) -> HTTPException:
    return HTTPException(409, f"A command named /{exc.name} already exists.")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@router.get("")
def list_command_lists(
    guild_id: int | None = None,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
    cfg: MiraConfig = Depends(get_config),
):
    """Return every command list of a guild (default: the configured guild)."""
    rows = admin_service.list_command_lists(engine, guild_id or cfg.guild_id)
    return [_command_list_dict(r) for r in rows]


@router.post("", status_code=201)
def create_command_list(
    body: CommandListCreate,
    admin: dict = Depends(rate_limited_admin),
    engine=Depends(get_engine),
    cfg: MiraConfig = Depends(get_config),
):
    try:
        row = admin_service.create_command_list(
            engine,
            guild_id=body.guild_id or cfg.guild_id,
            name=body.name,
            description=body.description,
            options=body.options,
            actor_id=actor_id(admin),
        )
    except CommandListConflictError as exc:
        raise _conflict(exc)
    return _command_list_dict(row)


@router.get("/{command_list_id}")
def get_command_list(
    command_list_id: int,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    row = admin_service.get_command_list(engine, command_list_id)
    if row is None:
        raise HTTPException(404, "Command list not found")
    return _command_list_dict(row)


@router.put("/{command_list_id}")
def update_command_list(
    command_list_id: int,
    body: CommandListBody,
    admin: dict = Depends(rate_limited_admin),
    engine=Depends(get_engine),
):
    """Replace a command list's name, description and options."""
    try:
        row = admin_service.update_command_list(
            engine,
            command_list_id=command_list_id,
            name=body.name,
            description=body.description,
            options=body.options,
            actor_id=actor_id(admin),
        )
    except CommandListConflictError as exc:
        raise _conflict(exc)
    if row is None:
        raise HTTPException(404, "Command list not found")
    return _command_list_dict(row)


@router.delete("/{command_list_id}", status_code=204)
def delete_command_list(
    command_list_id: int,
    admin: dict = Depends(rate_limited_admin),
    engine=Depends(get_engine),
):
    if not admin_service.delete_command_list(
        engine, command_list_id=command_list_id, actor_id=actor_id(admin)
    ):
        raise HTTPException(404, "Command list not found")
    return None
