"""
tests/test_admin_service.py — Command List Service Tests
=========================================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from mira.database.models import AdminLog, CommandList
from mira.services import admin_service
from mira.services.admin_service import (
    CommandListConflictError,
    create_command_list,
    delete_command_list,
    get_command_list,
    list_command_lists,
    update_command_list,
)

GUILD_ID = 1001
ACTOR = 42


def _create(engine, name="quotes", **kw) -> CommandList:
    return create_command_list(
        engine,
        guild_id=kw.pop("guild_id", GUILD_ID),
        name=name,
        description=kw.pop("description", "Random quotes"),
        options=kw.pop("options", ["one", "two"]),
        actor_id=ACTOR,
    )


def _audit(engine) -> list[AdminLog]:
    with Session(engine) as s:
        return list(s.scalars(select(AdminLog).order_by(AdminLog.id)).all())


class TestCreate:

    def test_returns_detached_row(self, db_engine):
        row = _create(db_engine)
        assert row.id is not None
        assert row.options == ["one", "two"]
        assert row.created_at is not None

    def test_options_default_to_empty(self, db_engine):
        row = create_command_list(
            db_engine, guild_id=GUILD_ID, name="empty", description="d", actor_id=ACTOR,
        )
        assert get_command_list(db_engine, row.id).options == []

    def test_name_unique_per_guild(self, db_engine):
        _create(db_engine)
        with pytest.raises(CommandListConflictError) as exc_info:
            _create(db_engine)
        assert exc_info.value.name == "quotes"

        # Another guild may reuse the name.
        assert _create(db_engine, guild_id=2002).guild_id == 2002

    def test_audited(self, db_engine):
        row = _create(db_engine)
        [entry] = _audit(db_engine)
        assert entry.action_type == "CREATE"
        assert entry.actor_id == ACTOR
        assert entry.target_id == str(row.id)
        assert entry.before_snapshot is None
        assert entry.after_snapshot["name"] == "quotes"

    def test_constraint_violation_is_a_conflict(self, db_engine, monkeypatch):
        first = _create(db_engine)
        monkeypatch.setattr(admin_service, "_ensure_name_free", lambda *a, **kw: None)

        with pytest.raises(CommandListConflictError) as exc_info:
            _create(db_engine)
        assert exc_info.value.guild_id == GUILD_ID
        assert [r.id for r in list_command_lists(db_engine, GUILD_ID)] == [first.id]
        assert len(_audit(db_engine)) == 1


class TestRead:

    def test_list_is_per_guild_and_sorted(self, db_engine):
        _create(db_engine, name="zeta")
        _create(db_engine, name="alpha")
        _create(db_engine, name="other", guild_id=2002)

        assert [r.name for r in list_command_lists(db_engine, GUILD_ID)] == ["alpha", "zeta"]

    def test_missing(self, db_engine):
        assert get_command_list(db_engine, 12345) is None


class TestUpdate:

    def test_replaces_fields(self, db_engine):
        row = _create(db_engine)
        updated = update_command_list(
            db_engine,
            command_list_id=row.id,
            name="sayings",
            description="Wise words",
            options=["three"],
            actor_id=ACTOR,
        )
        assert (updated.name, updated.description, updated.options) == ("sayings", "Wise words", ["three"])

        stored = get_command_list(db_engine, row.id)
        assert stored.options == ["three"]

    def test_keeping_own_name_is_not_a_conflict(self, db_engine):
        row = _create(db_engine)
        updated = update_command_list(
            db_engine, command_list_id=row.id, name="quotes",
            description="New", options=[], actor_id=ACTOR,
        )
        assert updated.description == "New"
        assert updated.options == []

    def test_rename_onto_taken_name(self, db_engine):
        _create(db_engine, name="quotes")
        other = _create(db_engine, name="jokes")
        with pytest.raises(CommandListConflictError):
            update_command_list(
                db_engine, command_list_id=other.id, name="quotes",
                description="d", options=[], actor_id=ACTOR,
            )
        assert get_command_list(db_engine, other.id).name == "jokes"

    def test_missing_returns_none(self, db_engine):
        assert update_command_list(
            db_engine, command_list_id=99, name="x", description="d", options=[], actor_id=ACTOR,
        ) is None

    def test_audit_has_before_and_after(self, db_engine):
        row = _create(db_engine)
        update_command_list(
            db_engine, command_list_id=row.id, name="quotes",
            description="d", options=["new"], actor_id=ACTOR,
        )
        entry = _audit(db_engine)[-1]
        assert entry.action_type == "UPDATE"
        assert entry.before_snapshot["options"] == ["one", "two"]
        assert entry.after_snapshot["options"] == ["new"]


class TestDelete:

    def test_delete(self, db_engine):
        row = _create(db_engine)
        assert delete_command_list(db_engine, command_list_id=row.id, actor_id=ACTOR) is True
        assert get_command_list(db_engine, row.id) is None
        assert _audit(db_engine)[-1].action_type == "DELETE"

    def test_delete_missing(self, db_engine):
        assert delete_command_list(db_engine, command_list_id=5, actor_id=ACTOR) is False
        assert _audit(db_engine) == []
