"""
mira.database.engine — Engine, Sessions and the Async Bridge
=============================================================

SQLAlchemy with psycopg2 is synchronous, while the bot lives on an asyncio
loop.  Bot code never queries directly: it passes a sync service function
to :func:`run_db`, which executes it on a worker thread.  FastAPI routes
call the same service functions from its threadpool.

::

    engine = create_db_engine()
    init_db(engine)
    rows = await run_db(list_command_lists, engine, guild_id)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from mira.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def create_db_engine(url: str | None = None) -> Engine:
    """Engine for *url*, defaulting to ``DATABASE_URL``.

    Raises ``RuntimeError`` when neither is set.
    """
    url = url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set; point it at the Mira PostgreSQL database "
            "(see .env.example)."
        )
    engine = create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=10,
        pool_recycle=3600,
        pool_pre_ping=True,
    )
    logger.info("Database engine ready (%s)", engine.url.render_as_string(hide_password=True))
    return engine


def init_db(engine: Engine) -> None:
    """Create missing tables.  Schema changes go through ``alembic upgrade head``."""
    Base.metadata.create_all(engine)
    logger.info("Database schema checked")


@contextmanager
def get_session(engine: Engine) -> Iterator[Session]:
    """Session that commits when the block exits cleanly and rolls back otherwise."""
    with Session(engine) as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Await a synchronous DB function on a worker thread."""
    return await asyncio.to_thread(func, *args, **kwargs)
