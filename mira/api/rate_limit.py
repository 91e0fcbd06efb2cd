"""
mira.api.rate_limit — Per-Admin Mutation Rate Limiting
=======================================================

Every dashboard write (POST/PUT/PATCH/DELETE) counts against a sliding
60-second window per admin, keyed by the JWT ``sub`` claim.  Over 30 in a
window the request fails with HTTP 429 and a ``Retry-After`` header.

Events are rows in ``admin_rate_limit_events``, so limits hold across API
restarts and workers.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import Engine, delete, select
from sqlalchemy.orm import Session

from mira.api.deps import get_current_admin
from mira.database.engine import get_session
from mira.database.models import AdminRateLimitEvent

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMIT = 30
DEFAULT_WINDOW_SECONDS = 60

_WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def _as_utc(value: datetime) -> datetime:
    # SQLite returns naive datetimes.
    return value if value.tzinfo else value.replace(tzinfo=UTC)


class AdminRateLimiter:
    """Sliding-window limiter over ``admin_rate_limit_events``.

    :meth:`check` and :meth:`record` return an info dict with ``remaining``,
    ``reset`` (seconds until the window has room again) and ``limit``.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_RATE_LIMIT,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        *,
        engine: Engine,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.engine = engine

    def _window_timestamps(self, session: Session, admin_id: str) -> list[datetime]:
        """Drop *admin_id*'s expired events and return the rest, oldest first."""
        window_start = datetime.now(UTC) - timedelta(seconds=self.window_seconds)
        session.execute(
            delete(AdminRateLimitEvent).where(
                AdminRateLimitEvent.admin_id == admin_id,
                AdminRateLimitEvent.timestamp < window_start,
            )
        )
        return list(session.scalars(
            select(AdminRateLimitEvent.timestamp)
            .where(AdminRateLimitEvent.admin_id == admin_id)
            .order_by(AdminRateLimitEvent.timestamp)
        ))

    def _info(self, used: int, reset: int) -> dict[str, Any]:
        return {
            "remaining": max(0, self.max_requests - used),
            "reset": reset,
            "limit": self.max_requests,
        }

    def check(self, admin_id: str) -> tuple[bool, dict[str, Any]]:
        """Return ``(allowed, info)`` without recording anything."""
        with get_session(self.engine) as session:
            stamps = self._window_timestamps(session, admin_id)

        if len(stamps) < self.max_requests:
            return True, self._info(len(stamps), self.window_seconds)

        frees_at = _as_utc(stamps[0]) + timedelta(seconds=self.window_seconds)
        wait = (frees_at - datetime.now(UTC)).total_seconds()
        return False, self._info(len(stamps), max(1, int(wait) + 1))

    def record(self, admin_id: str) -> dict[str, Any]:
        """Count one write for *admin_id*."""
        with get_session(self.engine) as session:
            used = len(self._window_timestamps(session, admin_id)) + 1
            session.add(AdminRateLimitEvent(admin_id=admin_id))
        return self._info(used, self.window_seconds)

    def reset(self, admin_id: str | None = None) -> None:
        """Forget *admin_id*'s events, or everyone's when ``None``."""
        stmt = delete(AdminRateLimitEvent)
        if admin_id is not None:
            stmt = stmt.where(AdminRateLimitEvent.admin_id == admin_id)
        with get_session(self.engine) as session:
            session.execute(stmt)


_limiter: AdminRateLimiter | None = None


def configure_rate_limiter(*, engine: Engine) -> None:
    """Install the process-wide limiter (called from the API lifespan)."""
    global _limiter
    _limiter = AdminRateLimiter(engine=engine)


def get_rate_limiter() -> AdminRateLimiter:
    if _limiter is None:
        raise RuntimeError("Rate limiter not configured; call configure_rate_limiter() first")
    return _limiter


async def rate_limited_admin(
    request: Request,
    admin: dict = Depends(get_current_admin),
) -> dict:
    """``get_current_admin`` plus the write limit.

    Write routes depend on this instead of ``get_current_admin``; reads pass
    straight through.
    """
    if request.method not in _WRITE_METHODS:
        return admin

    limiter = get_rate_limiter()
    admin_id = str(admin["sub"])

    allowed, info = await asyncio.to_thread(limiter.check, admin_id)
    if not allowed:
        logger.warning(
            "Admin %s hit the write limit (%d per %ds)",
            admin_id, limiter.max_requests, limiter.window_seconds,
        )
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "rate_limit_exceeded",
                "message": f"Rate limit exceeded: {limiter.max_requests} mutations per minute.",
                "retry_after": info["reset"],
            },
            headers={"Retry-After": str(info["reset"])},
        )

    await asyncio.to_thread(limiter.record, admin_id)
    return admin
