"""
mira.api.auth — Discord OAuth2 login → dashboard JWT
=====================================================

1. ``GET /auth/login`` stores a one-time ``state`` and redirects to Discord.
2. ``GET /auth/callback`` consumes the state, exchanges the code, and reads
   the user's member record in the primary guild.
3. Holders of ``admin_role_id`` are sent back to the dashboard with a signed
   bearer token; anyone else gets ``?auth_error=not_admin``.
"""

from __future__ import annotations

import logging
import os
import secrets
from datetime import UTC, datetime, timedelta
from urllib.parse import urlencode

import httpx
import jwt
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse
from sqlalchemy import delete
from sqlalchemy.orm import Session

from mira.api.deps import (
    JWT_ALGORITHM,
    JWT_SECRET,
    get_config,
    get_current_admin,
    get_engine,
)
from mira.config import MiraConfig
from mira.database.engine import get_session, run_db
from mira.database.models import OAuthState

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])

DISCORD_API = "https://discord.com/api/v10"
DISCORD_AUTHORIZE_URL = "https://discord.com/oauth2/authorize"
OAUTH_SCOPE = "identify guilds.members.read"
OAUTH_STATE_TTL = timedelta(minutes=10)
TOKEN_LIFETIME = timedelta(hours=12)

_REQUIRED_ENV = (
    "DISCORD_CLIENT_ID",
    "DISCORD_CLIENT_SECRET",
    "DISCORD_REDIRECT_URI",
    "FRONTEND_URL",
)


def _oauth_env() -> dict[str, str]:
    """OAuth settings from the environment; 500 naming whatever is missing."""
    values = {name: os.getenv(name, "").strip() for name in _REQUIRED_ENV}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise HTTPException(500, "Discord OAuth is not configured: missing " + ", ".join(missing))
    return values


# ---------------------------------------------------------------------------
# One-time state tokens
# ---------------------------------------------------------------------------
def _drop_expired_states(session: Session) -> None:
    expired_before = datetime.now(UTC) - OAUTH_STATE_TTL
    session.execute(delete(OAuthState).where(OAuthState.created_at < expired_before))


def _store_oauth_state(engine, state: str) -> None:
    with get_session(engine) as session:
        _drop_expired_states(session)
        session.add(OAuthState(state=state))


def _consume_oauth_state(engine, state: str) -> bool:
    """True exactly once per issued, unexpired *state*."""
    with get_session(engine) as session:
        _drop_expired_states(session)
        row = session.get(OAuthState, state)
        if row is not None:
            session.delete(row)
        return row is not None


# ---------------------------------------------------------------------------
# Tokens & roles
# ---------------------------------------------------------------------------
def issue_token(user_info: dict) -> str:
    """Dashboard JWT for a Discord user already verified as an admin."""
    claims = {
        "sub": str(user_info["id"]),
        "username": user_info.get("username", "Unknown"),
        "avatar": user_info.get("avatar"),
        "is_admin": True,
        "exp": datetime.now(UTC) + TOKEN_LIFETIME,
    }
    return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALGORITHM)


def has_admin_role(member: dict, admin_role_id: int) -> bool:
    return admin_role_id in {int(role) for role in member.get("roles", [])}


# ---------------------------------------------------------------------------
# Discord calls
# ---------------------------------------------------------------------------
async def _exchange_code(client: httpx.AsyncClient, env: dict[str, str], code: str) -> str:
    """Trade the authorization *code* for a user access token."""
    resp = await client.post(
        f"{DISCORD_API}/oauth2/token",
        data={
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": env["DISCORD_REDIRECT_URI"],
            "client_id": env["DISCORD_CLIENT_ID"],
            "client_secret": env["DISCORD_CLIENT_SECRET"],
            "scope": OAUTH_SCOPE,
        },
    )
    if resp.status_code != 200:
        logger.warning("OAuth code exchange failed: %d", resp.status_code)
        raise HTTPException(400, "OAuth token exchange failed")
    access_token = resp.json().get("access_token")
    if not access_token:
        raise HTTPException(400, "No access token returned")
    return access_token


async def _fetch_identity(
    client: httpx.AsyncClient, access_token: str, guild_id: int
) -> tuple[dict, dict | None]:
    """Return ``(user, member)``; *member* is ``None`` outside the guild."""
    headers = {"Authorization": f"Bearer {access_token}"}
    user_resp = await client.get(f"{DISCORD_API}/users/@me", headers=headers)
    if user_resp.status_code != 200:
        raise HTTPException(400, "Failed to fetch Discord user")
    member_resp = await client.get(
        f"{DISCORD_API}/users/@me/guilds/{guild_id}/member", headers=headers
    )
    member = member_resp.json() if member_resp.status_code == 200 else None
    return user_resp.json(), member


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@router.get("/login")
async def login(engine=Depends(get_engine)):
    env = _oauth_env()
    state = secrets.token_urlsafe(32)
    await run_db(_store_oauth_state, engine, state)

    query = urlencode({
        "client_id": env["DISCORD_CLIENT_ID"],
        "redirect_uri": env["DISCORD_REDIRECT_URI"],
        "response_type": "code",
        "scope": OAUTH_SCOPE,
        "state": state,
    })
    return RedirectResponse(f"{DISCORD_AUTHORIZE_URL}?{query}")


@router.get("/callback")
async def callback(
    code: str,
    state: str,
    cfg: MiraConfig = Depends(get_config),
    engine=Depends(get_engine),
):
    env = _oauth_env()
    dashboard = env["FRONTEND_URL"].rstrip("/")

    if not await run_db(_consume_oauth_state, engine, state):
        raise HTTPException(400, "Invalid or expired OAuth state")

    async with httpx.AsyncClient(
        timeout=10, transport=httpx.AsyncHTTPTransport(retries=1)
    ) as client:
        access_token = await _exchange_code(client, env, code)
        user, member = await _fetch_identity(client, access_token, cfg.guild_id)

    if member is None or not has_admin_role(member, cfg.admin_role_id):
        logger.info("Refused dashboard login for %s: missing admin role", user.get("id"))
        return RedirectResponse(f"{dashboard}?auth_error=not_admin")

    logger.info("Dashboard login: %s (%s)", user.get("username"), user["id"])
    return RedirectResponse(f"{dashboard}/auth/callback?token={issue_token(user)}")


@router.get("/me")
async def me(admin: dict = Depends(get_current_admin)):
    return {
        "id": admin["sub"],
        "username": admin.get("username", "Unknown"),
        "avatar": admin.get("avatar"),
        "is_admin": True,
    }
