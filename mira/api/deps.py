"""
mira.api.deps — FastAPI dependencies
=====================================

``JWT_SECRET`` is validated when this module is imported, so the API
refuses to start with a missing or guessable signing key.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Header, HTTPException, status
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from mira.config import MiraConfig, load_config
from mira.database.engine import create_db_engine

JWT_ALGORITHM = "HS256"
MIN_SECRET_LENGTH = 32
KNOWN_WEAK_SECRETS = frozenset({"mira-dev-secret-change-me", "change-me", "secret", "dev"})


def _load_jwt_secret() -> str:
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET is not set.  Generate one with: "
            "python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in KNOWN_WEAK_SECRETS:
        raise RuntimeError(f"JWT_SECRET is a known weak default ({secret!r}); pick a unique one.")
    if len(secret) < MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short: {len(secret)} characters, need {MIN_SECRET_LENGTH}."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> MiraConfig:
    return load_config()


def get_current_admin(authorization: Annotated[str | None, Header()] = None) -> dict:
    """Claims of the bearer token: 401 when absent or invalid, 403 for non-admins."""
    scheme, _, token = (authorization or "").partition(" ")
    if scheme != "Bearer" or not token:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing token")
    try:
        claims = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    if not claims.get("is_admin"):
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Not admin")
    return claims


def actor_id(admin: dict) -> int:
    """Discord user id behind *admin* for audit rows; 0 if ``sub`` isn't numeric."""
    try:
        return int(admin["sub"])
    except (KeyError, TypeError, ValueError):
        return 0
