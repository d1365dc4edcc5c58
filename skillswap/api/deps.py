"""
skillswap.api.deps — FastAPI dependency injection
===================================================
"""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, status
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from skillswap.config import SkillSwapConfig, load_config
from skillswap.database.engine import create_db_engine
from skillswap.database.models import User, UserRole
from skillswap.engine.live import LiveQueryHub
from skillswap.services import user_service

_WEAK_SECRETS = frozenset({
    "skillswap-dev-secret-change-me",
    "change-me",
    "changeme",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> SkillSwapConfig:
    return load_config()


@lru_cache(maxsize=1)
def get_hub() -> LiveQueryHub:
    return LiveQueryHub()


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------
def issue_token(user: User, *, ttl_hours: int = 12) -> str:
    payload = {
        "sub": user.id,
        "name": user.name,
        "role": user.role,
        "exp": datetime.now(UTC) + timedelta(hours=ttl_hours),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Return the JWT payload; raises :class:`InvalidTokenError`."""
    payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    if not payload.get("sub"):
        raise InvalidTokenError("Token has no subject")
    return payload


def _bearer(authorization: str | None) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing token")
    return authorization.split(" ", 1)[1]


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------
def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    engine: Engine = Depends(get_engine),
) -> User:
    """Resolve the bearer token to a live, non-banned member."""
    try:
        payload = decode_token(_bearer(authorization))
    except InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")

    user = user_service.get_user(engine, payload["sub"])
    if user is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    if user.is_banned:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "This account has been disabled.")
    return user


def get_current_admin(user: User = Depends(get_current_user)) -> User:
    """Like :func:`get_current_user`, but the stored role must be admin."""
    if user.role != UserRole.ADMIN:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Not admin")
    return user
