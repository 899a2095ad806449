from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Response
from jose import JWTError, jwt

from onboard.core.config import settings
from onboard.core.errors import AuthError

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

ROLE_USER = "user"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class Identity:
    """Пользователь из access-токена."""

    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def create_access_token(user_id: int, role: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    claims = {"sub": str(user_id), "role": role, "type": "access", "exp": expire}
    return jwt.encode(claims, settings.JWT_ACCESS_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_refresh_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    )
    claims = {"sub": str(user_id), "type": "refresh", "exp": expire}
    return jwt.encode(claims, settings.JWT_REFRESH_SECRET, algorithm=settings.JWT_ALGORITHM)


def issue_tokens(user_id: int, role: str) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(user_id, role),
        refresh_token=create_refresh_token(user_id),
    )


def _decode(token: str, secret: str, expected_type: str) -> dict:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise AuthError("Invalid or expired token") from exc
    if payload.get("type") != expected_type or payload.get("sub") is None:
        raise AuthError("Invalid or expired token")
    return payload


def _subject(payload: dict) -> int:
    try:
        return int(payload["sub"])
    except (TypeError, ValueError) as exc:
        raise AuthError("Invalid or expired token") from exc


def decode_access_token(token: str) -> Identity:
    payload = _decode(token, settings.JWT_ACCESS_SECRET, "access")
    role = payload.get("role")
    if role not in (ROLE_USER, ROLE_ADMIN):
        raise AuthError("Invalid or expired token")
    return Identity(user_id=_subject(payload), role=role)


def decode_refresh_token(token: str) -> int:
    payload = _decode(token, settings.JWT_REFRESH_SECRET, "refresh")
    return _subject(payload)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def set_auth_cookies(response: Response, tokens: TokenPair) -> None:
    common = {"httponly": True, "secure": settings.COOKIE_SECURE, "samesite": "lax", "path": "/"}
    response.set_cookie(
        ACCESS_COOKIE,
        tokens.access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        **common,
    )
    response.set_cookie(
        REFRESH_COOKIE,
        tokens.refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        **common,
    )


def clear_auth_cookies(response: Response) -> None:
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(name, path="/", secure=settings.COOKIE_SECURE, httponly=True, samesite="lax")
