# Overview: Service-layer operations for session tokens; signing, verification and transport.

"""
Session Token Management

WHY: Stateless signed tokens let the API authenticate a request without a
session table, which keeps login working in degraded mode.

TOKEN: HS256 JWT with payload {"sub": user id, "role": role key, "iat", "exp"}.
The role claim is informational; authorization re-reads the user's current
role on every request (see decorators.require_permission).

TRANSPORT: "Authorization: Bearer <token>" takes precedence over the
HttpOnly auth cookie. There is no server-side revocation; logout clears the
cookie and tokens expire after JWT_EXPIRES_SECONDS.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

import jwt
from flask import current_app

from ..errors import UnauthorizedError


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    role: str
    issued_at: int
    expires_at: int


def issue_token(user_id, role_key: str, expires_in: int | None = None) -> str:
    now = int(time.time())
    lifetime = expires_in if expires_in is not None else current_app.config["JWT_EXPIRES_SECONDS"]
    payload = {"sub": str(user_id), "role": role_key, "iat": now, "exp": now + lifetime}
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET"],
        algorithm=current_app.config["JWT_ALGORITHM"],
    )


def decode_token(token: str) -> SessionClaims:
    """Verify signature and expiry; raise UnauthorizedError otherwise."""
    try:
        payload = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Session expired", code="errors.auth.token_expired")
    except jwt.PyJWTError:
        raise UnauthorizedError("Invalid token", code="errors.auth.invalid_token")

    return SessionClaims(
        user_id=str(payload["sub"]),
        role=str(payload.get("role") or ""),
        issued_at=int(payload["iat"]),
        expires_at=int(payload["exp"]),
    )


def extract_token(req) -> str | None:
    auth_header = req.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        if token:
            return token
    return req.cookies.get(current_app.config["AUTH_COOKIE_NAME"]) or None


def set_auth_cookie(response, token: str):
    response.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        token,
        max_age=current_app.config["JWT_EXPIRES_SECONDS"],
        httponly=True,
        secure=current_app.config["AUTH_COOKIE_SECURE"],
        samesite="Lax",
    )
    return response


def clear_auth_cookie(response):
    response.delete_cookie(current_app.config["AUTH_COOKIE_NAME"], httponly=True, samesite="Lax")
    return response
