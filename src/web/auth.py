"""
Admin access checks.

Two ways in, both reducing to a boolean:
- browser session: `admin_session` cookie set by the login form / API
- automation: `Authorization: Bearer <ADMIN_TOKEN>`
"""

import hashlib
import hmac
import logging

from fastapi import Request, Response

from src.infrastructure.config import get_settings

logger = logging.getLogger(__name__)

SESSION_SALT = "review-hub:admin-session"


def session_value(password: str) -> str:
    """Cookie value for a logged-in admin; rotating the password logs everyone out."""
    return hashlib.sha256(f"{SESSION_SALT}:{password}".encode()).hexdigest()


def password_matches(candidate: str) -> bool:
    expected = get_settings().admin.password
    return bool(expected) and hmac.compare_digest(candidate.encode(), expected.encode())


def has_admin_session(request: Request) -> bool:
    admin = get_settings().admin
    cookie = request.cookies.get(admin.session_cookie)
    if not cookie or not admin.password:
        return False
    return hmac.compare_digest(cookie, session_value(admin.password))


def has_admin_token(request: Request) -> bool:
    token = get_settings().admin.token
    header = request.headers.get("authorization", "").strip()
    bearer = header[7:] if header.startswith("Bearer ") else ""
    return bool(token) and bool(bearer) and hmac.compare_digest(bearer, token)


def is_admin(request: Request) -> bool:
    return has_admin_session(request) or has_admin_token(request)


def set_session_cookie(response: Response):
    admin = get_settings().admin
    response.set_cookie(
        key=admin.session_cookie,
        value=session_value(admin.password),
        max_age=admin.session_max_age,
        path="/",
        httponly=True,
        secure=True,
        samesite="lax",
    )


def clear_session_cookie(response: Response):
    response.delete_cookie(get_settings().admin.session_cookie, path="/")
