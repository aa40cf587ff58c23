"""Session helpers (issue tokens, cookies, validation)."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import Request, Response

from pawprint.core.config import get_settings
from pawprint.core.errors import AuthenticationRequired
from pawprint.db.models import User
from pawprint.repositories.sql_repository import SQLRepository

SESSION_COOKIE_NAME = "session"

_repository = SQLRepository()


def issue_session(user_id: int) -> str:
    """Create a new session token for the account and persist it."""
    ttl = max(60, get_settings().session_ttl_seconds)
    return _repository.create_user_session(user_id, ttl)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    return value.astimezone(timezone.utc) if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _request_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization") or ""
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(SESSION_COOKIE_NAME)


def account_for_token(token: Optional[str]) -> Optional[User]:
    if not token:
        return None
    entity = _repository.get_user_session(token)
    if not entity:
        return None
    if entity.expires_at and _as_utc(entity.expires_at) < datetime.now(timezone.utc):
        _repository.delete_user_session(token)
        return None
    return _repository.find_user_by_id(entity.user_id)


def current_account(request: Request) -> User:
    """FastAPI dependency resolving the logged-in account or failing with 401."""
    account = account_for_token(_request_token(request))
    if account is None:
        raise AuthenticationRequired("Authentication required")
    return account


def set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        httponly=True,
        secure=settings.app_env == "prod",
        samesite="strict",
        max_age=settings.session_ttl_seconds,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")


def end_session(request: Request) -> None:
    """Revoke the token presented with the request, if any."""
    token = _request_token(request)
    if token:
        _repository.delete_user_session(token)
