from __future__ import annotations

import secrets

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from sales_api.core.config import get_settings


security = HTTPBasic(auto_error=False, realm="sales")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": 'Basic realm="sales"'})


def _matches(given: str, expected: str) -> bool:
    # compare_digest only accepts ASCII str; compare UTF-8 bytes instead.
    return secrets.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


def require_basic_auth(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    """Return the authenticated username; sale mutations record it as the actor."""
    if credentials is None:
        raise _unauthorized("Authentication required")

    settings = get_settings()
    user_ok = _matches(credentials.username, settings.basic_auth_username)
    password_ok = _matches(credentials.password, settings.basic_auth_password)
    if not (user_ok and password_ok):
        raise _unauthorized("Invalid credentials")
    return credentials.username
