from __future__ import annotations

from collections.abc import Callable

from fastapi import HTTPException, Request


def get_current_user(request: Request) -> dict | None:
    """Session user, or ``None``. Sessions without a user id count as logged out."""
    user = request.session.get("user")
    if isinstance(user, dict) and user.get("id"):
        return user
    return None


def require_user(request: Request) -> dict:
    user = get_current_user(request)
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_role(role: str) -> Callable[[Request], dict]:
    """Dependency factory: 401 when logged out, 403 when the role differs."""

    def _dependency(request: Request) -> dict:
        user = require_user(request)
        if user.get("role") != role:
            raise HTTPException(status_code=403, detail=f"{role.capitalize()} access required")
        return user

    return _dependency


require_admin = require_role("admin")
