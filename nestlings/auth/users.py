from __future__ import annotations

import logging
from typing import Any

import bcrypt
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db.models import User

logger = logging.getLogger(__name__)

DEMO_USERS = (
    ("user", "user123", "user"),
    ("admin", "admin123", "admin"),
)


class LoginRequest(BaseModel):
    username: str
    password: str


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def seed_demo_users(db: Session) -> None:
    """Create the demo accounts if they are missing."""
    created = 0
    for username, password, role in DEMO_USERS:
        if db.query(User.id).filter(User.username == username).first():
            continue
        db.add(User(username=username, password_hash=_hash_password(password), role=role))
        created += 1
    db.commit()
    if created:
        logger.info("Seeded %d demo users", created)


def authenticate(db: Session, username: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{id, username, role}`` or ``None``."""
    user = db.query(User).filter(User.username == username).first()
    if user and _verify_password(password, user.password_hash):
        return {"id": user.id, "username": user.username, "role": user.role}
    return None
