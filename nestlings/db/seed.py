from __future__ import annotations

import logging

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from ..auth.users import seed_demo_users
from ..milestones.repository import seed_reference_data
from . import models  # noqa: F401  registers tables on Base.metadata
from .session import Base, SessionLocal, engine

logger = logging.getLogger(__name__)


def init_db(bind: Engine = engine, session_factory: sessionmaker = SessionLocal) -> None:
    """Create tables and seed milestones, AI categories and demo users. Idempotent."""
    Base.metadata.create_all(bind=bind)
    with session_factory() as db:
        seed_reference_data(db)
        seed_demo_users(db)
    logger.info("Database ready at %s", bind.url.render_as_string(hide_password=True))
