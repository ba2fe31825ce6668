from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ..db.models import UserProfile
from .budget import map_budget_from_db, map_budget_to_db
from .models import ProfileIn, ProfileOut

logger = logging.getLogger(__name__)


def _to_out(row: UserProfile) -> ProfileOut:
    return ProfileOut(
        user_id=row.user_id,
        due_date=row.due_date,
        birth_date=row.birth_date,
        baby_gender=row.baby_gender,
        baby_nickname=row.baby_nickname,
        budget=map_budget_from_db(row.budget_tier),
        color_palette=row.color_palette,
        material_focus=row.material_focus,
        eco_priority=bool(row.eco_priority),
        preferred_categories=list(row.preferred_categories or []),
        updated_at=row.updated_at,
    )


def get_profile(db: Session, user_id: str) -> ProfileOut | None:
    row = db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
    return _to_out(row) if row else None


def upsert_profile(db: Session, user_id: str, payload: ProfileIn) -> ProfileOut:
    row = db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
    if row is None:
        row = UserProfile(user_id=user_id)
        db.add(row)

    row.due_date = payload.due_date
    row.birth_date = payload.birth_date
    row.baby_gender = payload.baby_gender
    row.baby_nickname = payload.baby_nickname
    row.budget_tier = map_budget_to_db(payload.budget.value)
    row.color_palette = payload.color_palette
    row.material_focus = payload.material_focus
    row.eco_priority = payload.eco_priority
    row.preferred_categories = payload.preferred_categories

    db.commit()
    db.refresh(row)
    logger.info("Saved profile for user %s (budget=%s)", user_id, row.budget_tier)
    return _to_out(row)
