from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.orm import Session

from ..db.models import AiCategory, Milestone
from .catalog import DEFAULT_AI_CATEGORIES, DEFAULT_MILESTONES
from .dates import current_month_index, milestone_window
from .models import AiCategoryOut, MilestoneOut, MilestoneWindowOut, TimelineOut

logger = logging.getLogger(__name__)


def seed_reference_data(db: Session) -> None:
    """Upsert the default milestones and AI categories."""
    for order, item in enumerate(DEFAULT_MILESTONES):
        start, end = item["month_range"]
        db.merge(Milestone(
            id=item["id"],
            label=item["label"],
            description=item["description"],
            month_start=start,
            month_end=end,
            sort_order=order,
            summary=item.get("summary"),
        ))
    for item in DEFAULT_AI_CATEGORIES:
        db.merge(AiCategory(**item))
    db.commit()
    logger.info(
        "Seeded %d milestones and %d AI categories",
        len(DEFAULT_MILESTONES),
        len(DEFAULT_AI_CATEGORIES),
    )


def _to_out(row: Milestone) -> MilestoneOut:
    return MilestoneOut(
        id=row.id,
        label=row.label,
        description=row.description,
        month_start=row.month_start,
        month_end=row.month_end,
        summary=row.summary,
    )


def list_milestones(db: Session, age_months: int | None = None) -> list[MilestoneOut]:
    """Return milestones in timeline order.

    With ``age_months``, only windows that contain that age are returned
    (both bounds inclusive, so boundary months belong to two windows).
    """
    query = db.query(Milestone)
    if age_months is not None:
        query = query.filter(
            Milestone.month_start <= age_months,
            Milestone.month_end >= age_months,
        )
    return [_to_out(row) for row in query.order_by(Milestone.sort_order).all()]


def get_milestone(db: Session, milestone_id: str) -> MilestoneOut | None:
    row = db.get(Milestone, milestone_id)
    return _to_out(row) if row else None


def list_ai_categories(db: Session) -> list[AiCategoryOut]:
    rows = db.query(AiCategory).order_by(AiCategory.id).all()
    return [AiCategoryOut(id=r.id, label=r.label, description=r.description) for r in rows]


def milestone_timeline(db: Session, reference: date, today: date | None = None) -> TimelineOut:
    """Every milestone with calendar dates counted from ``reference``.

    A window is ``current`` when the current month index falls inside it,
    bounds inclusive like the age lookup.
    """
    month = current_month_index(reference, today)
    windows = []
    for milestone in list_milestones(db):
        start, end = milestone_window(milestone.month_start, milestone.month_end, reference)
        windows.append(MilestoneWindowOut(
            **milestone.model_dump(),
            start_date=start,
            end_date=end,
            current=milestone.month_start <= month <= milestone.month_end,
        ))
    return TimelineOut(reference_date=reference, current_month=month, milestones=windows)
