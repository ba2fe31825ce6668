from __future__ import annotations

from datetime import date

from pydantic import BaseModel


class MilestoneOut(BaseModel):
    id: str
    label: str
    description: str
    month_start: int
    month_end: int
    summary: str | None = None


class AiCategoryOut(BaseModel):
    id: str
    label: str
    description: str | None = None


class MilestoneWindowOut(MilestoneOut):
    start_date: date
    end_date: date
    current: bool = False


class TimelineOut(BaseModel):
    reference_date: date
    current_month: int
    milestones: list[MilestoneWindowOut]
