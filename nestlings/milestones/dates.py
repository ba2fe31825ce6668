"""Calendar helpers that place milestone windows on a family's timeline."""
from __future__ import annotations

import calendar
import math
from datetime import date
from typing import Any

AVERAGE_MONTH_DAYS = 30.44


def reference_date(profile: Any) -> date | None:
    """Birth date when known, otherwise the due date. Month 0 of the timeline."""
    if profile is None:
        return None
    return profile.birth_date or profile.due_date


def add_months(value: date, months: int) -> date:
    """Shift by whole calendar months, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def milestone_window(month_start: int, month_end: int, reference: date) -> tuple[date, date]:
    return add_months(reference, month_start), add_months(reference, month_end)


def current_month_index(reference: date, today: date | None = None) -> int:
    """Whole months since ``reference``; negative before birth."""
    today = today or date.today()
    return math.floor((today - reference).days / AVERAGE_MONTH_DAYS)
