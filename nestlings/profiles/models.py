from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from ..products.models import clean_strings
from .budget import BudgetTier

BabyGender = Literal["girl", "boy", "surprise"]


class ProfileIn(BaseModel):
    due_date: date | None = None
    birth_date: date | None = None
    baby_gender: BabyGender = "surprise"
    baby_nickname: str | None = Field(default=None, max_length=100)
    budget: BudgetTier = BudgetTier.balanced
    color_palette: str | None = Field(default=None, max_length=20)
    material_focus: str | None = Field(default=None, max_length=20)
    eco_priority: bool = False
    preferred_categories: list[str] = Field(default_factory=list)

    @field_validator("preferred_categories", mode="before")
    @classmethod
    def _normalize_categories(cls, value: Any) -> list[str]:
        return clean_strings(value if isinstance(value, list) else None)


class ProfileOut(BaseModel):
    user_id: str
    due_date: date | None = None
    birth_date: date | None = None
    baby_gender: BabyGender | None = None
    baby_nickname: str | None = None
    budget: BudgetTier | None = None
    color_palette: str | None = None
    material_focus: str | None = None
    eco_priority: bool = False
    preferred_categories: list[str] = Field(default_factory=list)
    updated_at: datetime | None = None
