from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field


def _default_category_weights() -> dict[str, float]:
    return {"nursing": 1.2, "sleeping": 1.1, "safety": 1.1}


def _default_budget_thresholds() -> dict[str, float]:
    # Whole currency units, not cents.
    return {"essentials": 120.0, "balanced": 220.0, "premium": math.inf}


@dataclass(frozen=True)
class ScorerConfig:
    category_weights: Mapping[str, float] = field(default_factory=_default_category_weights)
    budget_thresholds: Mapping[str, float] = field(default_factory=_default_budget_thresholds)
    fallback_budget: str = "balanced"
    category_bonus: float = 1.5
    eco_bonus: float = 1.0
    within_budget_bonus: float = 0.6
    over_budget_penalty: float = 0.4
    max_results: int = 8


DEFAULT_SCORER_CONFIG = ScorerConfig()
