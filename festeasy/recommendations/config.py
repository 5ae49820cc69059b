from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AssistantConfig:
    """
    Tuning for the recommendation resolver.

    ``strict_totals`` rejects model output whose totalCost disagrees with the
    sum of its item prices, or that names providers outside the candidates.
    """

    fallback_size: int = 3
    strict_totals: bool = os.getenv("ASSISTANT_STRICT_TOTALS", "true").strip().lower() != "false"
    total_tolerance: float = 0.01


DEFAULT_ASSISTANT_CONFIG = AssistantConfig()
