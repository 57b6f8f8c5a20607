"""Insight data models."""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class InsightKind(str, Enum):
    """Which rule produced an insight."""

    WEEKLY_COMPARISON = "weekly_comparison"
    BUDGET_STATUS = "budget_status"
    TOP_CATEGORY = "top_category"
    SUGGESTION = "suggestion"


class InsightLevel(str, Enum):
    """Tone of an insight, for highlighting."""

    POSITIVE = "positive"
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class BudgetState(str, Enum):
    """Outcome of comparing month-to-date spending with the monthly budget."""

    UNSET = "unset"
    UNDER = "under"
    NEAR_LIMIT = "near_limit"
    OVER = "over"


class Insight(BaseModel):
    """A generated feedback message tagged with the rule that produced it."""

    model_config = ConfigDict(frozen=True)

    kind: InsightKind
    level: InsightLevel
    message: str = Field(..., description="Human-readable feedback")
