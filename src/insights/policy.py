"""Tunable thresholds and display settings for insight generation."""

import os
from typing import Tuple
from pydantic import BaseModel, ConfigDict, Field


class InsightPolicy(BaseModel):
    """Insight rule constants."""

    model_config = ConfigDict(frozen=True)

    near_limit_percent: float = Field(80.0, gt=0, description="Budget use (%) that triggers the caution message")
    savings_categories: Tuple[str, ...] = Field(
        ("Entertainment", "Shopping"),
        description="Top categories that also get a savings suggestion"
    )
    currency_symbol: str = Field("₹", description="Symbol used when amounts appear in messages")
    history_months: int = Field(12, gt=0, description="Default number of months in the spending history")

    @classmethod
    def from_env(cls) -> "InsightPolicy":
        """Build a policy from INSIGHTS_* environment variables, falling back to defaults."""
        overrides = {}

        if os.environ.get('INSIGHTS_NEAR_LIMIT_PERCENT'):
            overrides['near_limit_percent'] = os.environ['INSIGHTS_NEAR_LIMIT_PERCENT']

        if os.environ.get('INSIGHTS_SAVINGS_CATEGORIES'):
            overrides['savings_categories'] = tuple(
                name.strip()
                for name in os.environ['INSIGHTS_SAVINGS_CATEGORIES'].split(',')
                if name.strip()
            )

        if os.environ.get('INSIGHTS_CURRENCY_SYMBOL'):
            overrides['currency_symbol'] = os.environ['INSIGHTS_CURRENCY_SYMBOL']

        if os.environ.get('INSIGHTS_HISTORY_MONTHS'):
            overrides['history_months'] = os.environ['INSIGHTS_HISTORY_MONTHS']

        return cls(**overrides)
