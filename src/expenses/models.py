"""Expense data models."""

from typing import Any, Dict
from pydantic import BaseModel, ConfigDict, Field


class Expense(BaseModel):
    """Expense model."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique expense identifier")
    amount: float = Field(..., gt=0, description="Expense amount")
    category: str = Field(..., description="Expense category")
    description: str = Field("", description="Free-text description")
    date: str = Field(..., description="Expense date (YYYY-MM-DD)")

    @property
    def month_key(self) -> str:
        return self.date[:7]

    def to_record(self) -> Dict[str, Any]:
        """JSON-serializable record as persisted in the store."""
        return self.model_dump(mode='json')
