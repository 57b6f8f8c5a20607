"""Budget service for managing budgets."""

import copy
import threading
from typing import Any, Dict
import logging

from shared.storage import KeyValueStore, BUDGETS_KEY
from shared.validators import (
    VALID_PERIODS,
    validate_amount,
    validate_period,
    validate_period_key
)
from shared.exceptions import StorageError, ValidationError

logger = logging.getLogger(__name__)


class BudgetService:
    """
    Budget store mapping (period, period key) to an amount.

    Persisted shape: {"monthly": {"YYYY-MM": amount}, "weekly": {"YYYY-MM-DD": amount}}.
    A missing entry means no budget is set for that period.
    """

    def __init__(self, storage: KeyValueStore):
        """
        Initialize budget service and load persisted budgets.

        Args:
            storage: Key-value store holding the budget mapping
        """
        self.storage = storage
        self._lock = threading.RLock()
        self._budgets = self._load_budgets()

    def _load_budgets(self) -> Dict[str, Dict[str, float]]:
        stored = self.storage.load(BUDGETS_KEY) or {}
        if not isinstance(stored, dict):
            raise StorageError("Stored budgets must be a mapping")

        budgets = {period: {} for period in VALID_PERIODS}
        for period, entries in stored.items():
            if period not in budgets:
                logger.warning(f"Ignoring unknown budget period {period!r}")
                continue
            if not isinstance(entries, dict):
                raise StorageError(f"Stored {period} budgets must be a mapping")

            for key, amount in entries.items():
                try:
                    budgets[period][validate_period_key(period, key)] = float(validate_amount(amount))
                except ValidationError as e:
                    logger.error(f"Invalid stored {period} budget {key!r}: {e}")
                    raise StorageError(f"Invalid stored {period} budget: {str(e)}")

        logger.info(f"Loaded {sum(len(v) for v in budgets.values())} budgets")
        return budgets

    def set_budget(self, period: str, period_key: Any, amount: Any) -> float:
        """
        Set (or overwrite) the budget for a period.

        Args:
            period: Budget period (monthly/weekly)
            period_key: YYYY-MM for monthly, the Monday YYYY-MM-DD for weekly
            amount: Budget amount (positive)

        Returns:
            Stored amount

        Raises:
            ValidationError: If the period is unknown
            InvalidDateError: If the period key is malformed
            InvalidAmountError: If the amount is not positive
            StorageError: If the budgets cannot be saved
        """
        period = validate_period(period)
        period_key = validate_period_key(period, period_key)
        amount = float(validate_amount(amount))

        with self._lock:
            budgets = copy.deepcopy(self._budgets)
            budgets[period][period_key] = amount
            self.storage.save(BUDGETS_KEY, budgets)
            self._budgets = budgets

        logger.info(f"Set {period} budget for {period_key} to {amount}")
        return amount

    def get_budget(self, period: str, period_key: str) -> float:
        """Budget amount for a period, 0.0 when none is set."""
        return self._budgets.get(period, {}).get(period_key, 0.0)

    def get_monthly_budget(self, month_key: str) -> float:
        return self.get_budget('monthly', month_key)

    def list_budgets(self) -> Dict[str, Dict[str, float]]:
        """Copy of the full budget mapping."""
        return copy.deepcopy(self._budgets)

    def clear(self) -> None:
        """Drop every budget."""
        with self._lock:
            self.storage.remove(BUDGETS_KEY)
            self._budgets = {period: {} for period in VALID_PERIODS}

        logger.info("Cleared all budgets")
