"""Expense service for managing expenses."""

import uuid
import threading
from typing import Any, List, Optional
import logging
from pydantic import ValidationError as ModelValidationError

from shared.storage import KeyValueStore, EXPENSES_KEY
from shared.periods import date_key, end_of_week, parse_month_key
from shared.validators import (
    validate_amount,
    validate_category,
    validate_date,
    validate_required_fields,
    sanitize_string
)
from shared.exceptions import (
    ValidationError,
    NotFoundError,
    ConflictError,
    StorageError
)
from expenses.models import Expense

logger = logging.getLogger(__name__)


class ExpenseService:
    """
    Expense store backed by an injected key-value store.

    The full collection lives in memory and is written through to the store
    on every mutation. Reads always see the latest committed collection.
    """

    def __init__(self, storage: KeyValueStore):
        """
        Initialize expense service and load persisted expenses.

        Args:
            storage: Key-value store holding the expense collection

        Raises:
            StorageError: If the stored collection cannot be read
        """
        self.storage = storage
        self._lock = threading.RLock()
        self._expenses: List[Expense] = self._load_expenses()

    def _load_expenses(self) -> List[Expense]:
        records = self.storage.load(EXPENSES_KEY)
        if records is None:
            return []

        if not isinstance(records, list):
            raise StorageError("Stored expenses must be a list")

        expenses = []
        for record in records:
            try:
                validate_required_fields(record, ['id', 'amount', 'category', 'date'])
                expenses.append(self._build_expense(
                    expense_id=record['id'],
                    amount=record['amount'],
                    category=record['category'],
                    description=record.get('description', ''),
                    date=record['date']
                ))
            except (TypeError, ValidationError, ModelValidationError) as e:
                logger.error(f"Invalid stored expense {record!r}: {e}")
                raise StorageError(f"Invalid stored expense: {str(e)}")

        logger.info(f"Loaded {len(expenses)} expenses")
        return expenses

    def _commit(self, expenses: List[Expense]) -> None:
        # Persist first so a failed save leaves the in-memory snapshot untouched
        self.storage.save(EXPENSES_KEY, [expense.to_record() for expense in expenses])
        self._expenses = expenses

    @staticmethod
    def _build_expense(
        expense_id: str,
        amount: Any,
        category: str,
        description: Optional[str],
        date: Any
    ) -> Expense:
        """Validate raw fields and build an expense."""
        if not expense_id or not isinstance(expense_id, str):
            raise ValidationError("Expense ID must be a non-empty string")

        return Expense(
            id=expense_id,
            amount=float(validate_amount(amount)),
            category=validate_category(category),
            description=sanitize_string(description),
            date=validate_date(date)
        )

    def _index_of(self, expense_id: str) -> int:
        for index, expense in enumerate(self._expenses):
            if expense.id == expense_id:
                return index
        raise NotFoundError("Expense not found")

    def add_expense(
        self,
        amount: Any,
        category: str,
        description: Optional[str],
        date: Any,
        expense_id: Optional[str] = None
    ) -> Expense:
        """
        Create a new expense.

        Args:
            amount: Expense amount (positive)
            category: Expense category
            description: Free-text description, trimmed
            date: Expense date (date or YYYY-MM-DD)
            expense_id: Caller-supplied ID (generated when omitted)

        Returns:
            Created expense

        Raises:
            ValidationError: If validation fails
            ConflictError: If the ID is already used
            StorageError: If the collection cannot be saved
        """
        expense = self._build_expense(
            expense_id or str(uuid.uuid4()),
            amount,
            category,
            description,
            date
        )

        with self._lock:
            if any(existing.id == expense.id for existing in self._expenses):
                raise ConflictError(f"Expense {expense.id} already exists")

            self._commit(self._expenses + [expense])

        logger.info(f"Created expense {expense.id} in category {expense.category}")
        return expense

    def update_expense(
        self,
        expense_id: str,
        amount: Any,
        category: str,
        description: Optional[str],
        date: Any
    ) -> Expense:
        """
        Replace every field of an expense except its ID.

        Returns:
            Updated expense

        Raises:
            NotFoundError: If expense not found
            ValidationError: If validation fails
            StorageError: If the collection cannot be saved
        """
        updated = self._build_expense(expense_id, amount, category, description, date)

        with self._lock:
            index = self._index_of(expense_id)
            expenses = list(self._expenses)
            expenses[index] = updated
            self._commit(expenses)

        logger.info(f"Updated expense {expense_id}")
        return updated

    def delete_expense(self, expense_id: str) -> None:
        """
        Delete expense.

        Raises:
            NotFoundError: If expense not found
            StorageError: If the collection cannot be saved
        """
        with self._lock:
            self._index_of(expense_id)
            self._commit([e for e in self._expenses if e.id != expense_id])

        logger.info(f"Deleted expense {expense_id}")

    def clear(self) -> None:
        """Delete every expense and drop the stored collection."""
        with self._lock:
            self.storage.remove(EXPENSES_KEY)
            self._expenses = []

        logger.info("Cleared all expenses")

    def get_expense(self, expense_id: str) -> Expense:
        """
        Get expense by ID.

        Raises:
            NotFoundError: If expense not found
        """
        return self._expenses[self._index_of(expense_id)]

    def list_expenses(self) -> List[Expense]:
        """All expenses in insertion order."""
        return list(self._expenses)

    def by_exact_date(self, day: Any) -> List[Expense]:
        """Expenses recorded on the given date."""
        key = date_key(day)
        return [e for e in self._expenses if e.date == key]

    def by_month(self, month_key: str) -> List[Expense]:
        """Expenses whose date falls in the YYYY-MM month."""
        key = parse_month_key(month_key).strftime('%Y-%m')
        return [e for e in self._expenses if e.date.startswith(key)]

    def by_week(self, week_key: Any) -> List[Expense]:
        """Expenses dated within [week_key, week_key + 6 days], both ends included."""
        start = date_key(week_key)
        end = end_of_week(start)
        return [e for e in self._expenses if start <= e.date <= end]

    def months(self) -> List[str]:
        """Distinct month keys that have expenses, newest first."""
        return sorted({e.month_key for e in self._expenses}, reverse=True)

    def count(self) -> int:
        return len(self._expenses)

