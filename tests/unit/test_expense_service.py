"""Unit tests for expense service."""

import pytest
from unittest.mock import Mock
from datetime import date
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from expenses.service import ExpenseService
from shared.storage import InMemoryStore, EXPENSES_KEY
from shared.exceptions import (
    NotFoundError,
    ConflictError,
    StorageError,
    ValidationError,
    InvalidAmountError,
    InvalidDateError
)


class TestExpenseService:
    """Test cases for ExpenseService."""

    @pytest.fixture
    def store(self):
        """In-memory key-value store."""
        return InMemoryStore()

    @pytest.fixture
    def expense_service(self, store):
        """Create expense service over an empty store."""
        return ExpenseService(store)

    @pytest.fixture
    def sample_expense(self):
        """Sample expense data."""
        return {
            'expense_id': 'exp123',
            'amount': 45.67,
            'category': 'Food',
            'description': '  Groceries run  ',
            'date': '2024-01-15'
        }

    def test_add_expense_success(self, expense_service, store, sample_expense):
        """Test adding an expense persists it."""
        expense = expense_service.add_expense(**sample_expense)

        assert expense.id == 'exp123'
        assert expense.amount == 45.67
        assert expense.description == 'Groceries run'
        assert store.load(EXPENSES_KEY) == [{
            'id': 'exp123',
            'amount': 45.67,
            'category': 'Food',
            'description': 'Groceries run',
            'date': '2024-01-15'
        }]

    def test_add_expense_generates_id(self, expense_service):
        """Test an ID is generated when none is supplied."""
        expense = expense_service.add_expense(10, 'Bills', 'Phone', date(2024, 1, 15))

        assert expense.id
        assert expense.date == '2024-01-15'

    def test_add_expense_duplicate_id(self, expense_service, sample_expense):
        """Test IDs stay unique."""
        expense_service.add_expense(**sample_expense)

        with pytest.raises(ConflictError):
            expense_service.add_expense(**sample_expense)

        assert expense_service.count() == 1

    @pytest.mark.parametrize('amount', [0, -5, 'ten'])
    def test_add_expense_invalid_amount(self, expense_service, sample_expense, amount):
        """Test non-positive or non-numeric amounts are rejected."""
        sample_expense['amount'] = amount

        with pytest.raises(InvalidAmountError):
            expense_service.add_expense(**sample_expense)

        assert expense_service.list_expenses() == []

    def test_add_expense_invalid_date(self, expense_service, sample_expense):
        """Test malformed dates are rejected."""
        sample_expense['date'] = '15/01/2024'

        with pytest.raises(InvalidDateError):
            expense_service.add_expense(**sample_expense)

    def test_add_expense_invalid_category(self, expense_service, sample_expense):
        """Test unknown categories are rejected."""
        sample_expense['category'] = 'InvalidCategory'

        with pytest.raises(ValidationError):
            expense_service.add_expense(**sample_expense)

    def test_get_expense_not_found(self, expense_service):
        """Test getting a non-existent expense."""
        with pytest.raises(NotFoundError, match="Expense not found"):
            expense_service.get_expense('nonexistent')

    def test_update_expense_success(self, expense_service, sample_expense):
        """Test updating replaces every field but the ID."""
        expense_service.add_expense(**sample_expense)

        updated = expense_service.update_expense('exp123', 50.00, 'Transport', ' Taxi ', '2024-01-16')

        assert updated.id == 'exp123'
        assert updated.amount == 50.00
        assert updated.category == 'Transport'
        assert updated.description == 'Taxi'
        assert expense_service.get_expense('exp123') == updated
        assert expense_service.by_exact_date('2024-01-15') == []

    def test_update_expense_not_found(self, expense_service):
        """Test updating a non-existent expense."""
        with pytest.raises(NotFoundError):
            expense_service.update_expense('nonexistent', 10, 'Food', '', '2024-01-15')

    def test_update_expense_validate_amount(self, expense_service, sample_expense):
        """Test that update validates amount."""
        expense_service.add_expense(**sample_expense)

        with pytest.raises(InvalidAmountError):
            expense_service.update_expense('exp123', -10, 'Food', '', '2024-01-15')

        assert expense_service.get_expense('exp123').amount == 45.67

    def test_delete_expense_success(self, expense_service, store, sample_expense):
        """Test deleting an expense."""
        expense_service.add_expense(**sample_expense)

        expense_service.delete_expense('exp123')

        assert expense_service.list_expenses() == []
        assert store.load(EXPENSES_KEY) == []

    def test_delete_expense_not_found(self, expense_service):
        """Test deleting a non-existent expense."""
        with pytest.raises(NotFoundError):
            expense_service.delete_expense('nonexistent')

    def test_clear_removes_collection(self, expense_service, store, sample_expense):
        """Test clearing drops the stored key."""
        expense_service.add_expense(**sample_expense)

        expense_service.clear()

        assert expense_service.count() == 0
        assert store.load(EXPENSES_KEY) is None

    def test_loads_existing_collection(self, store):
        """Test a new service sees previously saved expenses in order."""
        first = ExpenseService(store)
        first.add_expense(10, 'Food', 'a', '2024-01-01', expense_id='e1')
        first.add_expense(20, 'Bills', 'b', '2024-01-02', expense_id='e2')

        second = ExpenseService(store)

        assert [e.id for e in second.list_expenses()] == ['e1', 'e2']

    def test_load_rejects_corrupt_records(self, store):
        """Test invalid stored records surface as StorageError."""
        store.save(EXPENSES_KEY, [{'id': 'x', 'amount': -1, 'category': 'Food', 'date': '2024-01-01'}])

        with pytest.raises(StorageError):
            ExpenseService(store)

    def test_load_rejects_wrong_shape(self, store):
        """Test a non-list payload surfaces as StorageError."""
        store.save(EXPENSES_KEY, {'not': 'a list'})

        with pytest.raises(StorageError):
            ExpenseService(store)

    def test_failed_save_keeps_snapshot(self, expense_service, store, sample_expense):
        """Test a storage failure leaves the in-memory collection unchanged."""
        expense_service.add_expense(**sample_expense)
        store.save = Mock(side_effect=StorageError("disk full"))

        with pytest.raises(StorageError):
            expense_service.add_expense(99, 'Other', 'x', '2024-01-20', expense_id='exp999')

        with pytest.raises(StorageError):
            expense_service.delete_expense('exp123')

        assert [e.id for e in expense_service.list_expenses()] == ['exp123']


class TestExpenseFilters:
    """Test cases for date filters."""

    @pytest.fixture
    def expense_service(self):
        """Expense service holding expenses around a week and month boundary."""
        service = ExpenseService(InMemoryStore())
        service.add_expense(10, 'Food', '', '2025-03-09', expense_id='sun-before')
        service.add_expense(20, 'Food', '', '2025-03-10', expense_id='monday')
        service.add_expense(30, 'Bills', '', '2025-03-12', expense_id='wednesday')
        service.add_expense(40, 'Shopping', '', '2025-03-16', expense_id='sunday')
        service.add_expense(50, 'Other', '', '2025-03-17', expense_id='next-monday')
        service.add_expense(60, 'Housing', '', '2025-02-28', expense_id='february')
        return service

    def test_by_exact_date(self, expense_service):
        """Only expenses on that exact date are returned."""
        assert [e.id for e in expense_service.by_exact_date('2025-03-12')] == ['wednesday']
        assert expense_service.by_exact_date(date(2025, 3, 11)) == []

    def test_by_week_includes_both_ends(self, expense_service):
        """Week key and week key + 6 days are inside; + 7 is outside."""
        ids = [e.id for e in expense_service.by_week('2025-03-10')]

        assert ids == ['monday', 'wednesday', 'sunday']

    def test_by_month(self, expense_service):
        """Month filter matches the YYYY-MM prefix."""
        assert len(expense_service.by_month('2025-03')) == 5
        assert [e.id for e in expense_service.by_month('2025-02')] == ['february']
        assert expense_service.by_month('2025-04') == []

    def test_by_month_invalid_key(self, expense_service):
        """Malformed month keys raise."""
        with pytest.raises(InvalidDateError):
            expense_service.by_month('March')

    def test_months_newest_first(self, expense_service):
        """Distinct months are listed newest first."""
        assert expense_service.months() == ['2025-03', '2025-02']

    def test_reads_see_mutations(self, expense_service):
        """Filters reflect a mutation immediately."""
        expense_service.delete_expense('sunday')
        expense_service.add_expense(5, 'Food', '', '2025-03-11', expense_id='tuesday')

        ids = [e.id for e in expense_service.by_week('2025-03-10')]

        assert ids == ['monday', 'wednesday', 'tuesday']


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
