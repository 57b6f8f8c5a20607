#!/usr/bin/env python3
"""
Seed data script for trying out the expense tracker.
Populates the configured store with demo expenses and a monthly budget,
then logs the insights computed from them.
"""

import argparse
import logging
import os
import sys

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from shared.storage import create_store
from shared.periods import today_key, start_of_month
from shared.exceptions import ExpenseTrackerException
from expenses.service import ExpenseService
from budgets.service import BudgetService
from insights.engine import InsightsEngine
from insights.policy import InsightPolicy

logger = logging.getLogger(__name__)

DEMO_EXPENSES = [
    {'expense_id': 'd1', 'amount': 150.50, 'category': 'Food', 'description': 'Lunch at cafe'},
    {'expense_id': 'd2', 'amount': 40.00, 'category': 'Transport', 'description': 'Bus fare'},
    {'expense_id': 'd3', 'amount': 650.99, 'category': 'Shopping', 'description': 'New shirt'},
    {'expense_id': 'd4', 'amount': 500.00, 'category': 'Entertainment', 'description': 'Movie tickets'},
]

DEMO_MONTHLY_BUDGET = 15000


def seed_expenses(expense_service: ExpenseService, day: str) -> int:
    """Add the demo expenses dated on day."""
    for data in DEMO_EXPENSES:
        expense_service.add_expense(date=day, **data)

    logger.info(f"Created {len(DEMO_EXPENSES)} demo expenses")
    return len(DEMO_EXPENSES)


def seed_budget(budget_service: BudgetService, day: str) -> float:
    """Set the demo monthly budget for the month of day."""
    return budget_service.set_budget('monthly', start_of_month(day), DEMO_MONTHLY_BUDGET)


def main(argv=None):
    """Main function."""
    parser = argparse.ArgumentParser(description="Seed demo expenses and budget")
    parser.add_argument('--backend', help="Storage backend: memory, file or s3 (default: STORAGE_BACKEND)")
    parser.add_argument('--reset', action='store_true', help="Remove existing expenses and budgets first")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=os.environ.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    try:
        store = create_store(args.backend)
        expense_service = ExpenseService(store)
        budget_service = BudgetService(store)

        if args.reset:
            expense_service.clear()
            budget_service.clear()

        day = today_key()
        if expense_service.count() == 0:
            seed_expenses(expense_service, day)
            seed_budget(budget_service, day)
        else:
            logger.info(f"Store already holds {expense_service.count()} expenses, skipping seed")

        engine = InsightsEngine(expense_service, budget_service, InsightPolicy.from_env())
        for insight in engine.generate_insights(day):
            logger.info(f"[{insight.kind.value}] {insight.message}")
    except ExpenseTrackerException as e:
        logger.error(f"Seeding failed: {e.message}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
