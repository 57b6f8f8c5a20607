"""Spending aggregation and rule-based insights."""

from collections import defaultdict
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional
import logging

from shared.periods import (
    parse_date,
    date_key,
    start_of_week,
    previous_week,
    start_of_month,
    previous_month
)
from expenses.models import Expense
from expenses.service import ExpenseService
from budgets.service import BudgetService
from insights.models import Insight, InsightKind, InsightLevel, BudgetState
from insights.policy import InsightPolicy

logger = logging.getLogger(__name__)

SET_BUDGET_TIP = "Tip: Set a monthly budget to get critical performance feedback."
START_COMPARING = "Start comparing! You have expenses this week, but none recorded last week."


def round_percent(value: float) -> int:
    """Round a percentage half-up to a whole number."""
    return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


class InsightsEngine:
    """
    Computes totals, period summaries and insights from the current
    expense and budget snapshots.

    The engine keeps no state of its own: every call recomputes from the
    services, so repeated calls with unchanged data return equal results.
    """

    def __init__(
        self,
        expense_service: ExpenseService,
        budget_service: BudgetService,
        policy: Optional[InsightPolicy] = None
    ):
        """
        Initialize insights engine.

        Args:
            expense_service: Source of expense records
            budget_service: Source of budget amounts
            policy: Thresholds and display settings (default: InsightPolicy())
        """
        self.expenses = expense_service
        self.budgets = budget_service
        self.policy = policy or InsightPolicy()

    @staticmethod
    def _reference_date(now: Any) -> date:
        return date.today() if now is None else parse_date(now)

    def format_amount(self, amount: float) -> str:
        return f"{self.policy.currency_symbol}{amount:,.2f}"

    @staticmethod
    def calculate_totals(expenses: Iterable[Expense]) -> Dict[str, Any]:
        """
        Sum expense amounts overall and per category.

        Categories without spending are absent from category_totals.
        Category order follows first appearance in the input. Sums are not
        rounded; total is the sum of the category values.

        Args:
            expenses: Expenses to aggregate (may be empty)

        Returns:
            Dictionary with total and category_totals
        """
        by_category = defaultdict(float)

        for expense in expenses:
            by_category[expense.category] += expense.amount

        category_totals = dict(by_category)

        return {
            'total': sum(category_totals.values(), 0.0),
            'category_totals': category_totals
        }

    def daily_summary(self, day: Any = None) -> Dict[str, Any]:
        """Expenses and total for a single day (default: today)."""
        key = date_key(self._reference_date(day))
        expenses = self.expenses.by_exact_date(key)

        return {
            'date': key,
            'expenses': expenses,
            'total': self.calculate_totals(expenses)['total']
        }

    def weekly_summary(self, now: Any = None) -> Dict[str, Any]:
        """
        Totals for the week containing now and the week before it.

        Raises:
            InvalidDateError: If now is malformed
        """
        current_week_key = start_of_week(self._reference_date(now))
        last_week_key = previous_week(current_week_key)

        return {
            'current_week_key': current_week_key,
            'last_week_key': last_week_key,
            'current': self.calculate_totals(self.expenses.by_week(current_week_key)),
            'last': self.calculate_totals(self.expenses.by_week(last_week_key))
        }

    def monthly_summary(self, now: Any = None) -> Dict[str, Any]:
        """
        Totals for the month containing now and the previous month, plus the
        monthly budget.

        Raises:
            InvalidDateError: If now is malformed
        """
        current_month_key = start_of_month(self._reference_date(now))
        prev_month_key = previous_month(current_month_key)

        current = self.calculate_totals(self.expenses.by_month(current_month_key))
        prev = self.calculate_totals(self.expenses.by_month(prev_month_key))
        change = round(current['total'] - prev['total'], 2)

        if change > 0:
            direction = 'up'
        elif change < 0:
            direction = 'down'
        else:
            direction = 'flat'

        return {
            'current_month_key': current_month_key,
            'prev_month_key': prev_month_key,
            'current': current,
            'prev': prev,
            'budget': self.budgets.get_monthly_budget(current_month_key),
            'change': change,
            'direction': direction
        }

    def classify_budget(self, budget: float, spent: float) -> BudgetState:
        """Place month-to-date spending against a budget; first matching rule wins."""
        if budget <= 0:
            return BudgetState.UNSET

        remaining = budget - spent
        percent_used = spent / budget * 100

        if remaining >= 0 and percent_used < self.policy.near_limit_percent:
            return BudgetState.UNDER
        if remaining < 0:
            return BudgetState.OVER
        return BudgetState.NEAR_LIMIT

    def budget_status(self, now: Any = None) -> Dict[str, Any]:
        """Progress of the current month against its budget."""
        monthly = self.monthly_summary(now)
        budget = monthly['budget']
        spent = monthly['current']['total']
        remaining = round(budget - spent, 2)
        percent_used = round(spent / budget * 100, 2) if budget > 0 else 0.0
        state = self.classify_budget(budget, spent)

        return {
            'month_key': monthly['current_month_key'],
            'budget': budget,
            'spent': round(spent, 2),
            'remaining': remaining,
            'percent_used': percent_used,
            'is_over_budget': state == BudgetState.OVER,
            'status': state
        }

    def monthly_history(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Total per month with expenses, newest first."""
        if limit is None:
            limit = self.policy.history_months

        return [
            {
                'month': month_key,
                'total': self.calculate_totals(self.expenses.by_month(month_key))['total']
            }
            for month_key in self.expenses.months()[:limit]
        ]

    def _weekly_insights(self, weekly: Dict[str, Any]) -> List[Insight]:
        current = weekly['current']['total']
        last = weekly['last']['total']

        if current > 0 and last > 0:
            diff = current - last
            percent_diff = round_percent(abs(diff) / last * 100)

            if diff > 0:
                return [Insight(
                    kind=InsightKind.WEEKLY_COMPARISON,
                    level=InsightLevel.WARNING,
                    message=f"Warning: Your spending is {percent_diff}% higher than last week. Be mindful!"
                )]
            if diff < 0:
                return [Insight(
                    kind=InsightKind.WEEKLY_COMPARISON,
                    level=InsightLevel.POSITIVE,
                    message=f"Great job! Your spending is {percent_diff}% lower than last week. Keep saving!"
                )]
            return []

        if current > 0:
            # Nothing last week: no percentage to report
            return [Insight(
                kind=InsightKind.WEEKLY_COMPARISON,
                level=InsightLevel.INFO,
                message=START_COMPARING
            )]

        return []

    def _budget_insight(self, monthly: Dict[str, Any]) -> Insight:
        budget = monthly['budget']
        spent = monthly['current']['total']
        state = self.classify_budget(budget, spent)

        if state == BudgetState.UNSET:
            return Insight(kind=InsightKind.BUDGET_STATUS, level=InsightLevel.INFO, message=SET_BUDGET_TIP)

        remaining = budget - spent
        percent_used = round_percent(spent / budget * 100)

        if state == BudgetState.UNDER:
            return Insight(
                kind=InsightKind.BUDGET_STATUS,
                level=InsightLevel.POSITIVE,
                message=(
                    f"Excellent! You've only used {percent_used}% of your monthly budget. "
                    f"Remaining: {self.format_amount(remaining)}."
                )
            )

        if state == BudgetState.OVER:
            return Insight(
                kind=InsightKind.BUDGET_STATUS,
                level=InsightLevel.CRITICAL,
                message=(
                    f"Critical Warning: You are over budget by {self.format_amount(abs(remaining))} "
                    f"this month. Immediate action needed!"
                )
            )

        return Insight(
            kind=InsightKind.BUDGET_STATUS,
            level=InsightLevel.WARNING,
            message=(
                f"Caution: You are close to your budget limit ({percent_used}% used). "
                f"Be careful for the rest of the month."
            )
        )

    def _category_insights(self, monthly: Dict[str, Any]) -> List[Insight]:
        category_totals = monthly['current']['category_totals']
        if not category_totals:
            return []

        # max() keeps the first category seen on ties
        top_category = max(category_totals, key=category_totals.get)
        insights = [Insight(
            kind=InsightKind.TOP_CATEGORY,
            level=InsightLevel.INFO,
            message=(
                f"Observation: Your highest expense category this month is {top_category}, "
                f"costing {self.format_amount(category_totals[top_category])}."
            )
        )]

        if top_category in self.policy.savings_categories:
            insights.append(Insight(
                kind=InsightKind.SUGGESTION,
                level=InsightLevel.INFO,
                message=(
                    f"Suggestion: Try to find free or cheaper alternatives for {top_category} "
                    f"this week to maximize savings."
                )
            ))

        return insights

    def generate_insights(self, now: Any = None) -> List[Insight]:
        """
        Build the ordered insight list.

        Order: weekly comparison, budget status, top category (and its
        savings suggestion). The budget status always yields exactly one
        insight.

        Args:
            now: Reference date (default: today)

        Returns:
            List of insights

        Raises:
            InvalidDateError: If now is malformed
        """
        reference = self._reference_date(now)
        weekly = self.weekly_summary(reference)
        monthly = self.monthly_summary(reference)

        insights = self._weekly_insights(weekly)
        insights.append(self._budget_insight(monthly))
        insights.extend(self._category_insights(monthly))

        logger.debug(f"Generated {len(insights)} insights for {reference.isoformat()}")
        return insights

    def insight_messages(self, now: Any = None) -> List[str]:
        """Ordered insight messages without their tags."""
        return [insight.message for insight in self.generate_insights(now)]
