"""Validation utilities for the expense tracker application."""

from typing import Any, Dict, List, Optional
from decimal import Decimal, InvalidOperation

from .exceptions import ValidationError, InvalidAmountError, InvalidDateError
from .periods import date_key, parse_month_key, start_of_week


# Expense categories
VALID_CATEGORIES = [
    "Food",
    "Transport",
    "Housing",
    "Entertainment",
    "Bills",
    "Shopping",
    "Other"
]

# Budget periods
VALID_PERIODS = ["monthly", "weekly"]


def validate_amount(amount: Any) -> Decimal:
    """
    Validate monetary amount.

    Args:
        amount: Amount to validate (number or numeric string)

    Returns:
        Validated amount as Decimal

    Raises:
        InvalidAmountError: If amount is missing, not numeric or not positive
    """
    if amount is None or isinstance(amount, bool):
        raise InvalidAmountError("Amount is required")

    try:
        decimal_amount = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmountError("Invalid amount format")

    if not decimal_amount.is_finite():
        raise InvalidAmountError("Invalid amount format")

    if decimal_amount <= 0:
        raise InvalidAmountError("Amount must be greater than 0")

    return decimal_amount


def validate_date(value: Any) -> str:
    """
    Validate a date and return its YYYY-MM-DD key.

    Raises:
        InvalidDateError: If date is invalid
    """
    return date_key(value)


def validate_category(category: str) -> str:
    """
    Validate expense category.

    Args:
        category: Category to validate

    Returns:
        Validated category

    Raises:
        ValidationError: If category is invalid
    """
    if not category:
        raise ValidationError("Category is required")

    if category not in VALID_CATEGORIES:
        raise ValidationError(
            f"Invalid category. Must be one of: {', '.join(VALID_CATEGORIES)}"
        )

    return category


def validate_period(period: str) -> str:
    """
    Validate budget period.

    Raises:
        ValidationError: If period is invalid
    """
    if not period or not isinstance(period, str):
        raise ValidationError("Period is required")

    period = period.lower()

    if period not in VALID_PERIODS:
        raise ValidationError(
            f"Invalid period. Must be one of: {', '.join(VALID_PERIODS)}"
        )

    return period


def validate_period_key(period: str, period_key: Any) -> str:
    """
    Validate the bucket key of a budget period.

    Monthly keys are YYYY-MM; weekly keys must be the Monday starting the week.

    Raises:
        InvalidDateError: If the key is malformed or not a week start
    """
    if period == 'monthly':
        return parse_month_key(period_key).strftime('%Y-%m')

    key = date_key(period_key)
    if start_of_week(key) != key:
        raise InvalidDateError(f"Weekly budget key must be a Monday, got {key}")
    return key


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> None:
    """
    Validate that required fields are present in data.

    Args:
        data: Data dictionary to validate
        required_fields: List of required field names

    Raises:
        ValidationError: If any required field is missing
    """
    missing_fields = [field for field in required_fields if field not in data or data[field] is None]

    if missing_fields:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing_fields)}"
        )


def sanitize_string(value: Optional[str]) -> str:
    """
    Sanitize string input by trimming surrounding whitespace.

    Args:
        value: String to sanitize (None becomes an empty string)

    Returns:
        Sanitized string

    Raises:
        ValidationError: If string is invalid
    """
    if value is None:
        return ''

    if not isinstance(value, str):
        raise ValidationError("Value must be a string")

    # Remove leading/trailing whitespace
    value = value.strip()

    return value
