"""Custom exceptions for the expense tracker application."""


class ExpenseTrackerException(Exception):
    """Base exception for all expense tracker errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ValidationError(ExpenseTrackerException):
    """Raised when input validation fails."""


class InvalidDateError(ValidationError):
    """Raised when a date or period key cannot be parsed."""

    def __init__(self, message: str = "Invalid date"):
        super().__init__(message)


class InvalidAmountError(ValidationError):
    """Raised when an amount is not a positive number."""

    def __init__(self, message: str = "Invalid amount"):
        super().__init__(message)


class NotFoundError(ExpenseTrackerException):
    """Raised when a resource is not found."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class ConflictError(ExpenseTrackerException):
    """Raised when there's a conflict (e.g., duplicate resource)."""

    def __init__(self, message: str = "Resource conflict"):
        super().__init__(message)


class StorageError(ExpenseTrackerException):
    """Raised when storage operations fail."""

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(message)
