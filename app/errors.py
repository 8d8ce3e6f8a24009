# app/errors.py
"""
Error taxonomy for the ledger core.

- ValidationError: input rejected before any write (odometer, exchange rate, ranges)
- NotFoundError:   a referenced vehicle/category/counterparty/transaction does not exist
- StoreError:      the underlying database call failed (never retried here)
"""

from typing import Any, Dict


class LedgerError(Exception):
    """Base exception for ledger errors."""

    pass


class ValidationError(LedgerError):
    """Raised when an input is rejected before it reaches the store."""

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        self.message = message
        self.field = field
        self.value = value
        super().__init__(message)


class NotFoundError(LedgerError):
    """Raised when a referenced record does not exist."""

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class StoreError(LedgerError):
    """Raised when the store fails; wraps the original database exception."""

    def __init__(self, operation: str, reason: str = ""):
        self.operation = operation
        self.reason = reason
        message = f"Store operation failed: {operation}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


def error_response(message: str, status: str = "error", **kwargs: Any) -> Dict[str, Any]:
    """Standard JSON body for error responses."""
    response: Dict[str, Any] = {
        "status": status,
        "message": message,
    }
    response.update(kwargs)
    return response
