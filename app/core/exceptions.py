"""
Base exception classes for application-wide error handling.

Every domain error carries a human-readable message, a machine-readable
error code and an optional details dict, so callers (API layers, tasks,
admin tooling) can surface them consistently.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── PermissionDeniedError - Authorization failures
    └── ConflictError - State conflicts (invalid status transitions)

Usage:
    from core.exceptions import PermissionDeniedError

    if not user.is_admin_of(payment_method.collective):
        raise PermissionDeniedError(
            "You don't have permission to use this payment method",
            error_code="PAYMENT_METHOD_FORBIDDEN",
            details={"payment_method_id": str(payment_method.id)},
        )

    try:
        ...
    except BaseApplicationError as e:
        payload = e.to_dict()
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (ids, amounts, field errors)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to a dictionary for API responses.

        Example:
            {
                "error": "Invalid amount.",
                "error_code": "INVALID_AMOUNT",
                "details": {"amount": 50}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when a user lacks permission for an operation.

    Example:
        if not user.is_admin_of(order.from_collective):
            raise PermissionDeniedError(
                "You don't have permission to cancel this contribution",
                error_code="ORDER_FORBIDDEN",
            )
    """

    default_error_code: str = "PERMISSION_DENIED"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with the current resource state.

    Use for status transitions the current state does not allow.
    """

    default_error_code: str = "CONFLICT"
