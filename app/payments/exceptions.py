"""
Payment-specific exceptions for contribution and subscription operations.

Exception Hierarchy:
    PaymentError (base for payment domain)
    ├── PaymentValidationError - Bad contribution terms (amount, tier)
    ├── VerificationError - Provider subscription does not match the order
    ├── ActivationError - Subscription activation failed (wraps the cause)
    └── PaymentProcessingError - Payment processing failures
        ├── GatewayError - Base for all PayPal gateway errors
        │   ├── GatewayNotConfiguredError - Host has no PayPal credentials
        │   ├── GatewayRequestError - Provider rejected the request (permanent)
        │   ├── GatewayUnavailableError - Transport/5xx/429 (transient, retry)
        │   └── GatewayTimeoutError - Request timeout (transient, retry)
        └── StripeError - Base for all Stripe errors
            ├── StripeCardDeclinedError - Card declined (permanent)
            ├── StripeInvalidRequestError - Invalid request params (permanent)
            ├── StripeRateLimitError - Rate limited (transient, retry)
            └── StripeAPIUnavailableError - API unavailable (transient, retry)

    InvalidStateTransitionError - FSM transition not allowed (inherits ConflictError)

Usage:
    from payments.exceptions import ActivationError, VerificationError

    try:
        activator.activate(order, payment_method)
    except ActivationError as e:
        if isinstance(e.cause, VerificationError):
            # The contributor submitted a subscription that doesn't match
            ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ConflictError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    Inherits from BaseApplicationError for consistent API error responses.
    """

    default_error_code: str = "PAYMENT_ERROR"


class PaymentValidationError(PaymentError):
    """
    Raised when contribution terms are invalid.

    Use for:
    - Amount below the platform minimum
    - Amount below a tier's fixed or minimum amount
    - Tier belonging to another account

    Example:
        if amount < MINIMUM_CONTRIBUTION_AMOUNT:
            raise PaymentValidationError(
                "Invalid amount.",
                error_code="INVALID_AMOUNT",
                details={"amount": amount},
            )
    """

    default_error_code: str = "PAYMENT_VALIDATION_ERROR"


class VerificationError(PaymentError):
    """
    Raised when a provider-side subscription cannot be trusted.

    Contributors create PayPal subscriptions in their browser, so the
    subscription id they send back is untrusted input. Verification
    rejects subscriptions that are not approved, that point to a plan
    we did not create for this account/tier, or whose plan amount
    differs from the order.
    """

    default_error_code: str = "SUBSCRIPTION_VERIFICATION_FAILED"


class ActivationError(PaymentError):
    """
    Raised when activating a provider subscription fails.

    The original exception is kept in ``cause`` (and chained as
    ``__cause__``), so callers can tell a verification failure apart
    from a gateway failure.

    Attributes:
        cause: The exception that aborted the activation
    """

    default_error_code: str = "SUBSCRIPTION_ACTIVATION_FAILED"

    def __init__(
        self,
        message: str,
        cause: BaseException,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        details["cause"] = type(cause).__name__
        cause_code = getattr(cause, "error_code", None)
        if cause_code:
            details["cause_error_code"] = cause_code
        super().__init__(message, error_code=error_code, details=details)
        self.cause = cause


class PaymentProcessingError(PaymentError):
    """Raised when a payment backend fails to process a request."""

    default_error_code: str = "PAYMENT_PROCESSING_ERROR"


# =============================================================================
# PayPal Gateway Exceptions
# =============================================================================


class GatewayError(PaymentProcessingError):
    """
    Base exception for all PayPal gateway errors.

    Attributes:
        status_code: HTTP status returned by PayPal (None for transport errors)
        is_retryable: Whether the call can be retried safely

    Note:
        Nothing in the subscription core retries automatically. The
        flag is informational for callers that own a retry policy.
    """

    default_error_code: str = "PAYPAL_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, error_code=error_code, details=details)
        self.status_code = status_code


class GatewayNotConfiguredError(GatewayError):
    """Raised when the host has no connected PayPal account."""

    default_error_code: str = "PAYPAL_NOT_CONNECTED"


class GatewayRequestError(GatewayError):
    """
    PayPal rejected the request (4xx).

    This is a permanent error: the same request will fail again.
    ``details`` carries PayPal's ``name`` and ``debug_id`` when present.
    """

    default_error_code: str = "PAYPAL_REQUEST_REJECTED"


class GatewayUnavailableError(GatewayError):
    """PayPal is unreachable, rate limiting us or failing (5xx)."""

    default_error_code: str = "PAYPAL_UNAVAILABLE"
    is_retryable: bool = True


class GatewayTimeoutError(GatewayError):
    """
    PayPal call timed out.

    IMPORTANT: the operation may have succeeded on PayPal's side.
    """

    default_error_code: str = "PAYPAL_TIMEOUT"
    is_retryable: bool = True


# =============================================================================
# Stripe-Specific Exceptions
# =============================================================================


class StripeError(PaymentProcessingError):
    """
    Base exception for all Stripe-related errors.

    Attributes:
        stripe_code: Stripe's internal error code
        decline_code: Card decline code (if applicable)
        is_retryable: Whether the operation can be retried
    """

    default_error_code: str = "STRIPE_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        stripe_code: str | None = None,
        decline_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if stripe_code:
            details["stripe_code"] = stripe_code
        if decline_code:
            details["decline_code"] = decline_code
        super().__init__(message, error_code=error_code, details=details)
        self.stripe_code = stripe_code
        self.decline_code = decline_code


class StripeCardDeclinedError(StripeError):
    """Card was declined by the issuing bank. Do not retry with the same card."""

    default_error_code: str = "CARD_DECLINED"
    is_retryable: bool = False


class StripeInvalidRequestError(StripeError):
    """
    Invalid request parameters sent to Stripe.

    Note:
        This usually indicates a bug in our code, not a user error.
    """

    default_error_code: str = "INVALID_STRIPE_REQUEST"
    is_retryable: bool = False


class StripeRateLimitError(StripeError):
    """Rate limited by Stripe API."""

    default_error_code: str = "STRIPE_RATE_LIMITED"
    is_retryable: bool = True


class StripeAPIUnavailableError(StripeError):
    """Stripe API is temporarily unavailable (network issues, 5xx)."""

    default_error_code: str = "STRIPE_UNAVAILABLE"
    is_retryable: bool = True


# =============================================================================
# Concurrency Control Exceptions
# =============================================================================


class InvalidStateTransitionError(ConflictError):
    """
    Raised when an order status transition is not allowed.

    Wraps django-fsm's TransitionNotAllowed with our standard error format.

    Example:
        try:
            order.cancel()
        except TransitionNotAllowed:
            raise InvalidStateTransitionError(
                f"Cannot cancel order from '{order.status}' status",
                details={"current_status": order.status, "transition": "cancel"},
            )
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


__all__ = [
    # Payment domain
    "PaymentError",
    "PaymentValidationError",
    "VerificationError",
    "ActivationError",
    "PaymentProcessingError",
    # PayPal gateway
    "GatewayError",
    "GatewayNotConfiguredError",
    "GatewayRequestError",
    "GatewayUnavailableError",
    "GatewayTimeoutError",
    # Stripe-specific
    "StripeError",
    "StripeCardDeclinedError",
    "StripeInvalidRequestError",
    "StripeRateLimitError",
    "StripeAPIUnavailableError",
    # Concurrency control
    "InvalidStateTransitionError",
]
