"""
Operations on recurring contributions requested by contributors.

SubscriptionService is the entry point used by the API layer to change a
running contribution:

- update_payment_method: swap the payment method of an order
- update_subscription_details: change amount, tier and interval
- update_subscription_with_paypal: switch an order to a PayPal subscription
- cancel_subscription: stop a contribution

Usage:
    from payments.services import SubscriptionService

    service = SubscriptionService(gateway=PaypalGateway.from_settings())
    order = service.update_subscription_details(order, tier=tier, amount=2500)

All methods take domain objects that were already loaded and
authenticated. Expected failures raise core/payments exceptions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django_fsm import can_proceed

from collectives.models import Tier
from core.exceptions import PermissionDeniedError
from core.services import BaseService

from payments.adapters import PaypalGateway
from payments.exceptions import InvalidStateTransitionError, PaymentValidationError
from payments.services.paypal_subscriptions import (
    cancel_paypal_subscription,
    create_paypal_payment_method_for_subscription,
    is_paypal_subscription_payment_method,
)
from payments.services.subscription_activation import PaypalSubscriptionActivator
from payments.state_machines import OrderStatus

if TYPE_CHECKING:
    from authentication.models import User

    from payments.models import Order, PaymentMethod


# The amount can never be less than $1.00
MINIMUM_CONTRIBUTION_AMOUNT = 100


def is_managed_externally(payment_method: PaymentMethod | None) -> bool:
    """Whether the provider of ``payment_method`` schedules recurring charges itself."""
    # Import cycle: payments.providers -> payments.services.subscription_activation
    # -> payments.services -> this module
    from payments.providers import PROVIDERS

    if payment_method is None:
        return False
    provider_class = PROVIDERS.get((payment_method.service, payment_method.type))
    return bool(provider_class and provider_class.is_recurring_managed_externally)


class SubscriptionService(BaseService):
    """
    Mutations of recurring contributions.

    Args:
        gateway: PayPal gateway (default: built from settings)
        activator: PayPal subscription activator (default: built on the gateway)
    """

    def __init__(
        self,
        gateway: PaypalGateway | None = None,
        activator: PaypalSubscriptionActivator | None = None,
    ):
        self.gateway = gateway or PaypalGateway.from_settings()
        self.activator = activator or PaypalSubscriptionActivator(gateway=self.gateway)

    # =========================================================================
    # Payment Method
    # =========================================================================

    def update_payment_method(
        self,
        user: User,
        order: Order,
        payment_method: PaymentMethod,
    ) -> Order:
        """
        Make ``payment_method`` the payment method of ``order``.

        A PayPal subscription payment method is activated first. An order
        in ERROR goes back to ACTIVE.

        Raises:
            PermissionDeniedError: User is not an admin of the payment method's owner
            ActivationError: The PayPal subscription could not be activated
        """
        if not user.is_admin_of(payment_method.collective):
            raise PermissionDeniedError(
                "You don't have permission to use this payment method",
                error_code="PAYMENT_METHOD_FORBIDDEN",
                details={"payment_method_id": str(payment_method.id)},
            )

        log_context = {
            "order_id": str(order.id),
            "payment_method_id": str(payment_method.id),
            "user_id": user.pk,
        }

        if is_paypal_subscription_payment_method(payment_method):
            # The activator already points the subscription at PayPal
            self.activator.activate(order, payment_method)
            with self.atomic():
                self._set_payment_method(order, payment_method)
            self.get_logger().info("Order payment method updated", extra=log_context)
            return order

        was_managed_externally = is_managed_externally(order.payment_method)
        now_managed_externally = is_managed_externally(payment_method)

        with self.atomic():
            self._set_payment_method(order, payment_method)
            subscription = order.subscription
            if subscription is not None and was_managed_externally != now_managed_externally:
                subscription.is_managed_externally = now_managed_externally
                subscription.paypal_subscription_id = None
                subscription.save(
                    update_fields=[
                        "is_managed_externally",
                        "paypal_subscription_id",
                        "updated_at",
                    ]
                )

        self.get_logger().info(
            "Order payment method updated",
            extra={**log_context, "is_managed_externally": now_managed_externally},
        )
        return order

    def update_subscription_with_paypal(
        self,
        user: User,
        order: Order,
        paypal_subscription_id: str,
    ) -> Order:
        """
        Switch ``order`` to the PayPal subscription ``paypal_subscription_id``.

        Raises:
            ActivationError: The PayPal subscription could not be activated
        """
        payment_method = create_paypal_payment_method_for_subscription(
            order, user, paypal_subscription_id
        )
        self.activator.activate(order, payment_method)

        order.payment_method = payment_method
        order.save(update_fields=["payment_method", "updated_at"])
        return order

    # =========================================================================
    # Amount, Tier and Interval
    # =========================================================================

    def update_subscription_details(
        self,
        order: Order,
        tier: Tier | None,
        amount: int,
    ) -> Order:
        """
        Change the amount and tier of ``order``.

        The interval follows the tier when the tier imposes one. Passing
        ``tier=None`` turns the order into a custom contribution.

        Raises:
            PaymentValidationError: Amount or tier is not acceptable
        """
        self.check_subscription_details(order, tier, amount)

        subscription = order.subscription
        order_fields = {"tier", "updated_at"}
        subscription_fields = set()

        if amount != order.total_amount:
            order.total_amount = amount
            order_fields.add("total_amount")
            if subscription is not None:
                subscription.amount = amount
                subscription_fields.add("amount")

        new_interval = order.interval
        if tier is not None and tier.interval and tier.interval != Tier.Interval.FLEXIBLE:
            new_interval = tier.interval

        if new_interval != order.interval:
            order.interval = new_interval
            order_fields.add("interval")
            if subscription is not None:
                subscription.interval = new_interval
                subscription_fields.add("interval")

        order.tier = tier

        with self.atomic():
            order.save(update_fields=order_fields)
            if subscription is not None and subscription_fields:
                subscription.save(update_fields={*subscription_fields, "updated_at"})

        self.get_logger().info(
            "Contribution details updated",
            extra={
                "order_id": str(order.id),
                "tier_id": str(tier.id) if tier is not None else None,
                "amount": order.total_amount,
                "interval": order.interval,
            },
        )
        return order

    @staticmethod
    def check_subscription_details(order: Order, tier: Tier | None, amount: int) -> None:
        """
        Validate new contribution terms.

        Raises:
            PaymentValidationError: With the reason the terms are rejected
        """
        if tier is not None and tier.collective_id != order.collective_id:
            raise PaymentValidationError(
                f"This tier (#{tier.id}) doesn't belong to the given Collective #{order.collective_id}",
                error_code="TIER_COLLECTIVE_MISMATCH",
                details={"tier_id": str(tier.id), "collective_id": str(order.collective_id)},
            )

        if amount < MINIMUM_CONTRIBUTION_AMOUNT:
            raise PaymentValidationError(
                "Invalid amount.",
                error_code="INVALID_AMOUNT",
                details={"amount": amount, "minimum": MINIMUM_CONTRIBUTION_AMOUNT},
            )

        if tier is None:
            return

        if tier.is_flexible_amount:
            if tier.minimum_amount is not None and amount < tier.minimum_amount:
                raise PaymentValidationError(
                    "Amount is less than minimum value allowed for this Tier.",
                    error_code="AMOUNT_BELOW_TIER_MINIMUM",
                    details={"amount": amount, "minimum": tier.minimum_amount},
                )
        # TODO: reject any amount different from tier.amount once platform
        # fees and taxes are computed on top of the tier amount
        elif tier.amount is not None and amount < tier.amount:
            raise PaymentValidationError(
                "Amount is incorrect for this Tier.",
                error_code="AMOUNT_INCORRECT_FOR_TIER",
                details={"amount": amount, "tier_amount": tier.amount},
            )

    # =========================================================================
    # Cancellation
    # =========================================================================

    def cancel_subscription(
        self,
        user: User,
        order: Order,
        reason: str | None = None,
    ) -> Order:
        """
        Stop the contribution of ``order``.

        An externally managed subscription is cancelled at the provider
        first. The local subscription is deactivated, never deleted.

        Raises:
            PermissionDeniedError: User is not an admin of the contributing account
            InvalidStateTransitionError: Order cannot be cancelled
            GatewayError: The provider refused or failed the cancellation
        """
        if not user.is_admin_of(order.from_collective):
            raise PermissionDeniedError(
                "You don't have permission to cancel this contribution",
                error_code="ORDER_FORBIDDEN",
                details={"order_id": str(order.id)},
            )

        if not can_proceed(order.cancel):
            raise InvalidStateTransitionError(
                f"Cannot cancel order from '{order.status}' status",
                details={"current_status": order.status, "transition": "cancel"},
            )

        subscription = order.subscription
        if subscription is not None and subscription.is_managed_externally:
            cancel_paypal_subscription(self.gateway, order, reason)

        with self.atomic():
            if subscription is not None:
                subscription.deactivate()
                subscription.save(update_fields=["is_active", "deactivated_at", "updated_at"])
            order.cancel()
            order.save(update_fields=["status", "updated_at"])

        self.get_logger().info(
            "Contribution cancelled",
            extra={"order_id": str(order.id), "user_id": user.pk, "reason": reason},
        )
        return order

    @staticmethod
    def _set_payment_method(order: Order, payment_method: PaymentMethod) -> None:
        order.payment_method = payment_method
        if order.status == OrderStatus.ERROR:
            order.activate()
        order.save(update_fields=["payment_method", "status", "updated_at"])
