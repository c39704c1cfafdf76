"""
Credit card provider backed by Stripe.

Cards are charged by us: a one-time order is charged once and marked
PAID, a recurring order is charged for its first period and gets an
internally scheduled Subscription whose ``next_charge_date`` tells the
charging job when to bill again.

A failed charge leaves the order in ERROR. Retrying it reuses the
subscription an earlier attempt left on the order, so an order never
owns more than one.
"""

from __future__ import annotations

import calendar
from datetime import datetime
from typing import TYPE_CHECKING

from django.utils import timezone
from django_fsm import can_proceed

from core.services import BaseService

from payments.adapters import ChargeParams, IdempotencyKeyGenerator, StripeAdapter
from payments.exceptions import PaymentProcessingError, StripeError
from payments.models import Subscription
from payments.providers.base import PaymentMethodProvider
from payments.state_machines import ContributionInterval

if TYPE_CHECKING:
    from payments.models import Order


def add_interval(value: datetime, interval: str) -> datetime:
    """
    Move ``value`` one month or one year ahead.

    Days missing from the target month are clamped: Jan 31 + 1 month is
    the last day of February.
    """
    if interval == ContributionInterval.YEAR:
        year, month = value.year + 1, value.month
    else:
        # value.month is 1-based, so this is the 0-based index of the next month
        year, month_index = divmod(value.year * 12 + value.month, 12)
        month = month_index + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


class CreditCardProvider(PaymentMethodProvider):
    """
    Provider for payment methods of service=stripe, type=creditcard.

    Args:
        stripe_adapter: Adapter used to charge cards (default: StripeAdapter)
    """

    recurring = True
    is_recurring_managed_externally = False

    def __init__(self, stripe_adapter: StripeAdapter | None = None):
        self.stripe_adapter = stripe_adapter or StripeAdapter()

    def process_order(self, order: Order) -> Order:
        """
        Charge the first (or only) period of ``order``.

        Raises:
            StripeError: The charge failed. The order is moved to ERROR
                unless it already is.
            PaymentProcessingError: Stripe did not complete the charge
        """
        logger = self.get_logger()
        payment_method = order.payment_method
        log_context = {
            "order_id": str(order.id),
            "payment_method_id": str(payment_method.id),
            "amount": order.total_amount,
            "currency": order.currency,
        }

        try:
            result = self.stripe_adapter.charge(
                ChargeParams(
                    amount_cents=order.total_amount,
                    currency=order.currency,
                    payment_method_id=payment_method.token,
                    customer_id=payment_method.data.get("customer_id"),
                    description=order.description or None,
                    metadata={"order_id": str(order.id)},
                    idempotency_key=IdempotencyKeyGenerator.generate("charge", order.id),
                )
            )
            if not result.succeeded:
                raise PaymentProcessingError(
                    "Payment was not completed",
                    error_code="PAYMENT_INCOMPLETE",
                    details={"payment_intent_id": result.id, "status": result.status},
                )
        except (StripeError, PaymentProcessingError):
            logger.warning("Credit card charge failed", extra=log_context)
            if can_proceed(order.mark_error):
                order.mark_error()
                order.save(update_fields=["status", "updated_at"])
            raise

        with BaseService.atomic():
            if order.is_recurring:
                if order.subscription is None:
                    self._create_subscription(order)
                else:
                    self._renew_subscription(order.subscription, order)
                order.activate()
                order.save(update_fields=["status", "subscription", "updated_at"])
            else:
                order.mark_paid()
                order.save(update_fields=["status", "updated_at"])

        logger.info(
            "Credit card charged",
            extra={**log_context, "payment_intent_id": result.id, "status": order.status},
        )
        return order

    def _create_subscription(self, order: Order) -> Subscription:
        now = timezone.now()
        next_charge_date = add_interval(now, order.interval)
        subscription = Subscription.objects.create(
            amount=order.total_amount,
            currency=order.currency,
            interval=order.interval,
            quantity=order.quantity,
            is_active=True,
            is_managed_externally=False,
            activated_at=now,
            charge_number=1,
            next_charge_date=next_charge_date,
            next_period_start=next_charge_date,
        )
        order.subscription = subscription
        return subscription

    def _renew_subscription(self, subscription: Subscription, order: Order) -> Subscription:
        """Reactivate the subscription an earlier attempt left on ``order``."""
        now = timezone.now()
        next_charge_date = add_interval(now, order.interval)
        subscription.amount = order.total_amount
        subscription.currency = order.currency
        subscription.interval = order.interval
        subscription.quantity = order.quantity
        subscription.is_active = True
        subscription.is_managed_externally = False
        subscription.paypal_subscription_id = None
        subscription.activated_at = subscription.activated_at or now
        subscription.deactivated_at = None
        subscription.charge_number = subscription.charge_number + 1
        subscription.next_charge_date = next_charge_date
        subscription.next_period_start = next_charge_date
        subscription.save(
            update_fields=[
                "amount",
                "currency",
                "interval",
                "quantity",
                "is_active",
                "is_managed_externally",
                "paypal_subscription_id",
                "activated_at",
                "deactivated_at",
                "charge_number",
                "next_charge_date",
                "next_period_start",
                "updated_at",
            ]
        )
        return subscription
