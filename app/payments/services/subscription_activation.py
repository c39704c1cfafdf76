"""
PayPal subscription activation.

Once a contributor approved a PayPal subscription, we attach it to
their order and ask PayPal to start billing. The sequence spans our
database and PayPal, which are not transactionally linked:

    fetch -> verify -> cancel previous (if any) -> persist -> activate

If any step fails, the order's subscription is restored to the state it
had before the attempt and an ActivationError wrapping the original
exception is raised. A subscription created by the attempt stays linked
to the order, inactive, so the PayPal id is never lost locally.

Usage:
    activator = PaypalSubscriptionActivator(gateway=PaypalGateway.from_settings())
    try:
        activator.activate(order, payment_method)
    except ActivationError as e:
        logger.warning("Activation failed", extra={"cause": type(e.cause).__name__})

Note:
    Callers must serialize activations of the same order. Two concurrent
    attempts can both snapshot and restore inconsistently.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.utils import timezone

from core.services import BaseService

from payments.exceptions import ActivationError, GatewayError
from payments.models import Subscription
from payments.services.subscription_verifier import PaypalSubscriptionVerifier

if TYPE_CHECKING:
    from collectives.models import Collective

    from payments.adapters import PaypalGateway
    from payments.models import Order, PaymentMethod


CHANGED_PAYMENT_METHOD_REASON = "Changed payment method"


@dataclass(frozen=True)
class SubscriptionSnapshot:
    """
    The subscription fields touched by an activation attempt.

    ``subscription_id`` is None when the order had no subscription yet.
    """

    subscription_id: object | None
    is_managed_externally: bool = False
    paypal_subscription_id: str | None = None
    stripe_subscription_id: str | None = None

    @classmethod
    def capture(cls, order: Order) -> SubscriptionSnapshot:
        subscription = order.subscription
        if subscription is None:
            return cls(subscription_id=None)
        return cls(
            subscription_id=subscription.pk,
            is_managed_externally=subscription.is_managed_externally,
            paypal_subscription_id=subscription.paypal_subscription_id,
            stripe_subscription_id=subscription.stripe_subscription_id,
        )

    def restore(self, order: Order) -> None:
        """
        Put the order's subscription back in the captured state.

        A subscription created by the failed attempt is kept, linked and
        inactive: subscriptions are never deleted, and PayPal may have
        activated it before the error reached us (timeouts).
        """
        if self.subscription_id is None:
            return

        subscription = order.subscription
        if SubscriptionSnapshot.capture(order) == self:
            return
        subscription.is_managed_externally = self.is_managed_externally
        subscription.paypal_subscription_id = self.paypal_subscription_id
        subscription.stripe_subscription_id = self.stripe_subscription_id
        subscription.save(
            update_fields=[
                "is_managed_externally",
                "paypal_subscription_id",
                "stripe_subscription_id",
                "updated_at",
            ]
        )


class PaypalSubscriptionActivator(BaseService):
    """
    Attach an approved PayPal subscription to an order and activate it.

    Args:
        gateway: PayPal gateway
        verifier: Subscription verifier (default: PaypalSubscriptionVerifier)
    """

    def __init__(
        self,
        gateway: PaypalGateway,
        verifier: PaypalSubscriptionVerifier | None = None,
    ):
        self.gateway = gateway
        self.verifier = verifier or PaypalSubscriptionVerifier()

    def activate(self, order: Order, payment_method: PaymentMethod) -> Order:
        """
        Activate the PayPal subscription held by ``payment_method`` for ``order``.

        Args:
            order: Recurring order to attach the subscription to
            payment_method: PayPal payment method; its token is the subscription id

        Returns:
            The order, now linked to an externally managed subscription

        Raises:
            ActivationError: Any step failed. ``cause`` holds the original
                exception (VerificationError, GatewayError, ...).
        """
        logger = self.get_logger()
        paypal_subscription_id = payment_method.token
        log_context = {
            "order_id": str(order.id),
            "payment_method_id": str(payment_method.id),
            "paypal_subscription_id": paypal_subscription_id,
        }

        snapshot = SubscriptionSnapshot.capture(order)

        try:
            host = order.collective.get_host_collective()
            paypal_subscription = self.gateway.get_subscription(host, paypal_subscription_id)
            self.verifier.verify(order, paypal_subscription)

            subscriber = paypal_subscription.get("subscriber") or {}
            payment_method.name = subscriber.get("email_address") or ""
            payment_method.save(update_fields=["name", "updated_at"])

            existing = order.subscription
            if existing is not None:
                previous_id = existing.paypal_subscription_id
                if previous_id and previous_id != paypal_subscription_id:
                    self._cancel_previous(host, previous_id, log_context)

                existing.is_managed_externally = True
                existing.stripe_subscription_id = None
                existing.paypal_subscription_id = paypal_subscription_id
                existing.save(
                    update_fields=[
                        "is_managed_externally",
                        "stripe_subscription_id",
                        "paypal_subscription_id",
                        "updated_at",
                    ]
                )
            else:
                self._create_subscription(order, paypal_subscription_id)

            self.gateway.activate_subscription(host, paypal_subscription_id)
        except Exception as e:
            logger.error(
                "PayPal subscription activation failed",
                extra={**log_context, "error_type": type(e).__name__},
                exc_info=True,
            )
            self._restore(order, snapshot, log_context)
            raise ActivationError("Failed to activate PayPal subscription", cause=e) from e

        logger.info("PayPal subscription activated", extra=log_context)
        return order

    def _cancel_previous(self, host: Collective, previous_id: str, log_context: dict) -> None:
        """Cancel the replaced PayPal subscription. Failures don't block the new one."""
        try:
            self.gateway.cancel_subscription(
                host, previous_id, reason=CHANGED_PAYMENT_METHOD_REASON
            )
        except GatewayError as e:
            self.get_logger().warning(
                "Could not cancel previous PayPal subscription",
                extra={
                    **log_context,
                    "previous_subscription_id": previous_id,
                    "error_code": e.error_code,
                },
            )

    def _create_subscription(self, order: Order, paypal_subscription_id: str) -> Subscription:
        now = timezone.now()
        with self.atomic():
            subscription = Subscription.objects.create(
                paypal_subscription_id=paypal_subscription_id,
                amount=order.total_amount,
                currency=order.currency,
                interval=order.interval,
                quantity=order.quantity,
                is_active=False,
                is_managed_externally=True,
                # PayPal charges right away and drives the schedule from there
                next_charge_date=now,
                next_period_start=now,
                charge_number=0,
            )
            order.subscription = subscription
            order.save(update_fields=["subscription", "updated_at"])
        return subscription

    def _restore(self, order: Order, snapshot: SubscriptionSnapshot, log_context: dict) -> None:
        try:
            snapshot.restore(order)
        except Exception:
            self.get_logger().error(
                "Could not restore subscription after failed activation",
                extra={**log_context, "subscription_id": str(snapshot.subscription_id)},
                exc_info=True,
            )
