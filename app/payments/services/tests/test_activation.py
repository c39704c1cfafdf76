"""
Tests for PaypalSubscriptionActivator.

Tests cover:
- First activation of an order (subscription created)
- Replacement of an existing PayPal subscription (old one cancelled)
- Tolerance to a failing cancellation of the old subscription
- Rollback of local state when any step fails
- Rollback failures logged without masking the original error
"""

import logging
from unittest.mock import patch

import pytest
from freezegun import freeze_time

from payments.exceptions import (
    ActivationError,
    GatewayRequestError,
    GatewayTimeoutError,
    GatewayUnavailableError,
    VerificationError,
)
from payments.models import Subscription
from payments.services import PaypalSubscriptionActivator, SubscriptionSnapshot
from payments.state_machines import OrderStatus
from payments.tests.factories import OrderFactory, SubscriptionFactory
from payments.tests.fakes import approved_subscription

NEW_ID = "I-BW452GLLEP1G"


@pytest.fixture
def activator(paypal_gateway):
    return PaypalSubscriptionActivator(gateway=paypal_gateway)


@pytest.fixture
def approved(paypal_gateway, paypal_plan):
    """PayPal answers the subscription lookup with an approved matching subscription."""
    body = approved_subscription(NEW_ID, paypal_plan.id)
    paypal_gateway.responses[f"billing/subscriptions/{NEW_ID}"] = body
    return body


@pytest.fixture
def order_with_paypal_subscription(user, contributor, collective):
    subscription = SubscriptionFactory(
        is_managed_externally=True,
        paypal_subscription_id="I-OLD00000001",
        stripe_subscription_id=None,
    )
    return OrderFactory(
        created_by=user,
        from_collective=contributor,
        collective=collective,
        subscription=subscription,
        status=OrderStatus.ACTIVE,
    )


@pytest.fixture
def order_with_card_subscription(user, contributor, collective):
    subscription = SubscriptionFactory(
        is_managed_externally=False,
        paypal_subscription_id=None,
        stripe_subscription_id="sub_1OaBcD",
    )
    return OrderFactory(
        created_by=user,
        from_collective=contributor,
        collective=collective,
        subscription=subscription,
        status=OrderStatus.ACTIVE,
    )


# =============================================================================
# First Activation
# =============================================================================


class TestFirstActivation:
    @freeze_time("2024-01-15 09:31:00")
    def test_creates_externally_managed_subscription(
        self, activator, paypal_gateway, order, paypal_payment_method, approved
    ):
        result = activator.activate(order, paypal_payment_method)

        order.refresh_from_db()
        subscription = order.subscription
        assert result == order
        assert subscription.is_managed_externally is True
        assert subscription.paypal_subscription_id == NEW_ID
        assert subscription.charge_number == 0
        assert subscription.is_active is False
        assert subscription.amount == 1000
        assert subscription.interval == "month"
        assert subscription.next_charge_date.isoformat() == "2024-01-15T09:31:00+00:00"
        assert subscription.next_period_start == subscription.next_charge_date

    def test_calls_paypal_in_order(self, activator, paypal_gateway, order, paypal_payment_method, approved):
        activator.activate(order, paypal_payment_method)

        assert paypal_gateway.paths == [
            f"billing/subscriptions/{NEW_ID}",
            f"billing/subscriptions/{NEW_ID}/activate",
        ]
        assert paypal_gateway.calls[0].method == "GET"
        assert paypal_gateway.calls[0].host == order.collective.host

    def test_payment_method_named_after_payer(self, activator, order, paypal_payment_method, approved):
        activator.activate(order, paypal_payment_method)

        paypal_payment_method.refresh_from_db()
        assert paypal_payment_method.name == "backer@example.com"

    def test_not_approved_creates_nothing(self, activator, paypal_gateway, order, paypal_payment_method, approved):
        approved["status"] = "ACTIVE"

        with pytest.raises(ActivationError) as exc_info:
            activator.activate(order, paypal_payment_method)

        assert isinstance(exc_info.value.cause, VerificationError)
        assert exc_info.value.__cause__ is exc_info.value.cause
        assert exc_info.value.details["cause_error_code"] == "SUBSCRIPTION_NOT_APPROVED"
        assert Subscription.objects.count() == 0
        assert f"billing/subscriptions/{NEW_ID}/activate" not in paypal_gateway.paths
        order.refresh_from_db()
        assert order.subscription is None

    def test_activate_failure_keeps_created_subscription_inactive(
        self, activator, paypal_gateway, order, paypal_payment_method, approved
    ):
        paypal_gateway.errors[f"billing/subscriptions/{NEW_ID}/activate"] = GatewayUnavailableError(
            "PayPal responded with HTTP 503", status_code=503
        )

        with pytest.raises(ActivationError) as exc_info:
            activator.activate(order, paypal_payment_method)

        assert isinstance(exc_info.value.cause, GatewayUnavailableError)
        order.refresh_from_db()
        subscription = order.subscription
        assert subscription.paypal_subscription_id == NEW_ID
        assert subscription.is_active is False
        assert subscription.is_managed_externally is True
        assert Subscription.objects.count() == 1

    def test_activate_timeout_keeps_paypal_id(self, activator, paypal_gateway, order, paypal_payment_method, approved):
        """
        Given PayPal times out on activate (it may have activated anyway)
        When activation fails
        Then the local subscription still holds the PayPal id
        """
        paypal_gateway.errors[f"billing/subscriptions/{NEW_ID}/activate"] = GatewayTimeoutError(
            "PayPal request timed out"
        )

        with pytest.raises(ActivationError) as exc_info:
            activator.activate(order, paypal_payment_method)

        assert isinstance(exc_info.value.cause, GatewayTimeoutError)
        assert Subscription.objects.filter(paypal_subscription_id=NEW_ID).count() == 1

    def test_retry_after_failure_reuses_subscription(
        self, activator, paypal_gateway, order, paypal_payment_method, approved
    ):
        paypal_gateway.errors[f"billing/subscriptions/{NEW_ID}/activate"] = GatewayTimeoutError(
            "PayPal request timed out"
        )
        with pytest.raises(ActivationError):
            activator.activate(order, paypal_payment_method)
        del paypal_gateway.errors[f"billing/subscriptions/{NEW_ID}/activate"]

        activator.activate(order, paypal_payment_method)

        assert Subscription.objects.count() == 1
        assert not any(path.endswith("/cancel") for path in paypal_gateway.paths)
        assert paypal_gateway.paths[-1] == f"billing/subscriptions/{NEW_ID}/activate"

    def test_fetch_failure_is_wrapped(self, activator, paypal_gateway, order, paypal_payment_method):
        paypal_gateway.errors[f"billing/subscriptions/{NEW_ID}"] = GatewayRequestError(
            "The specified resource does not exist.", status_code=404
        )

        with pytest.raises(ActivationError) as exc_info:
            activator.activate(order, paypal_payment_method)

        assert exc_info.value.cause.status_code == 404
        assert exc_info.value.message == "Failed to activate PayPal subscription"


# =============================================================================
# Replacing An Existing Subscription
# =============================================================================


class TestReplaceSubscription:
    def test_cancels_old_then_activates_new(
        self, activator, paypal_gateway, order_with_paypal_subscription, paypal_payment_method, approved
    ):
        order = order_with_paypal_subscription
        subscription_id = order.subscription.id

        activator.activate(order, paypal_payment_method)

        assert paypal_gateway.paths == [
            f"billing/subscriptions/{NEW_ID}",
            "billing/subscriptions/I-OLD00000001/cancel",
            f"billing/subscriptions/{NEW_ID}/activate",
        ]
        assert paypal_gateway.calls[1].payload == {"reason": "Changed payment method"}
        subscription = Subscription.objects.get(id=subscription_id)
        assert subscription.paypal_subscription_id == NEW_ID
        assert subscription.is_managed_externally is True
        assert Subscription.objects.count() == 1

    def test_cancel_failure_does_not_block_activation(
        self,
        activator,
        paypal_gateway,
        order_with_paypal_subscription,
        paypal_payment_method,
        approved,
        caplog,
    ):
        paypal_gateway.errors["billing/subscriptions/I-OLD00000001/cancel"] = GatewayRequestError(
            "Subscription already cancelled", status_code=422
        )

        with caplog.at_level(logging.WARNING):
            activator.activate(order_with_paypal_subscription, paypal_payment_method)

        assert paypal_gateway.paths[-1] == f"billing/subscriptions/{NEW_ID}/activate"
        order_with_paypal_subscription.subscription.refresh_from_db()
        assert order_with_paypal_subscription.subscription.paypal_subscription_id == NEW_ID
        assert "Could not cancel previous PayPal subscription" in caplog.messages

    def test_same_subscription_is_not_cancelled(
        self, activator, paypal_gateway, order_with_paypal_subscription, paypal_payment_method, approved
    ):
        order_with_paypal_subscription.subscription.paypal_subscription_id = NEW_ID
        order_with_paypal_subscription.subscription.save()

        activator.activate(order_with_paypal_subscription, paypal_payment_method)

        assert not any(path.endswith("/cancel") for path in paypal_gateway.paths)

    def test_card_subscription_becomes_externally_managed(
        self, activator, paypal_gateway, order_with_card_subscription, paypal_payment_method, approved
    ):
        activator.activate(order_with_card_subscription, paypal_payment_method)

        subscription = order_with_card_subscription.subscription
        subscription.refresh_from_db()
        assert subscription.is_managed_externally is True
        assert subscription.stripe_subscription_id is None
        assert subscription.paypal_subscription_id == NEW_ID
        assert not any(path.endswith("/cancel") for path in paypal_gateway.paths)


# =============================================================================
# Rollback
# =============================================================================


class TestRollback:
    def test_verification_failure_leaves_subscription_untouched(
        self, activator, order_with_paypal_subscription, paypal_payment_method, approved
    ):
        approved["plan_id"] = "P-UNKNOWN"
        subscription = order_with_paypal_subscription.subscription
        version_before = subscription.version

        with pytest.raises(ActivationError) as exc_info:
            activator.activate(order_with_paypal_subscription, paypal_payment_method)

        assert exc_info.value.details["cause_error_code"] == "SUBSCRIPTION_PLAN_MISMATCH"
        subscription.refresh_from_db()
        assert subscription.paypal_subscription_id == "I-OLD00000001"
        assert subscription.version == version_before

    def test_activate_failure_restores_previous_ids(
        self, activator, paypal_gateway, order_with_card_subscription, paypal_payment_method, approved
    ):
        paypal_gateway.errors[f"billing/subscriptions/{NEW_ID}/activate"] = GatewayUnavailableError(
            "Could not connect to PayPal"
        )

        with pytest.raises(ActivationError):
            activator.activate(order_with_card_subscription, paypal_payment_method)

        subscription = order_with_card_subscription.subscription
        subscription.refresh_from_db()
        assert subscription.is_managed_externally is False
        assert subscription.paypal_subscription_id is None
        assert subscription.stripe_subscription_id == "sub_1OaBcD"

    def test_failure_is_logged(self, activator, paypal_gateway, order, paypal_payment_method, approved, caplog):
        approved["status"] = "ACTIVE"

        with pytest.raises(ActivationError):
            activator.activate(order, paypal_payment_method)

        record = next(r for r in caplog.records if r.message == "PayPal subscription activation failed")
        assert record.levelno == logging.ERROR
        assert record.error_type == "VerificationError"
        assert record.exc_info is not None

    def test_restore_failure_does_not_mask_the_cause(
        self, activator, paypal_gateway, order_with_card_subscription, paypal_payment_method, approved, caplog
    ):
        paypal_gateway.errors[f"billing/subscriptions/{NEW_ID}/activate"] = GatewayUnavailableError(
            "Could not connect to PayPal"
        )

        with patch.object(SubscriptionSnapshot, "restore", side_effect=RuntimeError("database is locked")):
            with pytest.raises(ActivationError) as exc_info:
                activator.activate(order_with_card_subscription, paypal_payment_method)

        assert isinstance(exc_info.value.cause, GatewayUnavailableError)
        assert "Could not restore subscription after failed activation" in caplog.messages


# =============================================================================
# Snapshot
# =============================================================================


@pytest.mark.django_db
class TestSubscriptionSnapshot:
    def test_capture_without_subscription(self):
        assert SubscriptionSnapshot.capture(OrderFactory()) == SubscriptionSnapshot(subscription_id=None)

    def test_capture_and_restore(self, order_with_card_subscription):
        snapshot = SubscriptionSnapshot.capture(order_with_card_subscription)
        subscription = order_with_card_subscription.subscription
        subscription.paypal_subscription_id = "I-X"
        subscription.is_managed_externally = True
        subscription.save()

        snapshot.restore(order_with_card_subscription)

        subscription.refresh_from_db()
        assert SubscriptionSnapshot.capture(order_with_card_subscription) == snapshot

    def test_restore_keeps_subscription_created_by_the_attempt(self, order):
        snapshot = SubscriptionSnapshot.capture(order)
        order.subscription = SubscriptionFactory(
            is_active=False, is_managed_externally=True, paypal_subscription_id="I-X"
        )
        order.save()

        snapshot.restore(order)

        order.refresh_from_db()
        assert order.subscription.paypal_subscription_id == "I-X"
        assert order.subscription.is_active is False
