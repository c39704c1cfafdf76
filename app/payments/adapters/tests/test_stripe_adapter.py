"""
Tests for Stripe adapter.

Tests cover:
- ChargeParams validation
- Idempotency key generation
- Successful off-session charges
- Error translation for each Stripe exception type
"""

import uuid
from unittest.mock import MagicMock, patch

import pytest
import stripe
from django.test import override_settings

from payments.adapters import ChargeParams, IdempotencyKeyGenerator, StripeAdapter
from payments.exceptions import (
    StripeAPIUnavailableError,
    StripeCardDeclinedError,
    StripeInvalidRequestError,
    StripeRateLimitError,
)


@pytest.fixture
def charge_params():
    return ChargeParams(
        amount_cents=5000,
        currency="USD",
        payment_method_id="pm_test123",
        customer_id="cus_test123",
        idempotency_key="charge:order-1:1:abcd1234",
        metadata={"order_id": "order-1"},
    )


@pytest.fixture
def payment_intent():
    """PaymentIntent as returned by a confirmed off-session charge."""
    intent = MagicMock()
    intent.id = "pi_test123456"
    intent.status = "succeeded"
    intent.amount = 5000
    intent.currency = "usd"
    intent.metadata = {"order_id": "order-1"}
    intent.to_dict.return_value = {"id": "pi_test123456", "status": "succeeded"}
    return intent


# =============================================================================
# ChargeParams Tests
# =============================================================================


class TestChargeParams:
    def test_valid_params(self, charge_params):
        assert charge_params.amount_cents == 5000
        assert charge_params.description is None

    @pytest.mark.parametrize("amount", [0, -100])
    def test_amount_must_be_positive(self, amount):
        with pytest.raises(ValueError, match="amount_cents must be positive"):
            ChargeParams(
                amount_cents=amount,
                currency="usd",
                payment_method_id="pm_test",
                idempotency_key="key",
            )

    def test_idempotency_key_required(self):
        with pytest.raises(ValueError, match="idempotency_key is required"):
            ChargeParams(
                amount_cents=100,
                currency="usd",
                payment_method_id="pm_test",
                idempotency_key="",
            )

    def test_payment_method_required(self):
        with pytest.raises(ValueError, match="payment_method_id is required"):
            ChargeParams(
                amount_cents=100,
                currency="usd",
                payment_method_id="",
                idempotency_key="key",
            )


# =============================================================================
# IdempotencyKeyGenerator Tests
# =============================================================================


class TestIdempotencyKeyGenerator:
    def test_format(self):
        entity_id = uuid.uuid4()

        key = IdempotencyKeyGenerator.generate("charge", entity_id)

        operation, key_entity, attempt, short_hash = key.split(":")
        assert operation == "charge"
        assert key_entity == str(entity_id)
        assert attempt == "1"
        assert len(short_hash) == 8

    def test_same_inputs_give_same_key(self):
        entity_id = uuid.uuid4()

        assert IdempotencyKeyGenerator.generate("charge", entity_id) == (
            IdempotencyKeyGenerator.generate("charge", entity_id)
        )

    def test_attempt_changes_key(self):
        entity_id = uuid.uuid4()

        assert IdempotencyKeyGenerator.generate("charge", entity_id, attempt=1) != (
            IdempotencyKeyGenerator.generate("charge", entity_id, attempt=2)
        )


# =============================================================================
# StripeAdapter.charge Tests
# =============================================================================


class TestCharge:
    @override_settings(STRIPE_SECRET_KEY="sk_test_abc")
    def test_charge_success(self, charge_params, payment_intent):
        with patch("stripe.PaymentIntent.create", return_value=payment_intent) as mock_create:
            result = StripeAdapter().charge(charge_params)

        assert result.id == "pi_test123456"
        assert result.succeeded is True
        assert result.metadata == {"order_id": "order-1"}
        mock_create.assert_called_once_with(
            amount=5000,
            currency="usd",
            payment_method="pm_test123",
            customer="cus_test123",
            description=None,
            metadata={"order_id": "order-1"},
            confirm=True,
            off_session=True,
            idempotency_key="charge:order-1:1:abcd1234",
        )
        assert stripe.api_key == "sk_test_abc"

    def test_requires_action_is_not_succeeded(self, charge_params, payment_intent):
        payment_intent.status = "requires_action"

        with patch("stripe.PaymentIntent.create", return_value=payment_intent):
            result = StripeAdapter().charge(charge_params)

        assert result.succeeded is False


class TestErrorTranslation:
    def test_card_declined(self, charge_params):
        error = stripe.CardError("Your card was declined.", None, "card_declined")
        error.decline_code = "insufficient_funds"

        with patch("stripe.PaymentIntent.create", side_effect=error):
            with pytest.raises(StripeCardDeclinedError) as exc_info:
                StripeAdapter().charge(charge_params)

        assert exc_info.value.stripe_code == "card_declined"
        assert exc_info.value.decline_code == "insufficient_funds"
        assert exc_info.value.is_retryable is False
        assert exc_info.value.__cause__ is error

    def test_invalid_request(self, charge_params):
        error = stripe.InvalidRequestError(
            "No such PaymentMethod: 'pm_test123'", "payment_method", code="resource_missing"
        )

        with patch("stripe.PaymentIntent.create", side_effect=error):
            with pytest.raises(StripeInvalidRequestError) as exc_info:
                StripeAdapter().charge(charge_params)

        assert exc_info.value.stripe_code == "resource_missing"

    def test_rate_limit_is_retryable(self, charge_params):
        with patch("stripe.PaymentIntent.create", side_effect=stripe.RateLimitError("Too many requests")):
            with pytest.raises(StripeRateLimitError) as exc_info:
                StripeAdapter().charge(charge_params)

        assert exc_info.value.is_retryable is True

    def test_connection_error(self, charge_params):
        with patch(
            "stripe.PaymentIntent.create",
            side_effect=stripe.APIConnectionError("Network is unreachable"),
        ):
            with pytest.raises(StripeAPIUnavailableError) as exc_info:
                StripeAdapter().charge(charge_params)

        assert exc_info.value.stripe_code == "api_connection_error"

    def test_authentication_error(self, charge_params):
        with patch(
            "stripe.PaymentIntent.create",
            side_effect=stripe.AuthenticationError("Invalid API Key provided"),
        ):
            with pytest.raises(StripeInvalidRequestError) as exc_info:
                StripeAdapter().charge(charge_params)

        assert exc_info.value.stripe_code == "authentication_error"

    def test_unexpected_error(self, charge_params):
        with patch("stripe.PaymentIntent.create", side_effect=RuntimeError("boom")):
            with pytest.raises(StripeAPIUnavailableError) as exc_info:
                StripeAdapter().charge(charge_params)

        assert exc_info.value.stripe_code == "unknown_error"
