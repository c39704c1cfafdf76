"""
Tests for PaypalPlanResolver.

Tests cover:
- Reuse of existing products and plans without PayPal calls
- Plan creation under an existing product
- Product and plan creation from scratch
- Product and plan payloads sent to PayPal
- Nothing stored locally when PayPal fails
"""

import pytest
from django.test import override_settings

from collectives.models import Tier
from collectives.tests.factories import TierFactory
from payments.exceptions import GatewayRequestError
from payments.models import PaypalPlan, PaypalProduct
from payments.services import PaypalPlanResolver
from payments.services.plan_resolver import format_amount, get_product_type_and_category
from payments.tests.factories import PaypalPlanFactory, PaypalProductFactory


@pytest.fixture
def resolver(paypal_gateway):
    return PaypalPlanResolver(gateway=paypal_gateway)


# =============================================================================
# Helpers
# =============================================================================


class TestFormatAmount:
    @pytest.mark.parametrize(
        "amount, expected",
        [
            (100, "1"),
            (1000, "10"),
            (1050, "10.5"),
            (1667, "16.67"),
            (5, "0.05"),
            (123456, "1234.56"),
        ],
    )
    def test_cents_to_decimal_string(self, amount, expected):
        assert format_amount(amount) == expected


@pytest.mark.django_db
class TestProductTypeAndCategory:
    @pytest.mark.parametrize(
        "tier_type, expected",
        [
            (Tier.Type.TICKET, ("DIGITAL", None)),
            (Tier.Type.PRODUCT, ("DIGITAL", "MERCHANDISE")),
            (Tier.Type.SERVICE, ("SERVICE", None)),
            (Tier.Type.MEMBERSHIP, ("DIGITAL", "MEMBERSHIP_CLUBS_AND_ORGANIZATIONS")),
            (Tier.Type.TIER, ("DIGITAL", "NONPROFIT")),
            (Tier.Type.DONATION, ("DIGITAL", "NONPROFIT")),
        ],
    )
    def test_by_tier_type(self, tier_type, expected):
        assert get_product_type_and_category(TierFactory(type=tier_type)) == expected

    def test_without_tier(self):
        assert get_product_type_and_category(None) == ("DIGITAL", "NONPROFIT")


# =============================================================================
# Resolution
# =============================================================================


class TestGetOrCreatePlan:
    def test_creates_product_and_plan(self, resolver, paypal_gateway, collective):
        plan = resolver.get_or_create_plan(collective, "month", 1000, "USD")

        assert paypal_gateway.paths == ["catalogs/products", "billing/plans"]
        assert PaypalProduct.objects.count() == 1
        assert PaypalPlan.objects.count() == 1
        assert plan.product.collective == collective
        assert plan.product.tier is None
        assert (plan.amount, plan.currency, plan.interval) == (1000, "USD", "month")

    def test_second_call_reuses_plan_without_paypal_calls(self, resolver, paypal_gateway, collective):
        first = resolver.get_or_create_plan(collective, "month", 1000, "USD")
        calls_after_first = len(paypal_gateway.calls)

        second = resolver.get_or_create_plan(collective, "month", 1000, "USD")

        assert second == first
        assert len(paypal_gateway.calls) == calls_after_first
        assert PaypalPlan.objects.count() == 1

    @pytest.mark.parametrize(
        "amount, currency, interval",
        [(2500, "USD", "month"), (1000, "EUR", "month"), (1000, "USD", "year")],
    )
    def test_new_terms_create_one_plan_under_existing_product(
        self, resolver, paypal_gateway, collective, amount, currency, interval
    ):
        product = PaypalProductFactory(collective=collective, tier=None)
        PaypalPlanFactory(product=product, amount=1000, currency="USD", interval="month")

        plan = resolver.get_or_create_plan(collective, interval, amount, currency)

        assert paypal_gateway.paths == ["billing/plans"]
        assert paypal_gateway.calls[0].payload["product_id"] == product.id
        assert plan.product == product
        assert product.plans.count() == 2

    def test_products_are_scoped_by_tier(self, resolver, paypal_gateway, collective):
        tier = TierFactory(collective=collective)
        PaypalPlanFactory(product=PaypalProductFactory(collective=collective, tier=None))

        plan = resolver.get_or_create_plan(collective, "month", 1000, "USD", tier=tier)

        assert paypal_gateway.paths == ["catalogs/products", "billing/plans"]
        assert plan.product.tier == tier

    def test_calls_are_made_on_behalf_of_the_host(self, resolver, paypal_gateway, collective, host):
        resolver.get_or_create_plan(collective, "month", 1000, "USD")

        assert {call.host for call in paypal_gateway.calls} == {host}

    def test_product_failure_stores_nothing(self, resolver, paypal_gateway, collective):
        paypal_gateway.errors["catalogs/products"] = GatewayRequestError("Invalid request", status_code=400)

        with pytest.raises(GatewayRequestError):
            resolver.get_or_create_plan(collective, "month", 1000, "USD")

        assert PaypalProduct.objects.count() == 0

    def test_plan_failure_stores_nothing(self, resolver, paypal_gateway, collective):
        paypal_gateway.errors["billing/plans"] = GatewayRequestError("Invalid request", status_code=400)

        with pytest.raises(GatewayRequestError):
            resolver.get_or_create_plan(collective, "month", 1000, "USD")

        assert PaypalProduct.objects.count() == 0
        assert PaypalPlan.objects.count() == 0


# =============================================================================
# Payloads
# =============================================================================


class TestProductPayload:
    @override_settings(WEBSITE_URL="https://opencollective.com", IMAGES_URL="http://localhost:3001")
    def test_product_payload(self, resolver, paypal_gateway, collective, settings):
        tier = TierFactory(collective=collective, type=Tier.Type.MEMBERSHIP)

        resolver.get_or_create_plan(collective, "month", 1000, "USD", tier=tier)

        payload = paypal_gateway.calls_to("catalogs/products")[0].payload
        assert payload == {
            "name": "Financial contribution to Babel",
            "description": "Financial contribution to Babel",
            "type": "DIGITAL",
            "category": "MEMBERSHIP_CLUBS_AND_ORGANIZATIONS",
            "image_url": settings.PAYPAL_FALLBACK_IMAGE_URL,
            "home_url": "https://opencollective.com/babel",
        }

    def test_category_is_omitted_when_unset(self, resolver, paypal_gateway, collective):
        tier = TierFactory(collective=collective, type=Tier.Type.SERVICE)

        resolver.get_or_create_plan(collective, "month", 1000, "USD", tier=tier)

        payload = paypal_gateway.calls_to("catalogs/products")[0].payload
        assert payload["type"] == "SERVICE"
        assert "category" not in payload

    @override_settings(IMAGES_URL="https://images.opencollective.com")
    def test_public_images_service_is_used(self, resolver, paypal_gateway, collective):
        resolver.get_or_create_plan(collective, "month", 1000, "USD")

        payload = paypal_gateway.calls_to("catalogs/products")[0].payload
        assert payload["image_url"] == "https://images.opencollective.com/babel/logo.png"


class TestPlanPayload:
    @override_settings(PAYPAL_PAYMENT_FAILURE_THRESHOLD=4)
    def test_plan_payload(self, resolver, paypal_gateway, collective):
        tier = TierFactory(collective=collective, name="Backers")

        resolver.get_or_create_plan(collective, "month", 1050, "USD", tier=tier)

        payload = paypal_gateway.calls_to("billing/plans")[0].payload
        assert payload["product_id"] == PaypalProduct.objects.get().id
        assert payload["name"] == "Monthly financial contribution to Babel (Backers)"
        assert payload["description"] == payload["name"]
        assert payload["billing_cycles"] == [
            {
                "tenure_type": "REGULAR",
                "sequence": 1,
                "total_cycles": 0,
                "frequency": {"interval_count": 1, "interval_unit": "MONTH"},
                "pricing_scheme": {"fixed_price": {"value": "10.5", "currency_code": "USD"}},
            }
        ]
        assert payload["payment_preferences"] == {
            "auto_bill_outstanding": True,
            "payment_failure_threshold": 4,
        }

    def test_yearly_interval_unit(self, resolver, paypal_gateway, collective):
        resolver.get_or_create_plan(collective, "year", 12000, "USD")

        payload = paypal_gateway.calls_to("billing/plans")[0].payload
        assert payload["billing_cycles"][0]["frequency"]["interval_unit"] == "YEAR"
        assert payload["billing_cycles"][0]["pricing_scheme"]["fixed_price"]["value"] == "120"
