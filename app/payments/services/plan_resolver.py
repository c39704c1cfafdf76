"""
PayPal product and plan resolution.

Contributors subscribe to PayPal plans. Before showing the PayPal
button, we need a plan matching the contribution terms. Plans are
looked up in the local catalog mirror first and only created on PayPal
when missing:

    1. product and plan exist       -> reuse, no PayPal call
    2. product exists, plan missing -> create the plan on PayPal
    3. nothing exists               -> create product then plan on PayPal

Usage:
    from payments.services import PaypalPlanResolver

    resolver = PaypalPlanResolver(gateway=PaypalGateway.from_settings())
    plan = resolver.get_or_create_plan(collective, "month", 1000, "USD", tier=tier)
    plan.id  # "P-5ML4271244454362WXNWU5NQ"
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from django.conf import settings

from collectives.models import Tier
from core.services import BaseService

from payments.models import Order, PaypalPlan, PaypalProduct

if TYPE_CHECKING:
    from collectives.models import Collective

    from payments.adapters import PaypalGateway


DEFAULT_PAYMENT_FAILURE_THRESHOLD = 4


def get_product_type_and_category(tier: Tier | None) -> tuple[str, str | None]:
    """
    Classify a tier for the PayPal catalog.

    See https://developer.paypal.com/docs/api/catalog-products/v1/#products-create-response
    """
    tier_type = tier.type if tier is not None else None
    if tier_type == Tier.Type.TICKET:
        return "DIGITAL", None
    if tier_type == Tier.Type.PRODUCT:
        return "DIGITAL", "MERCHANDISE"
    if tier_type == Tier.Type.SERVICE:
        return "SERVICE", None
    if tier_type == Tier.Type.MEMBERSHIP:
        return "DIGITAL", "MEMBERSHIP_CLUBS_AND_ORGANIZATIONS"
    return "DIGITAL", "NONPROFIT"


def get_image_url_for_paypal(collective: Collective) -> str:
    """PayPal rejects images served from http://localhost."""
    if settings.IMAGES_URL.startswith("http://localhost"):
        return settings.PAYPAL_FALLBACK_IMAGE_URL
    return collective.get_image_url()


def format_amount(amount: int) -> str:
    """
    Convert cents to the decimal string PayPal expects.

    Assumes a currency with two decimal places: 1667 -> "16.67".
    """
    major, minor = divmod(amount, 100)
    if minor == 0:
        return str(major)
    return f"{major}.{minor:02d}".rstrip("0")


class PaypalPlanResolver(BaseService):
    """
    Find or create the PayPal plan matching contribution terms.

    Args:
        gateway: PayPal gateway used for catalog calls
    """

    def __init__(self, gateway: PaypalGateway):
        self.gateway = gateway

    def get_or_create_plan(
        self,
        collective: Collective,
        interval: str,
        amount: int,
        currency: str,
        tier: Tier | None = None,
        host: Collective | None = None,
    ) -> PaypalPlan:
        """
        Return the plan for (collective, tier, amount, currency, interval).

        Args:
            collective: Receiving account
            interval: month or year
            amount: Price per cycle in cents
            currency: ISO 4217 currency code
            tier: Tier the contribution is for (None for custom contributions)
            host: Host whose credentials are used (default: collective's host)

        Returns:
            The existing or newly created PaypalPlan

        Raises:
            GatewayError: If a PayPal call fails. Nothing is stored locally.
        """
        logger = self.get_logger()
        host = host if host is not None else collective.get_host_collective()
        log_context = {
            "collective_id": str(collective.id),
            "tier_id": str(tier.id) if tier is not None else None,
            "amount": amount,
            "currency": currency,
            "interval": interval,
        }

        product = PaypalProduct.objects.for_collective(collective, tier)
        if product is not None:
            plan = product.plans.filter(
                currency=currency, interval=interval, amount=amount
            ).first()
            if plan is not None:
                return plan

            paypal_plan = self._create_paypal_plan(
                host, collective, product.id, interval, amount, currency, tier
            )
            plan = PaypalPlan.objects.create(
                id=paypal_plan["id"],
                product=product,
                amount=amount,
                currency=currency,
                interval=interval,
            )
            logger.info(
                "PayPal plan created",
                extra={**log_context, "product_id": product.id, "plan_id": plan.id},
            )
            return plan

        paypal_product = self._create_paypal_product(host, collective, tier)
        paypal_plan = self._create_paypal_plan(
            host, collective, paypal_product["id"], interval, amount, currency, tier
        )

        with self.atomic():
            product = PaypalProduct.objects.create(
                id=paypal_product["id"],
                collective=collective,
                tier=tier,
            )
            plan = PaypalPlan.objects.create(
                id=paypal_plan["id"],
                product=product,
                amount=amount,
                currency=currency,
                interval=interval,
            )

        logger.info(
            "PayPal product and plan created",
            extra={**log_context, "product_id": product.id, "plan_id": plan.id},
        )
        return plan

    # =========================================================================
    # PayPal Payloads
    # =========================================================================

    def _create_paypal_product(
        self,
        host: Collective | None,
        collective: Collective,
        tier: Tier | None,
    ) -> dict[str, Any]:
        product_type, category = get_product_type_and_category(tier)
        payload: dict[str, Any] = {
            "name": f"Financial contribution to {collective.name}",
            "description": f"Financial contribution to {collective.name}",
            "type": product_type,
            "image_url": get_image_url_for_paypal(collective),
            "home_url": f"{settings.WEBSITE_URL.rstrip('/')}/{collective.slug}",
        }
        if category:
            payload["category"] = category
        return self.gateway.call("catalogs/products", payload, host)

    def _create_paypal_plan(
        self,
        host: Collective | None,
        collective: Collective,
        product_id: str,
        interval: str,
        amount: int,
        currency: str,
        tier: Tier | None,
    ) -> dict[str, Any]:
        description = Order.generate_description(collective, amount, interval, tier)
        payload = {
            "product_id": product_id,
            "name": description,
            "description": description,
            "billing_cycles": [
                {
                    "tenure_type": "REGULAR",
                    "sequence": 1,
                    # 0 means the subscription never ends
                    "total_cycles": 0,
                    "frequency": {
                        "interval_count": 1,
                        "interval_unit": interval.upper(),
                    },
                    "pricing_scheme": {
                        "fixed_price": {
                            "value": format_amount(amount),
                            "currency_code": currency,
                        },
                    },
                },
            ],
            "payment_preferences": {
                "auto_bill_outstanding": True,
                "payment_failure_threshold": getattr(
                    settings,
                    "PAYPAL_PAYMENT_FAILURE_THRESHOLD",
                    DEFAULT_PAYMENT_FAILURE_THRESHOLD,
                ),
            },
        }
        return self.gateway.call("billing/plans", payload, host)
