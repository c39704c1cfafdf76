"""
Pytest fixtures shared by every payments test package.

The default world is: a fiscal host with PayPal credentials, a
collective it hosts, a contributor account administered by ``user``,
and a NEW monthly 10.00 USD order from the contributor to the
collective.

Usage:
    def test_cancel(subscription_service, user, active_paypal_order):
        subscription_service.cancel_subscription(user, active_paypal_order)
"""

import pytest

from collectives.models import Membership
from collectives.tests.factories import (
    CollectiveFactory,
    ContributorFactory,
    HostFactory,
    MembershipFactory,
)
from authentication.tests.factories import UserFactory
from payments.state_machines import OrderStatus
from payments.tests.factories import (
    ConnectedAccountFactory,
    OrderFactory,
    PaypalPlanFactory,
    PaypalProductFactory,
    PaypalSubscriptionPaymentMethodFactory,
    SubscriptionFactory,
)
from payments.tests.fakes import FakePaypalGateway


# =============================================================================
# Accounts
# =============================================================================


@pytest.fixture
def user(db):
    """User administering the contributor account."""
    return UserFactory()


@pytest.fixture
def host(db):
    """Fiscal host with a PayPal connected account."""
    host = HostFactory()
    ConnectedAccountFactory(collective=host)
    return host


@pytest.fixture
def collective(host):
    return CollectiveFactory(host=host, name="Babel", slug="babel")


@pytest.fixture
def contributor(user):
    contributor = ContributorFactory()
    MembershipFactory(user=user, collective=contributor, role=Membership.Role.ADMIN)
    return contributor


# =============================================================================
# PayPal
# =============================================================================


@pytest.fixture
def paypal_gateway():
    return FakePaypalGateway()


@pytest.fixture
def paypal_plan(collective):
    """Untiered monthly 10.00 USD plan of the collective."""
    product = PaypalProductFactory(collective=collective, tier=None)
    return PaypalPlanFactory(product=product, amount=1000, currency="USD", interval="month")


# =============================================================================
# Orders
# =============================================================================


@pytest.fixture
def order(user, contributor, collective):
    """NEW recurring order without subscription."""
    return OrderFactory(created_by=user, from_collective=contributor, collective=collective)


@pytest.fixture
def paypal_payment_method(user, contributor):
    return PaypalSubscriptionPaymentMethodFactory(
        collective=contributor, created_by=user, token="I-BW452GLLEP1G"
    )


@pytest.fixture
def active_paypal_order(user, contributor, collective):
    """ACTIVE order paid by an externally managed PayPal subscription."""
    payment_method = PaypalSubscriptionPaymentMethodFactory(
        collective=contributor, created_by=user, token="I-OLD00000001"
    )
    subscription = SubscriptionFactory(
        is_managed_externally=True,
        paypal_subscription_id="I-OLD00000001",
        charge_number=3,
    )
    return OrderFactory(
        created_by=user,
        from_collective=contributor,
        collective=collective,
        payment_method=payment_method,
        subscription=subscription,
        status=OrderStatus.ACTIVE,
    )
