"""
Payments app for recurring contributions.

This app handles:
- Order and subscription lifecycle (create, update, cancel)
- PayPal product/plan resolution and subscription activation
- Credit card charges through Stripe
- Payment method swaps and contribution amount/tier changes

Related apps:
    - authentication: User model and admin checks
    - collectives: Accounts, fiscal hosts and tiers

Usage:
    from payments.services import SubscriptionService

    service = SubscriptionService()
    service.update_subscription_details(order, tier=tier, amount=1000)
    service.cancel_subscription(user, order, reason="Not interested anymore")
"""
