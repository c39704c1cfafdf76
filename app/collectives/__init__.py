"""
Collectives application.

Accounts that give or receive contributions:
    - Collective: an account (user profile, organization, collective, host)
    - Membership: links a user to an account with a role
    - Tier: a named contribution level offered by an account

Usage:
    from collectives.models import Collective, Membership, Tier
"""
