"""
Authentication application.

Key components:
    - User model: Custom email-based user authentication
    - UserManager: Email-based user and superuser creation

Usage:
    from authentication.models import User
"""
