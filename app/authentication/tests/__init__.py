"""
Tests for authentication app.

This package contains test modules for:
- test_managers.py: User and superuser creation
- test_models.py: Account administration checks

Usage:
    pytest authentication/tests/
"""
