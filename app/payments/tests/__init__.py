"""
Tests for payments app.

This package contains test modules for:
- test_models.py: Order transitions, Subscription versioning, PayPal catalog
- test_exceptions.py: Error codes and details of payment exceptions
- test_integration.py: PayPal flow over HTTP against an emulated API

Shared doubles live in fakes.py, test data in factories.py.

Usage:
    pytest payments/
    pytest payments/tests/test_integration.py
"""
