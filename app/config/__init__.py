# =============================================================================
# Django Project Configuration Package
# =============================================================================
# This package contains the Django settings. There is no URL configuration:
# the payment services are called in-process by the API layer.
# =============================================================================
