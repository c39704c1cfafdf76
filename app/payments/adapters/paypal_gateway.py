"""
PayPal REST API gateway.

This module provides the PaypalGateway class which encapsulates all
PayPal API interactions. Every call is made on behalf of a fiscal host,
with the credentials stored in the host's PayPal ConnectedAccount.

Features:
- OAuth2 client-credentials tokens, cached per client id
- Configurable timeout on all API calls
- Automatic error translation to domain exceptions
- Structured logging with timing metrics

Configuration (via settings):
- PAYPAL_API_URL: API base URL (sandbox or live)
- PAYPAL_API_TIMEOUT_SECONDS: API call timeout (default: 10)

Usage:
    from payments.adapters import PaypalGateway

    gateway = PaypalGateway.from_settings()

    subscription = gateway.call(
        f"billing/subscriptions/{subscription_id}", None, host, method="GET"
    )
    gateway.call(f"billing/subscriptions/{subscription_id}/activate", None, host)

Note:
    The gateway never retries. Transient failures raise exceptions with
    ``is_retryable=True`` and the caller decides what to do.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

import httpx
from django.conf import settings

from payments.exceptions import (
    GatewayError,
    GatewayNotConfiguredError,
    GatewayRequestError,
    GatewayTimeoutError,
    GatewayUnavailableError,
)
from payments.models import ConnectedAccount
from payments.state_machines import PaymentMethodService

if TYPE_CHECKING:
    from collectives.models import Collective


# Refresh tokens a bit before PayPal expires them
TOKEN_EXPIRY_MARGIN_SECONDS = 300


class PaypalGateway:
    """
    Client for the PayPal REST API.

    Instances are cheap to share: the underlying httpx.Client keeps a
    connection pool and the token cache is keyed by client id, so one
    gateway serves every host.

    Args:
        base_url: PayPal API root (https://api-m.sandbox.paypal.com)
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self._tokens: dict[str, tuple[str, float]] = {}

    @classmethod
    def from_settings(cls, transport: httpx.BaseTransport | None = None) -> PaypalGateway:
        """Build a gateway from Django settings."""
        return cls(
            base_url=settings.PAYPAL_API_URL,
            timeout=getattr(settings, "PAYPAL_API_TIMEOUT_SECONDS", 10),
            transport=transport,
        )

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this gateway."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> PaypalGateway:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # =========================================================================
    # Core RPC
    # =========================================================================

    def call(
        self,
        path: str,
        payload: dict[str, Any] | None,
        host: Collective,
        method: str = "POST",
    ) -> dict[str, Any]:
        """
        Call the PayPal API on behalf of ``host``.

        Args:
            path: Resource path below /v1/ (e.g. "billing/plans")
            payload: JSON body, or None
            host: Fiscal host whose credentials are used
            method: HTTP verb (default: POST)

        Returns:
            Parsed JSON response ({} for empty responses)

        Raises:
            GatewayNotConfiguredError: Host has no PayPal account
            GatewayRequestError: PayPal rejected the request
            GatewayUnavailableError: Transport failure, 5xx or 429
            GatewayTimeoutError: Request timed out
        """
        account = self.get_credentials(host)
        logger = self.get_logger()

        log_context = {
            "operation": "paypal_request",
            "method": method,
            "path": path,
            "host_id": str(host.id),
        }

        start_time = time.time()
        logger.info("Starting PayPal request", extra=log_context)

        try:
            token = self._get_access_token(account)
            response = self._send(
                method,
                f"/v1/{path.lstrip('/')}",
                json=payload,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
            )
            if response.status_code == 401:
                # Token revoked or rotated on PayPal's side
                self._tokens.pop(account.client_id, None)
            self._raise_for_status(response)
            data = self._parse_body(response)
        except GatewayError as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.warning(
                "PayPal request failed",
                extra={
                    **log_context,
                    "error_code": e.error_code,
                    "status_code": e.status_code,
                    "duration_ms": duration_ms,
                },
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "PayPal request completed",
            extra={
                **log_context,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return data

    def get_credentials(self, host: Collective | None) -> ConnectedAccount:
        """
        Return the PayPal connected account of ``host``.

        Raises:
            GatewayNotConfiguredError: Host is missing or has no PayPal account
        """
        account = ConnectedAccount.objects.for_host(host, PaymentMethodService.PAYPAL)
        if account is None:
            raise GatewayNotConfiguredError(
                "Host doesn't support PayPal payments.",
                details={"host_id": str(host.id) if host is not None else None},
            )
        return account

    # =========================================================================
    # Subscription Helpers
    # =========================================================================

    def get_subscription(self, host: Collective, subscription_id: str) -> dict[str, Any]:
        return self.call(f"billing/subscriptions/{subscription_id}", None, host, method="GET")

    def activate_subscription(self, host: Collective, subscription_id: str) -> dict[str, Any]:
        return self.call(f"billing/subscriptions/{subscription_id}/activate", None, host)

    def cancel_subscription(
        self,
        host: Collective,
        subscription_id: str,
        reason: str | None = None,
    ) -> dict[str, Any]:
        payload = {"reason": reason} if reason else {}
        return self.call(f"billing/subscriptions/{subscription_id}/cancel", payload, host)

    # =========================================================================
    # Internals
    # =========================================================================

    def _get_access_token(self, account: ConnectedAccount) -> str:
        """Get or refresh the OAuth2 access token of ``account``."""
        cached = self._tokens.get(account.client_id)
        if cached and time.monotonic() < cached[1]:
            return cached[0]

        response = self._send(
            "POST",
            "/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(account.client_id, account.token),
            headers={"Accept": "application/json"},
        )
        self._raise_for_status(response)
        data = self._parse_body(response)

        access_token = data.get("access_token")
        if not access_token:
            raise GatewayRequestError(
                "Failed to obtain PayPal access token",
                status_code=response.status_code,
            )

        expires_in = int(data.get("expires_in", 3600))
        expires_at = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN_SECONDS, 0)
        self._tokens[account.client_id] = (access_token, expires_at)
        return access_token

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise GatewayTimeoutError(
                "PayPal request timed out",
                details={"url": url, "timeout": self.timeout},
            ) from e
        except httpx.TransportError as e:
            raise GatewayUnavailableError(
                f"Could not connect to PayPal: {e}",
                details={"url": url},
            ) from e

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        """
        Translate PayPal error responses to domain exceptions.

        PayPal error bodies look like:
            {"name": "RESOURCE_NOT_FOUND", "message": "...", "debug_id": "..."}
        """
        if response.is_success:
            return

        try:
            error_data = response.json() if response.content else {}
        except ValueError:
            error_data = {}
        if not isinstance(error_data, dict):
            error_data = {}

        details = {
            key: error_data[key]
            for key in ("name", "debug_id", "details")
            if error_data.get(key)
        }
        message = (
            error_data.get("message")
            or error_data.get("error_description")
            or f"PayPal responded with HTTP {response.status_code}"
        )

        if response.status_code == 429 or response.status_code >= 500:
            raise GatewayUnavailableError(
                message, status_code=response.status_code, details=details
            )
        raise GatewayRequestError(message, status_code=response.status_code, details=details)

    @staticmethod
    def _parse_body(response: httpx.Response) -> dict[str, Any]:
        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise GatewayUnavailableError(
                "PayPal returned an invalid JSON response",
                status_code=response.status_code,
            ) from e
