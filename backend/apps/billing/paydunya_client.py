"""
PayDunya client configuration.

Thin HTTP client for the checkout-invoice API. Calls carry an explicit
timeout and are retried a bounded number of times on network errors and
5xx responses. Never call it inside a database transaction.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from apps.billing.exceptions import GatewayError, GatewayResponseInvalid
from config.settings.base import settings

logger = logging.getLogger(__name__)

PAYDUNYA_LIVE_URL = "https://app.paydunya.com/api/v1"
PAYDUNYA_SANDBOX_URL = "https://app.paydunya.com/sandbox-api/v1"

# PayDunya reports success in the body, not the HTTP status
PAYDUNYA_SUCCESS_CODE = "00"

# Base delay between retries, doubled on each attempt
RETRY_BACKOFF_SECONDS = 0.5
RETRY_MAX_WAIT_SECONDS = 8


@dataclass
class Customer:
    """Purchaser contact details forwarded to the gateway."""

    email: str
    name: str = ""
    phone: str = ""


@dataclass
class Invoice:
    """A created checkout invoice."""

    url: str
    token: str


class PaydunyaClient:
    """Client for the PayDunya checkout-invoice endpoints."""

    def __init__(
        self,
        *,
        master_key: str,
        private_key: str,
        public_key: str,
        token: str,
        mode: str = "test",
        timeout: float = 15.0,
        max_retries: int = 2,
        backoff: float = RETRY_BACKOFF_SECONDS,
        store_name: str = "",
        site_url: str = "",
        api_url: str = "",
        currency: str = "XOF",
    ) -> None:
        self.master_key = master_key
        self.private_key = private_key
        self.public_key = public_key
        self.token = token
        self.mode = mode
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff = backoff
        self.store_name = store_name
        self.site_url = site_url.rstrip("/")
        self.api_url = api_url.rstrip("/")
        self.currency = currency

    @property
    def base_url(self) -> str:
        return PAYDUNYA_LIVE_URL if self.mode == "live" else PAYDUNYA_SANDBOX_URL

    @property
    def headers(self) -> dict[str, str]:
        return {
            "PAYDUNYA-MASTER-KEY": self.master_key,
            "PAYDUNYA-PRIVATE-KEY": self.private_key,
            "PAYDUNYA-PUBLIC-KEY": self.public_key,
            "PAYDUNYA-TOKEN": self.token,
            "Content-Type": "application/json",
        }

    def create_invoice(
        self,
        amount: int,
        customer: Customer,
        metadata: dict[str, Any],
    ) -> Invoice:
        """
        Create a checkout invoice and return its redirect URL and token.

        Metadata is sent as custom_data and comes back in the webhook.

        Raises:
            GatewayError: If the gateway is unreachable or rejects the request
            GatewayResponseInvalid: If the response has no usable checkout URL
        """
        cycle = metadata.get("billing_cycle", "monthly")
        payload = {
            "invoice": {
                "items": {
                    "item_0": {
                        "name": f"Subscription ({cycle})",
                        "quantity": 1,
                        "unit_price": amount,
                        "total_price": amount,
                        "description": "Gym management subscription",
                    }
                },
                "total_amount": amount,
                "description": "Subscription payment",
                "currency": self.currency,
                "customer": {
                    "name": customer.name,
                    "email": customer.email,
                    "phone": customer.phone,
                },
            },
            "store": {
                "name": self.store_name,
                "website_url": self.site_url,
            },
            "actions": {
                "cancel_url": f"{self.site_url}/payment/error",
                "return_url": f"{self.site_url}/payment/success",
                "callback_url": f"{self.api_url}/webhooks/paydunya/",
            },
            "custom_data": metadata,
        }

        data = self._request("post", "/checkout-invoice/create", json=payload)

        url = data.get("response_text")
        if (
            data.get("response_code") != PAYDUNYA_SUCCESS_CODE
            or not isinstance(url, str)
            or not url.startswith("http")
        ):
            logger.warning("PayDunya invoice creation returned no checkout URL: %s", data)
            raise GatewayResponseInvalid(details=data.get("response_text") or None)

        return Invoice(url=url, token=str(data.get("token") or ""))

    def confirm_invoice(self, invoice_token: str) -> dict[str, Any]:
        """
        Fetch the current state of an invoice.

        The response carries status, custom_data, receipt_url and the invoice.
        """
        return self._request("get", f"/checkout-invoice/confirm/{invoice_token}")

    def _request(self, method: str, path: str, json: dict | None = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        send = retry(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.backoff, max=RETRY_MAX_WAIT_SECONDS),
            retry=retry_if_exception_type((httpx.TransportError, ServerErrorResponse)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )(self._send)

        try:
            response = send(method, url, json)
        except httpx.TransportError as e:
            logger.warning("PayDunya %s %s failed: %s", method.upper(), path, e)
            raise GatewayError("Payment gateway unreachable", details=str(e)) from e
        except ServerErrorResponse as e:
            response = e.response

        if response.status_code >= 400:
            raise GatewayError(details=_error_message(response))

        try:
            data = response.json()
        except ValueError as e:
            raise GatewayResponseInvalid(details="Response is not JSON") from e

        if not isinstance(data, dict):
            raise GatewayResponseInvalid(details="Response is not a JSON object")
        return data

    def _send(self, method: str, url: str, json: dict | None) -> httpx.Response:
        with httpx.Client(timeout=self.timeout) as client:
            if method == "post":
                response = client.post(url, json=json, headers=self.headers)
            else:
                response = client.get(url, headers=self.headers)

        if response.status_code >= 500:
            raise ServerErrorResponse(response)
        return response


class ServerErrorResponse(Exception):
    """A 5xx answer from the gateway, retried like a network error."""

    def __init__(self, response: httpx.Response) -> None:
        super().__init__(f"HTTP {response.status_code}")
        self.response = response


def _error_message(response: httpx.Response) -> str:
    """Extract the gateway's human-readable error, if any."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(
            body.get("message")
            or body.get("response_text")
            or body.get("description")
            or f"HTTP {response.status_code}"
        )
    return f"HTTP {response.status_code}"


def get_paydunya_client() -> PaydunyaClient:
    """
    Get a PayDunya client configured from settings.
    """
    return PaydunyaClient(
        master_key=settings.PAYDUNYA_MASTER_KEY,
        private_key=settings.PAYDUNYA_PRIVATE_KEY,
        public_key=settings.PAYDUNYA_PUBLIC_KEY,
        token=settings.PAYDUNYA_TOKEN,
        mode=settings.PAYDUNYA_MODE,
        timeout=settings.PAYDUNYA_TIMEOUT,
        max_retries=settings.PAYDUNYA_MAX_RETRIES,
        store_name=settings.PAYDUNYA_STORE_NAME,
        site_url=settings.SITE_URL,
        api_url=settings.API_URL,
        currency=settings.BILLING_CURRENCY,
    )
