"""
Exceptions for billing app.

Checkout, webhook reconciliation and admin overrides raise these; each
maps to the HTTP status the caller (tenant client or gateway) should see.
"""

from apps.core.exceptions import AppError, NotFoundError, ValidationError


class PlanNotFound(NotFoundError):
    """Subscription plan absent or owned by another gym."""

    default_message = "Subscription plan not found"


class GymNotFound(NotFoundError):
    default_message = "Gym not found"


class PaymentNotFound(NotFoundError):
    default_message = "Payment not found"


class SignatureError(AppError):
    """Webhook signature missing or invalid."""

    status_code = 401
    default_message = "Invalid signature"


class WebhookNotConfigured(AppError):
    """Signature checks are enforced but no signing key is configured."""

    status_code = 500
    default_message = "Webhook signing key not configured"


class InvalidPayload(ValidationError):
    default_message = "Invalid payload"


class MissingPaymentId(ValidationError):
    """No payment identifier could be resolved from the notification."""

    default_message = "Missing payment identifier"


class MissingRequiredFields(ValidationError):
    """Notification lacks one or more required fields."""

    default_message = "Missing required data"

    def __init__(self, missing_fields: list[str]) -> None:
        self.missing_fields = missing_fields
        super().__init__(details={"missingFields": missing_fields})


class GatewayError(AppError):
    """Payment gateway unreachable or returned an error."""

    status_code = 500
    default_message = "Payment gateway error"


class GatewayResponseInvalid(GatewayError):
    """Gateway answered but without a usable checkout URL."""

    default_message = "Invalid payment gateway response"


class PersistenceError(AppError):
    """The store rejected a write; webhook callers should retry."""

    status_code = 500
    default_message = "Processing error"
