"""
PayDunya webhook handler.

Handles incoming payment notifications from PayDunya.
This is a separate view (not Django Ninja) for raw request handling
needed to verify signatures over the exact body bytes.
"""

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from apps.billing.exceptions import (
    PersistenceError,
    SignatureError,
    WebhookNotConfigured,
)
from apps.billing.reconciliation import receive_webhook
from apps.billing.signing import SIGNATURE_HEADER
from apps.core.exceptions import AppError, NotFoundError, ValidationError
from apps.core.logging import get_logger

logger = get_logger(__name__)


def _error(exc: AppError, status: int) -> JsonResponse:
    return JsonResponse(exc.to_dict(), status=status)


@csrf_exempt
@require_POST
def paydunya_webhook(request: HttpRequest) -> JsonResponse:
    """
    Handle PayDunya payment notifications.

    Status codes tell the gateway whether to retry: 400 for payloads a retry
    cannot fix (malformed, unknown gym or plan), 500 for transient failures.
    """
    try:
        result = receive_webhook(request.body, request.headers.get(SIGNATURE_HEADER))
    except SignatureError as e:
        return _error(e, 401)
    except (ValidationError, NotFoundError) as e:
        logger.warning("paydunya_webhook_rejected", error=e.message, details=e.details)
        return _error(e, 400)
    except (WebhookNotConfigured, PersistenceError) as e:
        # Return 500 so PayDunya retries
        return _error(e, 500)
    except Exception:
        logger.exception("paydunya_webhook_handler_error")
        return JsonResponse({"error": "Processing error"}, status=500)

    logger.info(
        "paydunya_webhook_processed",
        payment_id=result.payment_id,
        status=result.status,
        outcome=result.outcome,
    )
    return JsonResponse(result.to_response())
