"""
Django Ninja API configuration.
"""

from django.http import HttpRequest, HttpResponse
from ninja import NinjaAPI
from ninja.errors import AuthenticationError as NinjaAuthenticationError
from ninja.errors import ValidationError as NinjaValidationError

from apps.billing.admin_api import router as admin_router
from apps.billing.api import router as billing_router
from apps.core.exceptions import AppError
from apps.core.logging import get_logger
from apps.gyms.api import router as gyms_router

logger = get_logger(__name__)

api = NinjaAPI(
    title="EasyFit Billing API",
    version="1.0.0",
    description="Gym entitlement, trial and PayDunya billing API.",
    openapi_extra={
        "info": {
            "contact": {"name": "API Support"},
        },
        "tags": [
            {"name": "gyms", "description": "Gym onboarding"},
            {"name": "billing", "description": "Checkout, payment confirmation and entitlement"},
            {"name": "admin", "description": "Platform admin subscription overrides"},
            {"name": "health", "description": "Service health and readiness checks"},
        ],
    },
)

# Register routers
api.add_router("/gyms", gyms_router)
api.add_router("/billing", billing_router)
api.add_router("/admin", admin_router)


@api.exception_handler(AppError)
def handle_app_error(request: HttpRequest, exc: AppError) -> HttpResponse:
    if exc.status_code >= 500:
        logger.error("api_error", error=exc.message, status_code=exc.status_code)
    return api.create_response(request, exc.to_dict(), status=exc.status_code)


@api.exception_handler(NinjaValidationError)
def handle_validation_error(request: HttpRequest, exc: NinjaValidationError) -> HttpResponse:
    missing = [
        str(error["loc"][-1])
        for error in exc.errors
        if error.get("type") == "missing" and error.get("loc")
    ]
    if missing:
        body = {"error": "Missing parameters", "details": missing}
    else:
        body = {"error": "Invalid request", "details": exc.errors}
    return api.create_response(request, body, status=400)


@api.exception_handler(NinjaAuthenticationError)
def handle_unauthenticated(request: HttpRequest, exc: NinjaAuthenticationError) -> HttpResponse:
    return api.create_response(request, {"error": "Not authenticated"}, status=401)


@api.get("/health", tags=["health"], operation_id="healthCheck", summary="Health check")
def health_check(request: HttpRequest) -> dict:
    """Health check endpoint for load balancer."""
    return {"status": "ok"}
