"""
Core middleware.
"""

import uuid
from collections.abc import Callable

from django.http import HttpRequest, HttpResponse

from apps.core.logging import bind_contextvars, clear_contextvars

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware:
    """
    Binds a per-request trace_id (and the acting user, when known) to the
    structlog context, and echoes the trace_id back in X-Request-ID.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        clear_contextvars()
        trace_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

        context = {"trace_id": trace_id, "http.method": request.method, "http.path": request.path}
        user = getattr(request, "user", None)
        if user is not None and user.is_authenticated:
            context["usr.id"] = str(user.pk)
        bind_contextvars(**context)

        try:
            response = self.get_response(request)
        finally:
            clear_contextvars()

        response[REQUEST_ID_HEADER] = trace_id
        return response
