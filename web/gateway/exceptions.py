"""Global exception handler for the DRF API.

Registered as ``REST_FRAMEWORK["EXCEPTION_HANDLER"]``. DRF's own
exceptions (parse errors, throttling, 404s raised by views) keep their
default mapping. Search index outages become 503 so clients can retry;
any other unhandled error is logged with its traceback and returned as a
generic 500 instead of Django's HTML error page.
"""

import logging

import httpx
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.food_orders.http_adapters import CircuitOpenError

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """Translate an exception raised inside an API view into a response.

    Args:
        exc: The exception raised by the view.
        context: DRF handler context (holds the view and the request).

    Returns:
        Response: Always a response; unhandled errors never reach Django.
    """
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    view_name = type(view).__name__ if view is not None else "-"

    if isinstance(exc, (httpx.HTTPError, CircuitOpenError)):
        logger.warning("Upstream unavailable in %s: %s", view_name, exc)
        return Response({"detail": "UPSTREAM_UNAVAILABLE"}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

    logger.exception("Unhandled error in %s", view_name)
    return Response({"detail": "INTERNAL_ERROR"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
