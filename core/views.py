import time
import logging

from django.conf import settings
from django.db import connections
from django.db.utils import OperationalError
from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .constants import MSG_SAVE_ERROR
from .forms import submitted_values

logger = logging.getLogger("cos")


def api_error(message: str, status_code=status.HTTP_400_BAD_REQUEST, message_type: str = "error"):
    """
    Small helper to standardize error responses across the apps.
    Always returns: {"success": false, "error": "<message>", ...}
    """
    return Response(
        {"success": False, "error": message, "message": message, "message_type": message_type},
        status=status_code,
    )


def get_object_or_404(queryset, label: str, **lookup):
    """Like Django's shortcut, but with a program-style message."""
    if isinstance(queryset, type):
        queryset = queryset.objects.all()
    obj = queryset.filter(**lookup).first()
    if obj is None:
        raise NotFound(f"{label} not found.")
    return obj


def flatten_errors(errors) -> list:
    """
    Turn serializer errors (dicts / lists / nested) into a flat list of
    human-readable messages, keeping field order.
    """
    if isinstance(errors, dict):
        messages = []
        for value in errors.values():
            messages.extend(flatten_errors(value))
        return messages
    if isinstance(errors, (list, tuple)):
        messages = []
        for value in errors:
            messages.extend(flatten_errors(value))
        return messages
    return [str(errors)]


def validation_error(errors, data=None):
    """400 with the accumulated messages and the submitted values echoed back."""
    return Response(
        {
            "success": False,
            "errors": flatten_errors(errors),
            "values": submitted_values(data) if data is not None else {},
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


def save_error(log, action: str, **context):
    """
    Report a persistence failure: full detail to the log, a generic
    message to the client. Call from inside an ``except`` block.
    """
    log.exception("%s failed: %s", action, context)
    return api_error(MSG_SAVE_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)


def action_response(result, status_code=None, **extra):
    """
    Render an ActionResult. Rejected actions are 400 unless told otherwise;
    warnings (e.g. "already registered") stay 200 so forms can show them.
    """
    if status_code is None:
        status_code = status.HTTP_200_OK if result.ok or result.level == "warning" else status.HTTP_400_BAD_REQUEST

    body = {
        "success": result.ok,
        "message": result.message,
        "message_type": result.level,
    }
    if not result.ok and result.level == "error":
        body["error"] = result.message
    body.update(result.data)
    body.update(extra)
    return Response(body, status=status_code)


class HealthCheckView(APIView):
    """
    Lightweight health endpoint for uptime checks.
    - Checks DB connectivity
    - Returns env and simple latency
    """
    permission_classes = [AllowAny]
    authentication_classes = []  # public endpoint

    def get(self, request, *args, **kwargs):
        start = time.time()

        db_ok = True
        try:
            connections["default"].cursor()
        except OperationalError:
            logger.warning("Health check: database unreachable", exc_info=True)
            db_ok = False

        duration_ms = int((time.time() - start) * 1000)

        return Response(
            {
                "status": "ok" if db_ok else "degraded",
                "db": db_ok,
                "env": getattr(settings, "ENV", "unknown"),
                "latency_ms": duration_ms,
            }
        )
