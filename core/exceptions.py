from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response
from rest_framework import exceptions, status
import logging

from .constants import MSG_FORBIDDEN, MSG_INTERNAL_ERROR, MSG_LOGIN_REQUIRED

logger = logging.getLogger("cos.errors")


def custom_exception_handler(exc, context):
    """
    Wrap DRF + Django exceptions into a consistent response format.

    Success responses (2xx) are not touched.
    Only errors come through here. Authorization failures carry a generic
    message; unexpected exceptions are logged and reported as a bare 500.
    """
    response = drf_exception_handler(exc, context)

    # If DRF handled it, wrap it
    if response is not None:
        errors = response.data
        if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
            errors = {"detail": MSG_LOGIN_REQUIRED}
        elif isinstance(exc, exceptions.PermissionDenied) and not errors.get("detail"):
            errors = {"detail": MSG_FORBIDDEN}

        return Response(
            {
                "success": False,
                "status_code": response.status_code,
                "errors": errors,
            },
            status=response.status_code,
            headers={
                key: value for key, value in response.items()
                if key in ("WWW-Authenticate", "Retry-After", "Allow")
            },
        )

    # Unhandled exceptions -> 500
    view = context.get("view")
    logger.exception(
        "Unhandled API exception in %s", view.__class__.__name__ if view else "unknown view", exc_info=exc
    )

    return Response(
        {
            "success": False,
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "errors": {"detail": MSG_INTERNAL_ERROR},
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
