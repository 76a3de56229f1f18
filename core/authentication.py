import logging

from django.conf import settings
from django.middleware.csrf import CsrfViewMiddleware
from rest_framework import exceptions
from rest_framework.authentication import SessionAuthentication

from .constants import CSRF_FIELD_NAME, MSG_CSRF_MISMATCH

logger = logging.getLogger("cos.auth")


class _CSRFCheck(CsrfViewMiddleware):
    def _reject(self, request, reason):
        # Return the failure reason instead of the HttpResponse
        return reason


def _promote_form_token(request):
    """
    Forms post the token as ``csrf_token``; Django reads the header.
    Copy the field into the header slot when no header was sent.
    """
    header = settings.CSRF_HEADER_NAME
    if header in request.META:
        return
    try:
        token = request.POST.get(CSRF_FIELD_NAME)
    except (AttributeError, exceptions.ParseError):
        token = None
    if not token and hasattr(request, "data") and hasattr(request.data, "get"):
        token = request.data.get(CSRF_FIELD_NAME)
    if token:
        request.META[header] = str(token)


def enforce_csrf(request):
    """
    Reject a state-changing request whose token does not match the session's.

    Raises PermissionDenied with a generic message; the specific reason is
    only logged.
    """
    _promote_form_token(request)

    def dummy_get_response(request):  # pragma: no cover
        return None

    check = _CSRFCheck(dummy_get_response)
    # populates request.META['CSRF_COOKIE'], which is used in process_view()
    check.process_request(request)
    reason = check.process_view(request, None, (), {})
    if reason:
        # Request.user would re-run authentication; read the Django request's user
        django_request = getattr(request, "_request", request)
        logger.warning(
            "CSRF check failed: path=%s user=%s reason=%s",
            request.path, getattr(getattr(django_request, "user", None), "pk", None), reason,
        )
        raise exceptions.PermissionDenied(MSG_CSRF_MISMATCH)


class CsrfSessionAuthentication(SessionAuthentication):
    """
    Session authentication that accepts the ``csrf_token`` form field and
    reports mismatches with the program's generic message.
    """

    def enforce_csrf(self, request):
        enforce_csrf(request)
