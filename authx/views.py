import logging

from django.conf import settings
from django.contrib.auth import login, logout
from django.db import DatabaseError
from django.middleware.csrf import get_token
from django.urls import reverse
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.authentication import enforce_csrf
from core.constants import (
    ACTIVITY_USER_LOGIN,
    ACTIVITY_USER_LOGOUT,
    ACTIVITY_USER_REGISTERED,
    CSRF_FIELD_NAME,
)
from core.services import ActivityService
from core.views import save_error, validation_error
from notifications import services as notifier
from users.roles import permissions_for_role
from users.serializers import UserSerializer
from .serializers import LoginSerializer, RegisterSerializer

logger = logging.getLogger("cos.auth")


def _csrf_payload(request) -> dict:
    return {
        "csrf_token": get_token(request._request),
        "field_name": CSRF_FIELD_NAME,
        "header_name": "X-CSRFToken",
    }


class CsrfTokenView(APIView):
    """
    GET /api/auth/csrf/
    Issue (or return) the session's token for forms and API clients.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return Response(_csrf_payload(request))


class LoginView(APIView):
    """
    POST /api/auth/login/  {username, password, csrf_token}
    Starts a Django session. The CSRF token is rotated on success.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        enforce_csrf(request)

        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            logger.warning("Failed login attempt: username=%s", request.data.get("username", ""))
            return validation_error(serializer.errors, request.data)

        user = serializer.validated_data["user"]
        login(request._request, user, backend="django.contrib.auth.backends.ModelBackend")
        ActivityService.log_activity(user, ACTIVITY_USER_LOGIN, user, message="Successful login")
        logger.info(f"User logged in: user={user.id}")

        return Response({
            "success": True,
            "message": f"Welcome back, {user.full_name}!",
            "message_type": "success",
            "user": UserSerializer(user).data,
            "permissions": sorted(permissions_for_role(user.role)),
            "session_timeout": settings.SESSION_COOKIE_AGE,
            "redirect": reverse("ux-dashboard-summary"),
            **_csrf_payload(request),
        })


class LogoutView(APIView):
    """
    POST /api/auth/logout/
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        user = request.user
        ActivityService.log_activity(user, ACTIVITY_USER_LOGOUT, user, message="Logged out")
        logout(request._request)
        return Response({
            "success": True,
            "message": "You have been logged out successfully.",
            "message_type": "success",
        })


class RegisterView(APIView):
    """
    POST /api/auth/register/
    Self-registration as participant, mentor or volunteer.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        enforce_csrf(request)

        serializer = RegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors, request.data)

        try:
            user = serializer.save()
        except DatabaseError:
            return save_error(logger, "Registration", username=request.data.get("username", ""))

        ActivityService.log_activity(user, ACTIVITY_USER_REGISTERED, user, message="Self-registered")
        notifier.send_welcome_notification(user)

        return Response(
            {
                "success": True,
                "message": "Registration successful. You can now log in with your credentials.",
                "message_type": "success",
                "username": user.username,
                "redirect": reverse("auth-login"),
            },
            status=status.HTTP_201_CREATED,
        )


class MeView(APIView):
    """
    GET /api/auth/me/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = request.user
        return Response({
            **UserSerializer(user).data,
            "permissions": sorted(permissions_for_role(user.role)),
        })
