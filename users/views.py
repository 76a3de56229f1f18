import logging

from django.contrib.auth import update_session_auth_hash
from django.db import DatabaseError
from django.urls import reverse
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from assignments.serializers import AssignmentSerializer
from core.constants import MSG_FORBIDDEN
from core.forms import to_int
from core.pagination import paginate, pagination_meta
from core.permissions import require_permission
from core.views import action_response, get_object_or_404, save_error, validation_error
from projects.serializers import ProjectSerializer
from training.serializers import TrainingSessionSerializer
from . import services
from .models import User
from .roles import PERM_USER_MANAGEMENT, ROLE_CHOICES
from .serializers import ProfileUpdateSerializer, UserManageSerializer, UserSerializer

logger = logging.getLogger("cos.users")

CanManageUsers = require_permission(PERM_USER_MANAGEMENT)


class UserListView(APIView):
    """
    GET  /api/users/?search=&role=&status=active|inactive&page=
    POST /api/users/  {action: activate|deactivate|delete, user_id}
    """
    permission_classes = [IsAuthenticated, CanManageUsers]

    def get(self, request):
        qs = services.filter_users(request.query_params)
        page = paginate(qs, request.query_params.get("page"), services.PER_PAGE)

        return Response({
            "results": UserSerializer(page["items"], many=True).data,
            "pagination": pagination_meta(page),
            "role_stats": services.role_stats(),
            "roles": [{"value": value, "label": label} for value, label in ROLE_CHOICES],
            "filters": {key: request.query_params.get(key, "") for key in ("search", "role", "status")},
        })

    def post(self, request):
        target = get_object_or_404(User, "User", pk=to_int(request.data.get("user_id"), 0))
        action = request.data.get("action", "")

        try:
            result = services.apply_user_action(target, action, request.user)
        except DatabaseError:
            return save_error(logger, f"User action '{action}'", user=target.pk)
        return action_response(result)


class UserCreateView(APIView):
    """
    GET  /api/users/create/   role choices for the form
    POST /api/users/create/
    """
    permission_classes = [IsAuthenticated, CanManageUsers]

    def get(self, request):
        return Response({"roles": [{"value": value, "label": label} for value, label in ROLE_CHOICES]})

    def post(self, request):
        serializer = UserManageSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors, request.data)

        try:
            user = services.create_user(request.user, dict(serializer.validated_data))
        except DatabaseError:
            return save_error(logger, "User creation", actor=request.user.pk)

        return Response(
            {
                "success": True,
                "message": "User created successfully.",
                "message_type": "success",
                "user": UserSerializer(user).data,
                "redirect": reverse("user-manage", args=[user.pk]),
            },
            status=status.HTTP_201_CREATED,
        )


class UserManageView(APIView):
    """
    GET  /api/users/<id>/   current values for the edit form
    POST /api/users/<id>/   save (username is fixed)
    """
    permission_classes = [IsAuthenticated, CanManageUsers]

    def get(self, request, user_id):
        user = get_object_or_404(User, "User", pk=user_id)
        return Response({
            "user": UserSerializer(user).data,
            "roles": [{"value": value, "label": label} for value, label in ROLE_CHOICES],
        })

    def post(self, request, user_id):
        user = get_object_or_404(User, "User", pk=user_id)

        serializer = UserManageSerializer(user, data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors, request.data)

        try:
            user = services.update_user(user, request.user, dict(serializer.validated_data))
        except DatabaseError:
            return save_error(logger, "User update", user=user.pk)

        return Response({
            "success": True,
            "message": "User updated successfully.",
            "message_type": "success",
            "user": UserSerializer(user).data,
        })


class ProfileView(APIView):
    """
    GET  /api/users/profile/          own profile
    GET  /api/users/<id>/profile/     another user's (user_management / mentee_management)
    POST /api/users/profile/          self-service update
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, user_id=None):
        user = request.user
        if user_id is not None and user_id != request.user.pk:
            user = get_object_or_404(User, "User", pk=user_id)
            if not services.can_view_profile(request.user, user):
                self.permission_denied(request, message=MSG_FORBIDDEN)

        summary = services.profile_summary(user)
        return Response({
            "user": UserSerializer(user).data,
            "stats": summary["stats"],
            "recent_assignments": AssignmentSerializer(summary["recent_assignments"], many=True).data,
            "projects": ProjectSerializer(summary["projects"], many=True).data,
            "sessions": TrainingSessionSerializer(summary["sessions"], many=True).data,
            "is_own_profile": user.pk == request.user.pk,
        })

    def post(self, request, user_id=None):
        if user_id is not None and user_id != request.user.pk:
            self.permission_denied(request, message=MSG_FORBIDDEN)

        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        if not serializer.is_valid():
            return validation_error(serializer.errors, request.data)

        data = dict(serializer.validated_data)
        try:
            user = services.update_user(request.user, request.user, data)
        except DatabaseError:
            return save_error(logger, "Profile update", user=request.user.pk)

        if "password" in serializer.validated_data:
            update_session_auth_hash(request._request, user)

        return Response({
            "success": True,
            "message": "Profile updated successfully.",
            "message_type": "success",
            "user": UserSerializer(user).data,
        })
