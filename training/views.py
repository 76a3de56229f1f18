import logging

from django.db import DatabaseError
from django.urls import reverse
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.constants import MSG_FORBIDDEN, MSG_INVALID_ACTION
from core.forms import bracket_dict, int_list, list_param
from core.pagination import paginate, pagination_meta
from core.permissions import require_permission
from core.views import action_response, api_error, get_object_or_404, save_error, validation_error
from users.roles import PERM_TRAINING_MANAGEMENT, PERM_USER_MANAGEMENT
from . import services
from .models import SessionAttendance, TrainingSession
from .serializers import (
    AttendanceSerializer,
    AvailableUserSerializer,
    TrainingSessionSerializer,
    TrainingSessionWriteSerializer,
)
from .state_machine import SESSION_ACTIONS, workflow

logger = logging.getLogger("cos.training")

CanManageSessions = require_permission(PERM_TRAINING_MANAGEMENT, PERM_USER_MANAGEMENT)


class TrainingSessionListCreateView(APIView):
    """
    GET  /api/training/?search=&status=&date_filter=&instructor_id=&my_sessions=1&page=
    POST /api/training/   (training_management)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = services.filter_sessions(request.user, request.query_params)
        page = paginate(qs, request.query_params.get("page"), services.PER_PAGE)

        return Response({
            "results": TrainingSessionSerializer(page["items"], many=True).data,
            "pagination": pagination_meta(page),
            "stats": services.session_stats(request.user),
            "instructors": [
                {"id": user.pk, "name": user.full_name} for user in services.instructors()
            ],
            "filters": {
                key: request.query_params.get(key, "")
                for key in ("search", "status", "date_filter", "instructor_id", "my_sessions")
            },
            "can_manage": services.can_manage_sessions(request.user),
        })

    def post(self, request):
        if not CanManageSessions().has_permission(request, self):
            self.permission_denied(request, message=MSG_FORBIDDEN)

        serializer = TrainingSessionWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors, request.data)

        try:
            session = services.create_session(request.user, serializer.validated_data)
        except DatabaseError:
            return save_error(logger, "Training session creation", user=request.user.pk)

        return Response(
            {
                "success": True,
                "message": "Training session created successfully.",
                "message_type": "success",
                "session": TrainingSessionSerializer(session).data,
                "redirect": reverse("training-session-detail", args=[session.pk]),
            },
            status=status.HTTP_201_CREATED,
        )


class TrainingSessionDetailView(APIView):
    """
    GET  /api/training/<id>/
    POST /api/training/<id>/  {action: register_attendance|unregister_attendance|
                                       start_session|complete_session|cancel_session}
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, session_id):
        session = get_object_or_404(
            services.with_counts(TrainingSession.objects.select_related("instructor")),
            "Training session",
            pk=session_id,
        )
        mine = SessionAttendance.objects.filter(session=session, user=request.user).first()
        can_manage = services.can_manage_sessions(request.user)

        body = {
            "session": TrainingSessionSerializer(session).data,
            "my_registration": AttendanceSerializer(mine).data if mine else None,
            "can_register": mine is None and session.status == TrainingSession.STATUS_SCHEDULED,
            "can_manage": can_manage,
        }
        if can_manage:
            body["allowed_transitions"] = workflow.allowed_transitions(session)
            body["attendance_stats"] = services.attendance_stats(session)
        return Response(body)

    def post(self, request, session_id):
        session = get_object_or_404(TrainingSession, "Training session", pk=session_id)
        action = request.data.get("action", "")

        if action in SESSION_ACTIONS and not services.can_manage_sessions(request.user):
            self.permission_denied(request, message=MSG_FORBIDDEN)

        try:
            if action == "register_attendance":
                result = services.register(session, request.user)
            elif action == "unregister_attendance":
                result = services.unregister(session, request.user)
            elif action in SESSION_ACTIONS:
                result = services.apply_session_action(session, action, request.user)
            else:
                return api_error(MSG_INVALID_ACTION)
        except DatabaseError:
            return save_error(logger, f"Session action '{action}'", session=session.pk, user=request.user.pk)

        return action_response(result)


class TrainingSessionEditView(APIView):
    """
    GET  /api/training/<id>/edit/
    POST /api/training/<id>/edit/
    """
    permission_classes = [IsAuthenticated, CanManageSessions]

    def get(self, request, session_id):
        session = get_object_or_404(TrainingSession, "Training session", pk=session_id)
        return Response({"values": TrainingSessionWriteSerializer(session).data, "session_id": session.pk})

    def post(self, request, session_id):
        session = get_object_or_404(TrainingSession, "Training session", pk=session_id)

        serializer = TrainingSessionWriteSerializer(session, data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors, request.data)

        try:
            session = services.update_session(session, request.user, serializer.validated_data)
        except DatabaseError:
            return save_error(logger, "Training session update", session=session.pk)

        return Response({
            "success": True,
            "message": "Training session updated successfully.",
            "message_type": "success",
            "session": TrainingSessionSerializer(session).data,
            "redirect": reverse("training-session-detail", args=[session.pk]),
        })


class TrainingAttendanceView(APIView):
    """
    GET  /api/training/<id>/attendance/
    POST /api/training/<id>/attendance/  {action: mark_attendance|bulk_register|add_participant}

    mark_attendance: attendance[<user_id>]=<status>, notes[<user_id>]=<text>
    bulk_register:   selected_users=[<user_id>, ...]
    add_participant: user_id=<user_id>
    """
    permission_classes = [IsAuthenticated, require_permission(PERM_TRAINING_MANAGEMENT)]

    def get(self, request, session_id):
        session = get_object_or_404(
            TrainingSession.objects.select_related("instructor"), "Training session", pk=session_id
        )
        rows = (
            SessionAttendance.objects.filter(session=session)
            .select_related("user")
            .order_by("user__first_name", "user__last_name", "user__username")
        )

        return Response({
            "session": TrainingSessionSerializer(session).data,
            "attendance": AttendanceSerializer(rows, many=True).data,
            "stats": services.attendance_stats(session),
            "available_users": AvailableUserSerializer(services.available_users(session), many=True).data,
            "statuses": [value for value, _ in SessionAttendance.STATUS_CHOICES],
        })

    def post(self, request, session_id):
        session = get_object_or_404(TrainingSession, "Training session", pk=session_id)
        action = request.data.get("action", "")

        try:
            if action == "mark_attendance":
                result = services.mark_attendance(
                    session,
                    bracket_dict(request.data, "attendance"),
                    bracket_dict(request.data, "notes"),
                    request.user,
                )
            elif action == "bulk_register":
                user_ids = int_list(list_param(request.data, "selected_users"))
                if not user_ids:
                    return api_error("Please select at least one participant.")
                result = services.bulk_register(session, user_ids, request.user)
            elif action == "add_participant":
                result = services.add_participant(session, request.data.get("user_id"), request.user)
            else:
                return api_error(MSG_INVALID_ACTION)
        except DatabaseError:
            return save_error(logger, f"Attendance action '{action}'", session=session.pk)

        return action_response(result, stats=services.attendance_stats(session))


class TrainingCalendarView(APIView):
    """
    GET /api/training/calendar/?year=2026&month=3
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        data = services.calendar_month(
            request.user,
            request.query_params.get("year"),
            request.query_params.get("month"),
        )
        by_date = data["sessions_by_date"]
        my_ids = data["my_session_ids"]

        weeks = []
        for week in data["weeks"]:
            days = []
            for day in week:
                sessions = TrainingSessionSerializer(by_date.get(day["date"], []), many=True).data
                for item in sessions:
                    item["is_registered"] = item["id"] in my_ids
                days.append({**day, "sessions": sessions})
            weeks.append(days)

        return Response({
            "year": data["year"],
            "month": data["month"],
            "grid_start": data["grid_start"],
            "grid_end": data["grid_end"],
            "weeks": weeks,
            "navigation": data["navigation"],
            "stats": data["stats"],
        })
