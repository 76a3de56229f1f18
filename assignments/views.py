import logging

from django.db import DatabaseError
from django.urls import reverse
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.constants import MSG_FORBIDDEN
from core.forms import to_int
from core.pagination import paginate, pagination_meta
from core.permissions import require_permission
from core.views import action_response, get_object_or_404, save_error, validation_error
from users.roles import PERM_ASSIGNMENT_MANAGEMENT, PERM_USER_MANAGEMENT, has_permission
from . import services
from .models import Assignment
from .serializers import (
    AssignmentSerializer,
    AssignmentWriteSerializer,
    ReviewSerializer,
    SubmissionSerializer,
    SubmitSerializer,
)

logger = logging.getLogger("cos.assignments")

_ASSIGNMENTS = Assignment.objects.select_related("assigned_to", "assigned_by", "project")


class AssignmentListCreateView(APIView):
    """
    GET  /api/assignments/?search=&status=&priority=&project_id=&my_assignments=1&assigned_by_me=1
    POST /api/assignments/   (assignment_management)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = services.filter_assignments(request.user, request.query_params)
        page = paginate(qs, request.query_params.get("page"), services.PER_PAGE)
        return Response({
            "results": AssignmentSerializer(page["items"], many=True).data,
            "pagination": pagination_meta(page),
            "stats": services.assignment_stats(request.user),
            "can_manage": has_permission(request.user, PERM_ASSIGNMENT_MANAGEMENT),
        })

    def post(self, request):
        if not has_permission(request.user, PERM_ASSIGNMENT_MANAGEMENT):
            self.permission_denied(request, message=MSG_FORBIDDEN)

        serializer = AssignmentWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors, request.data)

        try:
            assignment = services.create_assignment(request.user, serializer.validated_data)
        except DatabaseError:
            return save_error(logger, "Assignment creation", user=request.user.pk)

        return Response(
            {
                "success": True,
                "message": "Assignment created successfully.",
                "message_type": "success",
                "assignment": AssignmentSerializer(assignment).data,
                "redirect": reverse("assignment-detail", args=[assignment.pk]),
            },
            status=status.HTTP_201_CREATED,
        )


class AssignmentActionView(APIView):
    """
    POST /api/assignments/actions/  {action: mark_reviewed|mark_completed|reopen, assignment_id}
    """
    permission_classes = [IsAuthenticated, require_permission(PERM_ASSIGNMENT_MANAGEMENT)]

    def post(self, request):
        assignment = get_object_or_404(
            Assignment, "Assignment", pk=to_int(request.data.get("assignment_id"), 0)
        )
        action = request.data.get("action", "")
        try:
            result = services.apply_list_action(assignment, action, request.user)
        except DatabaseError:
            return save_error(logger, f"Assignment action '{action}'", assignment=assignment.pk)
        return action_response(result)


class AssignmentDetailView(APIView):
    """
    GET  /api/assignments/<id>/
    POST /api/assignments/<id>/   edit (assigned_by or user_management)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, assignment_id):
        assignment = get_object_or_404(_ASSIGNMENTS, "Assignment", pk=assignment_id)
        if not services.can_view_assignment(request.user, assignment):
            self.permission_denied(request, message=MSG_FORBIDDEN)

        submissions = assignment.submissions.select_related("user", "reviewed_by")
        if assignment.assigned_to_id == request.user.pk and not services.user_sees_all_assignments(request.user):
            submissions = submissions.filter(user=request.user)

        return Response({
            "assignment": AssignmentSerializer(assignment).data,
            "submissions": SubmissionSerializer(submissions, many=True).data,
            "can_edit": services.can_edit_assignment(request.user, assignment),
            "can_submit": (
                assignment.assigned_to_id == request.user.pk
                and assignment.status in Assignment.SUBMITTABLE_STATUSES
            ),
        })

    def post(self, request, assignment_id):
        if not has_permission(request.user, PERM_ASSIGNMENT_MANAGEMENT):
            self.permission_denied(request, message=MSG_FORBIDDEN)

        assignment = get_object_or_404(Assignment, "Assignment", pk=assignment_id)
        if not services.can_edit_assignment(request.user, assignment):
            self.permission_denied(request, message="You can only edit assignments you created.")

        serializer = AssignmentWriteSerializer(assignment, data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors, request.data)

        try:
            assignment = services.update_assignment(assignment, request.user, serializer.validated_data)
        except DatabaseError:
            return save_error(logger, "Assignment update", assignment=assignment.pk)

        return Response({
            "success": True,
            "message": "Assignment updated successfully.",
            "message_type": "success",
            "assignment": AssignmentSerializer(assignment).data,
        })


class AssignmentSubmitView(APIView):
    """
    POST /api/assignments/<id>/submit/  {submission_text}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, assignment_id):
        assignment = get_object_or_404(Assignment, "Assignment", pk=assignment_id)

        serializer = SubmitSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors, request.data)

        try:
            result = services.submit_assignment(
                assignment, request.user, serializer.validated_data["submission_text"]
            )
        except DatabaseError:
            return save_error(logger, "Assignment submission", assignment=assignment.pk, user=request.user.pk)

        if not result.ok and assignment.assigned_to_id != request.user.pk:
            return action_response(result, status_code=status.HTTP_403_FORBIDDEN)
        return action_response(result)


class AssignmentReviewView(APIView):
    """
    POST /api/assignments/<id>/review/  {grade, feedback}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, assignment_id):
        assignment = get_object_or_404(Assignment, "Assignment", pk=assignment_id)
        if assignment.assigned_by_id != request.user.pk and not has_permission(request.user, PERM_USER_MANAGEMENT):
            self.permission_denied(request, message="You can only review assignments you created.")

        serializer = ReviewSerializer(data=request.data, context={"assignment": assignment})
        if not serializer.is_valid():
            return validation_error(serializer.errors, request.data)

        try:
            result = services.review_assignment(
                assignment,
                request.user,
                serializer.validated_data.get("grade"),
                serializer.validated_data["feedback"],
            )
        except DatabaseError:
            return save_error(logger, "Assignment review", assignment=assignment.pk)
        return action_response(result)
