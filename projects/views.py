import logging

from django.db import DatabaseError
from django.urls import reverse
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.constants import MSG_FORBIDDEN, MSG_INVALID_ACTION
from core.forms import to_int
from core.pagination import paginate, pagination_meta
from core.permissions import require_permission
from core.views import action_response, api_error, get_object_or_404, save_error, validation_error
from users.roles import PERM_PROJECT_MANAGEMENT, has_permission
from . import services
from .models import Project, ProjectParticipant
from .serializers import ParticipantSerializer, ProjectSerializer, ProjectWriteSerializer

logger = logging.getLogger("cos.projects")


class ProjectListCreateView(APIView):
    """
    GET  /api/projects/?search=&status=&priority=&my_projects=1&page=
    POST /api/projects/   (project_management)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = services.filter_projects(request.user, request.query_params)
        page = paginate(qs, request.query_params.get("page"), services.PER_PAGE)

        return Response({
            "results": ProjectSerializer(page["items"], many=True, context={"request": request}).data,
            "pagination": pagination_meta(page),
            "stats": services.project_stats(request.user),
            "filters": {
                key: request.query_params.get(key, "")
                for key in ("search", "status", "priority", "my_projects")
            },
            "can_manage": has_permission(request.user, PERM_PROJECT_MANAGEMENT),
        })

    def post(self, request):
        if not has_permission(request.user, PERM_PROJECT_MANAGEMENT):
            self.permission_denied(request, message=MSG_FORBIDDEN)

        serializer = ProjectWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors, request.data)

        try:
            project = services.create_project(request.user, serializer.validated_data)
        except DatabaseError:
            return save_error(logger, "Project creation", user=request.user.pk)

        return Response(
            {
                "success": True,
                "message": "Project created successfully.",
                "message_type": "success",
                "project": ProjectSerializer(project, context={"request": request}).data,
                "redirect": reverse("project-detail", args=[project.pk]),
            },
            status=status.HTTP_201_CREATED,
        )


class ProjectActionView(APIView):
    """
    POST /api/projects/actions/  {action: activate|complete|pause, project_id}
    """
    permission_classes = [IsAuthenticated, require_permission(PERM_PROJECT_MANAGEMENT)]

    def post(self, request):
        project = get_object_or_404(Project, "Project", pk=to_int(request.data.get("project_id"), 0))
        action = request.data.get("action", "")

        try:
            result = services.apply_list_action(project, action, request.user)
        except DatabaseError:
            return save_error(logger, f"Project action '{action}'", project=project.pk)
        return action_response(result)


class ProjectDetailView(APIView):
    """
    GET  /api/projects/<id>/
    POST /api/projects/<id>/  {action: join_project|leave_project|update_status|update_role}
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, project_id):
        project = get_object_or_404(Project.objects.select_related("created_by"), "Project", pk=project_id)

        from assignments.models import Assignment
        from assignments.serializers import AssignmentSerializer

        participants = ProjectParticipant.objects.filter(project=project).select_related("user")
        recent_assignments = (
            Assignment.objects.filter(project=project)
            .select_related("assigned_to", "assigned_by")
            .order_by("-created_at")[:10]
        )

        return Response({
            "project": ProjectSerializer(project, context={"request": request}).data,
            "participants": ParticipantSerializer(participants, many=True).data,
            "recent_assignments": AssignmentSerializer(recent_assignments, many=True).data,
            "stats": services.project_detail_stats(project),
            "is_participant": services.is_participant(project, request.user),
            "can_join": services.can_join(project, request.user),
            "can_edit": services.can_edit_project(request.user, project),
            "can_manage": has_permission(request.user, PERM_PROJECT_MANAGEMENT),
        })

    def post(self, request, project_id):
        project = get_object_or_404(Project, "Project", pk=project_id)
        action = request.data.get("action", "")

        if action in ("update_status", "update_role") and not has_permission(
            request.user, PERM_PROJECT_MANAGEMENT
        ):
            self.permission_denied(request, message=MSG_FORBIDDEN)

        try:
            if action == "join_project":
                result = services.join_project(project, request.user)
            elif action == "leave_project":
                result = services.leave_project(project, request.user)
            elif action == "update_status":
                result = services.change_status(project, request.data.get("status", ""), request.user)
            elif action == "update_role":
                result = services.update_participant_role(
                    project,
                    to_int(request.data.get("user_id")),
                    request.data.get("role_in_project") or request.data.get("role", ""),
                    request.user,
                )
            else:
                return api_error(MSG_INVALID_ACTION)
        except DatabaseError:
            return save_error(logger, f"Project action '{action}'", project=project.pk, user=request.user.pk)

        return action_response(result)


class ProjectEditView(APIView):
    """
    GET  /api/projects/<id>/edit/   current values for the form
    POST /api/projects/<id>/edit/   save (creator or user_management)
    """
    permission_classes = [IsAuthenticated, require_permission(PERM_PROJECT_MANAGEMENT)]

    def _load(self, request, project_id):
        project = get_object_or_404(Project, "Project", pk=project_id)
        if not services.can_edit_project(request.user, project):
            self.permission_denied(request, message="You can only edit projects you created.")
        return project

    def get(self, request, project_id):
        project = self._load(request, project_id)
        return Response({"values": ProjectWriteSerializer(project).data, "project_id": project.pk})

    def post(self, request, project_id):
        project = self._load(request, project_id)

        serializer = ProjectWriteSerializer(project, data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors, request.data)

        try:
            project = services.update_project(project, request.user, serializer.validated_data)
        except DatabaseError:
            return save_error(logger, "Project update", project=project.pk)

        return Response({
            "success": True,
            "message": "Project updated successfully.",
            "message_type": "success",
            "project": ProjectSerializer(project, context={"request": request}).data,
            "redirect": reverse("project-detail", args=[project.pk]),
        })
