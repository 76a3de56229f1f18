# projects/services.py
import logging
from datetime import date
from typing import Optional

from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from core.constants import (
    ACTIVITY_PROJECT_JOINED,
    ACTIVITY_PROJECT_LEFT,
    ACTIVITY_PROJECT_ROLE_CHANGED,
    ACTIVITY_PROJECT_STATUS_CHANGED,
    ACTIVITY_PROJECT_UPDATED,
    MSG_INVALID_ACTION,
)
from core.forms import is_truthy
from core.services import ActionResult, ActivityService
from notifications import services as notifier
from users.roles import (
    PERM_MENTEE_MANAGEMENT,
    PERM_PROJECT_MANAGEMENT,
    PERM_USER_MANAGEMENT,
    has_any_permission,
    has_permission,
)
from .models import Project, ProjectParticipant
from .state_machine import workflow

logger = logging.getLogger("cos.projects")

PER_PAGE = 12


# -----------------------------------------
# Access rules
# -----------------------------------------
def user_sees_all_projects(user) -> bool:
    return has_any_permission(user, [PERM_PROJECT_MANAGEMENT, PERM_MENTEE_MANAGEMENT])


def can_edit_project(user, project) -> bool:
    """Creator, or anyone with user management."""
    return project.created_by_id == user.pk or has_permission(user, PERM_USER_MANAGEMENT)


def is_participant(project, user) -> bool:
    return project.participants.filter(user=user).exists()


def can_join(project, user) -> bool:
    return project.is_joinable and not is_participant(project, user)


# -----------------------------------------
# Read side
# -----------------------------------------
def filter_projects(user, params):
    qs = Project.objects.select_related("created_by").annotate(
        _participant_count=Count("participants", distinct=True)
    )

    search = (params.get("search") or "").strip()
    if search:
        qs = qs.filter(Q(title__icontains=search) | Q(description__icontains=search))

    status_param = params.get("status")
    if status_param in dict(Project.STATUS_CHOICES):
        qs = qs.filter(status=status_param)

    priority = params.get("priority")
    if priority in dict(Project.PRIORITY_CHOICES):
        qs = qs.filter(priority=priority)

    if is_truthy(params.get("my_projects")) or not user_sees_all_projects(user):
        qs = qs.filter(participants__user=user)

    return qs.order_by("-created_at", "-id")


def project_stats(user) -> dict:
    counts = Project.objects.aggregate(
        total_projects=Count("id"),
        active_projects=Count("id", filter=Q(status=Project.STATUS_ACTIVE)),
        completed_projects=Count("id", filter=Q(status=Project.STATUS_COMPLETED)),
    )
    counts["my_projects"] = ProjectParticipant.objects.filter(user=user).count()
    return counts


def days_running(project, today: Optional[date] = None) -> int:
    """Whole days since start_date, never negative; 0 when there is no start date."""
    if not project.start_date:
        return 0
    today = today or timezone.now().date()
    return max(0, (today - project.start_date).days)


def project_detail_stats(project) -> dict:
    from assignments.models import Assignment

    assignments = Assignment.objects.filter(project=project)
    return {
        "total_participants": project.participants.count(),
        "total_assignments": assignments.count(),
        "completed_assignments": assignments.filter(status=Assignment.STATUS_COMPLETED).count(),
        "days_running": days_running(project),
    }


# -----------------------------------------
# Write side
# -----------------------------------------
def create_project(user, data: dict) -> Project:
    """
    Insert the project and its leader row in one transaction.
    The creation activity is logged by the post_save signal.
    """
    with transaction.atomic():
        project = Project.objects.create(created_by=user, **data)
        ProjectParticipant.objects.create(
            project=project,
            user=user,
            role_in_project=ProjectParticipant.ROLE_LEADER,
        )
    logger.info(f"Project created: project={project.id}, actor={user.id}")
    return project


def update_project(project, user, data: dict) -> Project:
    for attr, value in data.items():
        setattr(project, attr, value)
    project.save()
    ActivityService.log_activity(
        user, ACTIVITY_PROJECT_UPDATED, project, message=f"Updated project: {project.title}"
    )
    return project


def change_status(project, new_status: str, user) -> ActionResult:
    ok, reason = workflow.transition(project, new_status, actor=user)
    if not ok:
        return ActionResult.error(reason)

    ActivityService.log_activity(
        user,
        ACTIVITY_PROJECT_STATUS_CHANGED,
        project,
        message=f"Project '{project.title}' status set to {new_status}",
        metadata={"status": new_status},
    )
    notified = notifier.notify_project_status_changed(project, new_status, user)
    return ActionResult.success("Project status updated successfully.", notified=notified)


def apply_list_action(project, action: str, user) -> ActionResult:
    """activate / complete / pause from the list page."""
    target = workflow.target_for_action(action)
    if target is None:
        return ActionResult.error(MSG_INVALID_ACTION)
    return change_status(project, target, user)


def join_project(project, user) -> ActionResult:
    if not project.is_joinable:
        return ActionResult.error("This project is not accepting new members.")
    if is_participant(project, user):
        return ActionResult.warning("You are already a participant in this project.")

    ProjectParticipant.objects.create(
        project=project,
        user=user,
        role_in_project=ProjectParticipant.ROLE_MEMBER,
    )
    ActivityService.log_activity(user, ACTIVITY_PROJECT_JOINED, project, message=f"Joined project: {project.title}")
    notified = notifier.notify_project_joined(project, user)
    return ActionResult.success("You have successfully joined the project!", notified=notified)


def leave_project(project, user) -> ActionResult:
    deleted, _ = ProjectParticipant.objects.filter(project=project, user=user).delete()
    if not deleted:
        return ActionResult.warning("You are not a participant in this project.")
    ActivityService.log_activity(user, ACTIVITY_PROJECT_LEFT, project, message=f"Left project: {project.title}")
    return ActionResult.success("You have left the project.")


def update_participant_role(project, participant_user_id, new_role: str, user) -> ActionResult:
    if new_role not in dict(ProjectParticipant.ROLE_CHOICES):
        return ActionResult.error("Invalid participant role.")

    participant = (
        ProjectParticipant.objects.select_related("user")
        .filter(project=project, user_id=participant_user_id)
        .first()
    )
    if participant is None:
        return ActionResult.error("Participant not found.")

    participant.role_in_project = new_role
    participant.save(update_fields=["role_in_project"])

    ActivityService.log_activity(
        user,
        ACTIVITY_PROJECT_ROLE_CHANGED,
        project,
        message=f"Set {participant.user.username} to {new_role} in {project.title}",
        metadata={"user_id": participant.user_id, "role": new_role},
    )
    notifier.notify_project_role_changed(project, participant.user, new_role)
    return ActionResult.success("Participant role updated successfully.")
