# users/services.py
import logging

from django.db.models import Count, Q

from core.constants import (
    ACTIVITY_USER_CREATED,
    ACTIVITY_USER_STATUS_CHANGED,
    ACTIVITY_USER_UPDATED,
    MSG_INVALID_ACTION,
)
from core.services import ActionResult, ActivityService
from notifications import services as notifier
from .models import User
from .roles import PERM_MENTEE_MANAGEMENT, PERM_USER_MANAGEMENT, ROLE_CHOICES, has_any_permission

logger = logging.getLogger("cos.users")

PER_PAGE = 15

# action -> (is_active, message)
USER_ACTIONS = {
    "activate": (True, "User activated successfully."),
    "deactivate": (False, "User deactivated successfully."),
    "delete": (False, "User removed successfully."),
}


def can_view_profile(viewer, user) -> bool:
    return viewer.pk == user.pk or has_any_permission(viewer, [PERM_USER_MANAGEMENT, PERM_MENTEE_MANAGEMENT])


# -----------------------------------------
# List
# -----------------------------------------
def filter_users(params):
    qs = User.objects.all()

    search = (params.get("search") or "").strip()
    if search:
        qs = qs.filter(
            Q(username__icontains=search)
            | Q(email__icontains=search)
            | Q(first_name__icontains=search)
            | Q(last_name__icontains=search)
        )

    role = params.get("role")
    if role in dict(ROLE_CHOICES):
        qs = qs.filter(role=role)

    account_status = params.get("status")
    if account_status == "active":
        qs = qs.filter(is_active=True)
    elif account_status == "inactive":
        qs = qs.filter(is_active=False)

    return qs.order_by("-date_joined", "-id")


def role_stats() -> dict:
    """{role: {"label", "count", "active_count"}} for every role, zeros included."""
    rows = {
        row["role"]: row
        for row in User.objects.values("role").annotate(
            count=Count("id"),
            active_count=Count("id", filter=Q(is_active=True)),
        )
    }
    return {
        role: {
            "label": label,
            "count": rows.get(role, {}).get("count", 0),
            "active_count": rows.get(role, {}).get("active_count", 0),
        }
        for role, label in ROLE_CHOICES
    }


def apply_user_action(target, action: str, actor) -> ActionResult:
    """activate / deactivate / delete (soft) from the user list."""
    if action not in USER_ACTIONS:
        return ActionResult.error(MSG_INVALID_ACTION)
    if target.pk == actor.pk:
        return ActionResult.error("You cannot modify your own account.")

    is_active, message = USER_ACTIONS[action]
    target.is_active = is_active
    target.save(update_fields=["is_active"])

    ActivityService.log_activity(
        actor,
        ACTIVITY_USER_STATUS_CHANGED,
        target,
        message=f"{action} user {target.username}",
        metadata={"action": action, "is_active": is_active},
    )
    logger.info(f"User {action}: user={target.id}, actor={actor.id}")
    return ActionResult.success(message)


# -----------------------------------------
# Create / edit
# -----------------------------------------
def create_user(actor, data: dict) -> User:
    password = data.pop("password")
    user = User(**data)
    user.set_password(password)
    user.save()

    ActivityService.log_activity(actor, ACTIVITY_USER_CREATED, user, message=f"Created user: {user.username}")
    notifier.send_welcome_notification(user)
    return user


def update_user(user, actor, data: dict) -> User:
    """Apply edits; a role change notifies the user."""
    password = data.pop("password", None)
    old_role = user.role

    for attr, value in data.items():
        setattr(user, attr, value)
    if password:
        user.set_password(password)
    user.save()

    ActivityService.log_activity(
        actor,
        ACTIVITY_USER_UPDATED,
        user,
        message=f"Updated user: {user.username}",
        metadata={"fields": sorted(data), "password_changed": bool(password)},
    )
    if user.role != old_role:
        notifier.notify_role_changed(user, old_role, user.role)
    return user


# -----------------------------------------
# Profile
# -----------------------------------------
def profile_summary(user) -> dict:
    from assignments.models import Assignment
    from projects.models import Project
    from training.models import TrainingSession

    assignments = Assignment.objects.filter(assigned_to=user)
    projects = Project.objects.filter(participants__user=user)

    return {
        "stats": {
            "assignments_total": assignments.count(),
            "assignments_completed": assignments.filter(status=Assignment.STATUS_COMPLETED).count(),
            "projects_count": projects.count(),
        },
        "recent_assignments": assignments.select_related("project", "assigned_by").order_by("-created_at")[:5],
        "projects": projects.select_related("created_by").order_by("-created_at")[:5],
        "sessions": TrainingSession.objects.filter(attendance__user=user)
        .select_related("instructor")
        .order_by("-session_date")[:5],
    }
