# notifications/services.py
"""
In-app notification side effects.

Every function here is best-effort: a failure is logged and reported as
False / 0 to the caller, never raised into the action that triggered it.
"""
import logging
from typing import Iterable, Optional

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.urls import reverse

from core.sanitizers import sanitize_text, sanitize_title
from users.roles import (
    PROGRAM_MEMBER_ROLES,
    ROLE_ADMIN,
    ROLE_CHOICES,
    ROLE_MENTOR,
    ROLE_PARTICIPANT,
    ROLE_VOLUNTEER,
)
from .models import Notification

logger = logging.getLogger("cos.notifications")

User = get_user_model()

VALID_TYPES = {choice for choice, _ in Notification.TYPE_CHOICES}
ROLE_NAMES = dict(ROLE_CHOICES)

WELCOME_TITLE = "Welcome to Girls Leadership Program!"
WELCOME_MESSAGES = {
    ROLE_PARTICIPANT: (
        "Welcome to the Girls Leadership Program! We're excited to have you join us "
        "on this journey of growth and leadership development."
    ),
    ROLE_MENTOR: (
        "Welcome to the Girls Leadership Program! Thank you for volunteering to mentor "
        "our participants. Your guidance will make a real difference."
    ),
    ROLE_ADMIN: (
        "Welcome to the Girls Leadership Program admin panel. You now have administrative "
        "access to manage the program."
    ),
    ROLE_VOLUNTEER: "Welcome to the Girls Leadership Program! Thank you for volunteering to support our mission.",
}

PROJECT_STATUS_MESSAGES = {
    "active": "Project has been activated and is now in progress",
    "completed": "Project has been completed successfully!",
    "on_hold": "Project has been put on hold temporarily",
    "cancelled": "Project has been cancelled",
}


def _user_id(user) -> Optional[int]:
    return getattr(user, "pk", user)


def _build(user_id, title, message, type_, action_url) -> Optional[Notification]:
    title = sanitize_title(title)[:255]
    message = sanitize_text(message)
    if not user_id or not title or not message:
        return None
    if type_ not in VALID_TYPES:
        type_ = Notification.TYPE_INFO
    return Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type_,
        action_url=sanitize_text(action_url or "", max_length=500),
    )


def create_notification(user, title: str, message: str, type: str = Notification.TYPE_INFO,
                        action_url: Optional[str] = None) -> bool:
    """
    Insert one notification row. Unknown types fall back to ``info``;
    a missing recipient, title or message returns False.
    """
    notification = _build(_user_id(user), title, message, type, action_url)
    if notification is None:
        logger.warning("Notification creation failed: missing required parameters (user=%s)", _user_id(user))
        return False

    try:
        with transaction.atomic():
            notification.save()
    except DatabaseError:
        logger.warning("Notification creation error for user=%s", _user_id(user), exc_info=True)
        return False
    return True


def notify_users(users: Iterable, title: str, message: str, type: str = Notification.TYPE_INFO,
                 action_url: Optional[str] = None, exclude: Iterable = ()) -> int:
    """
    Notify a cohort in one insert. Returns the number of users notified.
    """
    excluded = {_user_id(u) for u in exclude}
    seen = set()
    rows = []
    for user in users:
        user_id = _user_id(user)
        if user_id in excluded or user_id in seen:
            continue
        seen.add(user_id)
        notification = _build(user_id, title, message, type, action_url)
        if notification is not None:
            rows.append(notification)

    if not rows:
        return 0

    try:
        with transaction.atomic():
            Notification.objects.bulk_create(rows)
    except DatabaseError:
        logger.warning("Bulk notification error (%d recipients): %s", len(rows), title, exc_info=True)
        return 0
    return len(rows)


def users_with_roles(roles: Iterable[str]):
    return User.objects.filter(role__in=list(roles), is_active=True)


# -----------------------------------------
# Projects
# -----------------------------------------
def notify_project_joined(project, new_participant) -> int:
    url = reverse("project-detail", args=[project.pk])
    name = new_participant.full_name
    notified = 0

    if project.created_by_id and project.created_by_id != new_participant.pk:
        if create_notification(
            project.created_by_id,
            "New Project Member",
            f"{name} joined your project: {project.title}",
            Notification.TYPE_SUCCESS,
            url,
        ):
            notified += 1

    others = project.participants.exclude(user_id__in=[new_participant.pk, project.created_by_id])
    notified += notify_users(
        others.values_list("user_id", flat=True),
        "Project Update",
        f"{name} joined the project: {project.title}",
        Notification.TYPE_INFO,
        url,
    )
    return notified


def notify_project_status_changed(project, new_status: str, updated_by) -> int:
    message = PROJECT_STATUS_MESSAGES.get(new_status, f"Project status updated to: {new_status}")
    if new_status == "completed":
        type_ = Notification.TYPE_SUCCESS
    elif new_status == "cancelled":
        type_ = Notification.TYPE_ERROR
    else:
        type_ = Notification.TYPE_WARNING

    return notify_users(
        project.participants.values_list("user_id", flat=True),
        "Project Status Update",
        f"'{project.title}': {message}",
        type_,
        reverse("project-detail", args=[project.pk]),
        exclude=[updated_by],
    )


def notify_project_role_changed(project, participant_user, new_role: str) -> bool:
    return create_notification(
        participant_user,
        "Project Role Updated",
        f"Your role in '{project.title}' is now: {new_role.title()}",
        Notification.TYPE_INFO,
        reverse("project-detail", args=[project.pk]),
    )


# -----------------------------------------
# Training
# -----------------------------------------
def notify_training_session_created(session, creator) -> int:
    return notify_users(
        users_with_roles([ROLE_PARTICIPANT, ROLE_MENTOR]),
        "New Training Session",
        f"New training session available: {session.title}",
        Notification.TYPE_INFO,
        reverse("training-session-detail", args=[session.pk]),
        exclude=[creator],
    )


def notify_training_registration(session, participant) -> bool:
    when = session.session_date.strftime("%b %d, %Y at %I:%M %p")
    return create_notification(
        participant,
        "Training Registration Confirmed",
        f"You're registered for: {session.title} on {when}",
        Notification.TYPE_SUCCESS,
        reverse("training-session-detail", args=[session.pk]),
    )


# -----------------------------------------
# Surveys
# -----------------------------------------
def notify_survey_created(survey, creator) -> int:
    return notify_users(
        users_with_roles(PROGRAM_MEMBER_ROLES),
        "New Survey Available",
        f"A new survey is available: {survey.title}",
        Notification.TYPE_INFO,
        reverse("survey-take", args=[survey.pk]),
        exclude=[creator],
    )


def notify_survey_response(survey, responder=None) -> bool:
    if not survey.created_by_id:
        return False
    if responder is None:
        title = "New Survey Response"
        message = f"Someone submitted an anonymous response to: {survey.title}"
    else:
        title = "Survey Response Received"
        message = f"{responder.full_name} completed your survey: {survey.title}"
    return create_notification(
        survey.created_by_id,
        title,
        message,
        Notification.TYPE_SUCCESS,
        reverse("survey-results", args=[survey.pk]),
    )


# -----------------------------------------
# Assignments
# -----------------------------------------
def notify_assignment_created(assignment) -> int:
    url = reverse("assignment-detail", args=[assignment.pk])
    notified = 0
    if create_notification(
        assignment.assigned_to_id,
        "New Assignment",
        f"You have been assigned: {assignment.title}",
        Notification.TYPE_INFO,
        url,
    ):
        notified += 1

    if assignment.project_id:
        participants = assignment.project.participants.exclude(
            user_id__in=[assignment.assigned_to_id, assignment.assigned_by_id]
        )
        notified += notify_users(
            participants.values_list("user_id", flat=True),
            "Project Assignment Update",
            f"New assignment created in your project: {assignment.title}",
            Notification.TYPE_INFO,
            url,
        )
    return notified


def notify_assignment_submitted(assignment, submitted_by) -> bool:
    return create_notification(
        assignment.assigned_by_id,
        "Assignment Submitted",
        f"{submitted_by.full_name} submitted: {assignment.title}",
        Notification.TYPE_SUCCESS,
        reverse("assignment-review", args=[assignment.pk]),
    )


def notify_assignment_reviewed(assignment, grade=None) -> bool:
    message = f"Your assignment '{assignment.title}' has been reviewed."
    type_ = Notification.TYPE_INFO
    if grade is not None:
        max_grade = assignment.max_grade
        message += f" Grade: {grade}/{max_grade}"
        type_ = Notification.TYPE_SUCCESS if grade >= 0.7 * max_grade else Notification.TYPE_WARNING
    return create_notification(
        assignment.assigned_to_id,
        "Assignment Reviewed",
        message,
        type_,
        reverse("assignment-detail", args=[assignment.pk]),
    )


# -----------------------------------------
# Users
# -----------------------------------------
def send_welcome_notification(user) -> bool:
    return create_notification(
        user,
        WELCOME_TITLE,
        WELCOME_MESSAGES.get(user.role, "Welcome to the Girls Leadership Program!"),
        Notification.TYPE_SUCCESS,
        reverse("ux-dashboard-summary"),
    )


def notify_role_changed(user, old_role: str, new_role: str) -> bool:
    return create_notification(
        user,
        "Role Updated",
        f"Your role has been updated from {ROLE_NAMES.get(old_role, old_role)} "
        f"to {ROLE_NAMES.get(new_role, new_role)}.",
        Notification.TYPE_INFO,
        reverse("user-profile-me"),
    )
