# users/roles.py
"""
Role → permission table for the program.

Loaded once at import and exposed read-only; handlers ask
``has_permission(user, name)`` instead of inspecting roles directly.
"""
from types import MappingProxyType
from typing import FrozenSet, Iterable

ROLE_ADMIN = "admin"
ROLE_MENTOR = "mentor"
ROLE_PARTICIPANT = "participant"
ROLE_VOLUNTEER = "volunteer"

ROLE_CHOICES = [
    (ROLE_ADMIN, "Administrator"),
    (ROLE_MENTOR, "Mentor"),
    (ROLE_PARTICIPANT, "Participant"),
    (ROLE_VOLUNTEER, "Volunteer"),
]

# --- Permission names ---
PERM_USER_MANAGEMENT = "user_management"
PERM_PROJECT_MANAGEMENT = "project_management"
PERM_ASSIGNMENT_MANAGEMENT = "assignment_management"
PERM_TRAINING_MANAGEMENT = "training_management"
PERM_SURVEY_MANAGEMENT = "survey_management"
PERM_REPORT_ACCESS = "report_access"
PERM_SYSTEM_SETTINGS = "system_settings"
PERM_FILE_MANAGEMENT = "file_management"
PERM_MENTEE_MANAGEMENT = "mentee_management"
PERM_ASSIGNMENT_REVIEW = "assignment_review"
PERM_TRAINING_ACCESS = "training_access"
PERM_COMMUNICATION = "communication"
PERM_PROGRESS_TRACKING = "progress_tracking"
PERM_FILE_UPLOAD = "file_upload"
PERM_ASSIGNMENT_SUBMISSION = "assignment_submission"
PERM_GOAL_SETTING = "goal_setting"
PERM_SURVEY_PARTICIPATION = "survey_participation"

ROLE_PERMISSIONS = MappingProxyType({
    ROLE_ADMIN: frozenset({
        PERM_USER_MANAGEMENT,
        PERM_PROJECT_MANAGEMENT,
        PERM_ASSIGNMENT_MANAGEMENT,
        PERM_TRAINING_MANAGEMENT,
        PERM_SURVEY_MANAGEMENT,
        PERM_REPORT_ACCESS,
        PERM_SYSTEM_SETTINGS,
        PERM_FILE_MANAGEMENT,
    }),
    ROLE_MENTOR: frozenset({
        PERM_MENTEE_MANAGEMENT,
        PERM_ASSIGNMENT_REVIEW,
        PERM_TRAINING_ACCESS,
        PERM_COMMUNICATION,
        PERM_PROGRESS_TRACKING,
        PERM_FILE_UPLOAD,
    }),
    ROLE_PARTICIPANT: frozenset({
        PERM_ASSIGNMENT_SUBMISSION,
        PERM_TRAINING_ACCESS,
        PERM_COMMUNICATION,
        PERM_GOAL_SETTING,
        PERM_SURVEY_PARTICIPATION,
        PERM_FILE_UPLOAD,
    }),
    ROLE_VOLUNTEER: frozenset({
        PERM_TRAINING_ACCESS,
        PERM_COMMUNICATION,
        PERM_SURVEY_PARTICIPATION,
    }),
})

# Roles that take part in program activities (surveys, sessions, assignments)
PROGRAM_MEMBER_ROLES = (ROLE_PARTICIPANT, ROLE_MENTOR, ROLE_VOLUNTEER)


def permissions_for_role(role: str) -> FrozenSet[str]:
    return ROLE_PERMISSIONS.get(role, frozenset())


def role_has_permission(role: str, permission: str) -> bool:
    return permission in permissions_for_role(role)


def has_permission(user, permission: str) -> bool:
    """
    True if ``user`` is an active, authenticated account whose role grants
    ``permission``.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return False
    if not getattr(user, "is_active", False):
        return False
    return role_has_permission(getattr(user, "role", ""), permission)


def has_any_permission(user, permissions: Iterable[str]) -> bool:
    return any(has_permission(user, p) for p in permissions)
