# assignments/services.py
import logging

from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from core.constants import (
    ACTIVITY_ASSIGNMENT_CREATED,
    ACTIVITY_ASSIGNMENT_REVIEWED,
    ACTIVITY_ASSIGNMENT_STATUS_CHANGED,
    ACTIVITY_ASSIGNMENT_SUBMITTED,
    ACTIVITY_ASSIGNMENT_UPDATED,
    MSG_INVALID_ACTION,
)
from core.forms import is_truthy, to_int
from core.services import ActionResult, ActivityService
from notifications import services as notifier
from users.roles import (
    PERM_ASSIGNMENT_MANAGEMENT,
    PERM_USER_MANAGEMENT,
    has_any_permission,
    has_permission,
)
from .models import Assignment, AssignmentSubmission
from .state_machine import workflow

logger = logging.getLogger("cos.assignments")

PER_PAGE = 15


def user_sees_all_assignments(user) -> bool:
    return has_any_permission(user, [PERM_ASSIGNMENT_MANAGEMENT, PERM_USER_MANAGEMENT])


def can_edit_assignment(user, assignment) -> bool:
    return assignment.assigned_by_id == user.pk or has_permission(user, PERM_USER_MANAGEMENT)


def can_view_assignment(user, assignment) -> bool:
    return (
        assignment.assigned_to_id == user.pk
        or assignment.assigned_by_id == user.pk
        or user_sees_all_assignments(user)
    )


# -----------------------------------------
# Read side
# -----------------------------------------
def filter_assignments(user, params):
    qs = Assignment.objects.select_related("assigned_to", "assigned_by", "project")

    search = (params.get("search") or "").strip()
    if search:
        qs = qs.filter(Q(title__icontains=search) | Q(description__icontains=search))

    status_param = params.get("status")
    if status_param in dict(Assignment.STATUS_CHOICES):
        qs = qs.filter(status=status_param)

    priority = params.get("priority")
    if priority in dict(Assignment.PRIORITY_CHOICES):
        qs = qs.filter(priority=priority)

    project_id = to_int(params.get("project_id"))
    if project_id:
        qs = qs.filter(project_id=project_id)

    if is_truthy(params.get("assigned_by_me")):
        qs = qs.filter(assigned_by=user)

    if is_truthy(params.get("my_assignments")) or not user_sees_all_assignments(user):
        qs = qs.filter(assigned_to=user)

    return qs.order_by("due_date", "-created_at", "-id")


def assignment_stats(user) -> dict:
    qs = Assignment.objects.all()
    if not user_sees_all_assignments(user):
        qs = qs.filter(assigned_to=user)
    return qs.aggregate(
        total=Count("id"),
        assigned=Count("id", filter=Q(status=Assignment.STATUS_ASSIGNED)),
        in_progress=Count("id", filter=Q(status=Assignment.STATUS_IN_PROGRESS)),
        submitted=Count("id", filter=Q(status=Assignment.STATUS_SUBMITTED)),
        completed=Count("id", filter=Q(status=Assignment.STATUS_COMPLETED)),
        overdue=Count(
            "id",
            filter=Q(due_date__lt=timezone.now())
            & ~Q(status__in=[Assignment.STATUS_COMPLETED, Assignment.STATUS_REVIEWED]),
        ),
    )


# -----------------------------------------
# Write side
# -----------------------------------------
def create_assignment(user, data: dict) -> Assignment:
    assignment = Assignment.objects.create(assigned_by=user, **data)
    ActivityService.log_activity(
        user,
        ACTIVITY_ASSIGNMENT_CREATED,
        assignment,
        message=f"Assignment created: {assignment.title}",
        metadata={"assigned_to": assignment.assigned_to_id},
    )
    notifier.notify_assignment_created(assignment)
    return assignment


def update_assignment(assignment, user, data: dict) -> Assignment:
    for attr, value in data.items():
        setattr(assignment, attr, value)
    assignment.save()
    ActivityService.log_activity(
        user, ACTIVITY_ASSIGNMENT_UPDATED, assignment, message=f"Assignment updated: {assignment.title}"
    )
    return assignment


def apply_list_action(assignment, action: str, user) -> ActionResult:
    """mark_reviewed / mark_completed / reopen."""
    target = workflow.target_for_action(action)
    if target is None:
        return ActionResult.error(MSG_INVALID_ACTION)

    ok, reason = workflow.transition(assignment, target, actor=user)
    if not ok:
        return ActionResult.error(reason)

    ActivityService.log_activity(
        user,
        ACTIVITY_ASSIGNMENT_STATUS_CHANGED,
        assignment,
        message=f"Assignment '{assignment.title}' set to {target}",
        metadata={"status": target},
    )
    return ActionResult.success("Assignment status updated successfully.")


def submit_assignment(assignment, user, text: str) -> ActionResult:
    """
    The assignee submits (or resubmits) their work while it is still open.
    The assignment moves to ``submitted``.
    """
    if assignment.assigned_to_id != user.pk:
        return ActionResult.error("You can only submit your own assignments.")
    if assignment.status not in Assignment.SUBMITTABLE_STATUSES:
        return ActionResult.error("This assignment is no longer accepting submissions.")

    with transaction.atomic():
        submission, created = AssignmentSubmission.objects.update_or_create(
            assignment=assignment,
            user=user,
            defaults={"submission_text": text},
        )
        ok, reason = workflow.transition(assignment, Assignment.STATUS_SUBMITTED, actor=user)
        if not ok:
            transaction.set_rollback(True)
            return ActionResult.error(reason)

    ActivityService.log_activity(
        user, ACTIVITY_ASSIGNMENT_SUBMITTED, assignment, message=f"Assignment submitted: {assignment.title}"
    )
    notifier.notify_assignment_submitted(assignment, user)
    message = "Assignment submitted successfully!" if created else "Submission updated successfully!"
    return ActionResult.success(message, submission_id=submission.pk)


def review_assignment(assignment, reviewer, grade, feedback: str) -> ActionResult:
    submission = assignment.submissions.order_by("-submitted_at").first()
    if submission is None:
        return ActionResult.error("There is no submission to review yet.")

    with transaction.atomic():
        submission.grade = grade
        submission.feedback = feedback
        submission.reviewed_by = reviewer
        submission.reviewed_at = timezone.now()
        submission.save(update_fields=["grade", "feedback", "reviewed_by", "reviewed_at"])

        ok, reason = workflow.transition(assignment, Assignment.STATUS_REVIEWED, actor=reviewer)
        if not ok:
            transaction.set_rollback(True)
            return ActionResult.error(reason)

    ActivityService.log_activity(
        reviewer,
        ACTIVITY_ASSIGNMENT_REVIEWED,
        assignment,
        message=f"Assignment reviewed: {assignment.title}",
        metadata={"grade": grade},
    )
    notifier.notify_assignment_reviewed(assignment, grade)
    return ActionResult.success("Review saved successfully.")
