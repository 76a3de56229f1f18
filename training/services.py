# training/services.py
import logging
from collections import defaultdict
from datetime import timedelta
from typing import Dict, Iterable

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q

from core.constants import (
    ACTIVITY_ATTENDANCE_MARKED,
    ACTIVITY_SESSION_CREATED,
    ACTIVITY_SESSION_REGISTERED,
    ACTIVITY_SESSION_STATUS_CHANGED,
    ACTIVITY_SESSION_UNREGISTERED,
    ACTIVITY_SESSION_UPDATED,
    MSG_INVALID_ACTION,
)
from core.forms import is_truthy, to_int
from core.services import ActionResult, ActivityService
from notifications import services as notifier
from users.roles import (
    PERM_TRAINING_MANAGEMENT,
    PERM_USER_MANAGEMENT,
    PROGRAM_MEMBER_ROLES,
    has_any_permission,
)
from . import datetime_utils
from .models import SessionAttendance, TrainingSession
from .state_machine import ATTENDANCE_STATUSES, workflow

logger = logging.getLogger("cos.training")

User = get_user_model()

PER_PAGE = 12


def can_manage_sessions(user) -> bool:
    return has_any_permission(user, [PERM_TRAINING_MANAGEMENT, PERM_USER_MANAGEMENT])


def with_counts(qs):
    return qs.annotate(
        _registered_count=Count(
            "attendance",
            filter=Q(attendance__status__in=SessionAttendance.SEAT_STATUSES),
            distinct=True,
        ),
        _attended_count=Count(
            "attendance",
            filter=Q(attendance__status=SessionAttendance.STATUS_ATTENDED),
            distinct=True,
        ),
    )


# -----------------------------------------
# Session list
# -----------------------------------------
def filter_sessions(user, params):
    qs = TrainingSession.objects.select_related("instructor")

    search = (params.get("search") or "").strip()
    if search:
        qs = qs.filter(
            Q(title__icontains=search)
            | Q(description__icontains=search)
            | Q(location__icontains=search)
        )

    status_param = params.get("status")
    if status_param in dict(TrainingSession.STATUS_CHOICES):
        qs = qs.filter(status=status_param)

    date_filter = params.get("date_filter")
    current = datetime_utils.now()
    if date_filter == "upcoming":
        qs = qs.filter(session_date__gte=current)
    elif date_filter == "past":
        qs = qs.filter(session_date__lt=current)
    else:
        bounds = datetime_utils.date_filter_range(date_filter or "", current)
        if bounds:
            qs = qs.filter(session_date__gte=bounds[0], session_date__lt=bounds[1])

    instructor_id = to_int(params.get("instructor_id"))
    if instructor_id:
        qs = qs.filter(instructor_id=instructor_id)

    if is_truthy(params.get("my_sessions")) or not can_manage_sessions(user):
        qs = qs.filter(pk__in=SessionAttendance.objects.filter(user=user).values("session_id"))

    return with_counts(qs).order_by("session_date", "id")


def session_stats(user) -> dict:
    stats = TrainingSession.objects.aggregate(
        total=Count("id"),
        scheduled=Count("id", filter=Q(status=TrainingSession.STATUS_SCHEDULED)),
        ongoing=Count("id", filter=Q(status=TrainingSession.STATUS_ONGOING)),
        completed=Count("id", filter=Q(status=TrainingSession.STATUS_COMPLETED)),
    )
    stats["my_registrations"] = SessionAttendance.objects.filter(user=user).count()
    return stats


def instructors():
    return User.objects.filter(instructed_sessions__isnull=False).distinct().order_by("first_name", "last_name")


# -----------------------------------------
# Session lifecycle
# -----------------------------------------
def create_session(user, data: dict) -> TrainingSession:
    session = TrainingSession.objects.create(created_by=user, **data)
    ActivityService.log_activity(
        user, ACTIVITY_SESSION_CREATED, session, message=f"Training session created: {session.title}"
    )
    notifier.notify_training_session_created(session, user)
    return session


def update_session(session, user, data: dict) -> TrainingSession:
    for attr, value in data.items():
        setattr(session, attr, value)
    session.save()
    ActivityService.log_activity(
        user, ACTIVITY_SESSION_UPDATED, session, message=f"Training session updated: {session.title}"
    )
    return session


_STATUS_MESSAGES = {
    TrainingSession.STATUS_ONGOING: "Training session started successfully.",
    TrainingSession.STATUS_COMPLETED: "Training session marked as completed.",
    TrainingSession.STATUS_CANCELLED: "Training session cancelled.",
}


def apply_session_action(session, action: str, user) -> ActionResult:
    """start_session / complete_session / cancel_session."""
    target = workflow.target_for_action(action)
    if target is None:
        return ActionResult.error(MSG_INVALID_ACTION)

    ok, reason = workflow.transition(session, target, actor=user)
    if not ok:
        return ActionResult.error(reason)

    ActivityService.log_activity(
        user,
        ACTIVITY_SESSION_STATUS_CHANGED,
        session,
        message=f"Session '{session.title}' set to {target}",
        metadata={"status": target},
    )
    return ActionResult.success(_STATUS_MESSAGES[target])


# -----------------------------------------
# Self registration
# -----------------------------------------
def register(session, user) -> ActionResult:
    if session.status != TrainingSession.STATUS_SCHEDULED:
        return ActionResult.error("Registration is only open for scheduled sessions.")
    if SessionAttendance.objects.filter(session=session, user=user).exists():
        return ActionResult.warning("You are already registered for this session.")
    if session.max_participants:
        taken = session.attendance.filter(status__in=SessionAttendance.SEAT_STATUSES).count()
        if taken >= session.max_participants:
            return ActionResult.error("This session is full.")

    SessionAttendance.objects.create(session=session, user=user, status=SessionAttendance.STATUS_REGISTERED)
    ActivityService.log_activity(
        user, ACTIVITY_SESSION_REGISTERED, session, message=f"Registered for session: {session.title}"
    )
    notifier.notify_training_registration(session, user)
    return ActionResult.success("Successfully registered for the training session!")


def unregister(session, user) -> ActionResult:
    deleted, _ = SessionAttendance.objects.filter(session=session, user=user).delete()
    if not deleted:
        return ActionResult.warning("You are not registered for this session.")
    ActivityService.log_activity(
        user, ACTIVITY_SESSION_UNREGISTERED, session, message=f"Unregistered from session: {session.title}"
    )
    return ActionResult.success("Successfully unregistered from the training session.")


# -----------------------------------------
# Attendance management
# -----------------------------------------
def mark_attendance(session, statuses: Dict[str, str], notes: Dict[str, str], actor) -> ActionResult:
    """
    Bulk upsert of (user → status, notes). Unknown statuses are skipped.
    ``attended`` stamps attendance_date once; it is never cleared.

    The posted map is applied as-is for active accounts: the form decides
    which rows to send.
    """
    wanted = {}
    for raw_id, status in statuses.items():
        user_id = to_int(raw_id)
        if user_id and status in ATTENDANCE_STATUSES:
            wanted[user_id] = status

    known = set(User.objects.filter(pk__in=wanted.keys(), is_active=True).values_list("pk", flat=True))
    current = datetime_utils.now()
    updated = 0

    with transaction.atomic():
        existing = {
            row.user_id: row
            for row in SessionAttendance.objects.select_for_update().filter(session=session, user_id__in=known)
        }
        for user_id in known:
            status = wanted[user_id]
            row = existing.get(user_id) or SessionAttendance(session=session, user_id=user_id)
            row.status = status
            note = notes.get(str(user_id))
            if note is not None:
                row.notes = str(note).strip()
            if status == SessionAttendance.STATUS_ATTENDED and row.attendance_date is None:
                row.attendance_date = current
            row.save()
            updated += 1

    ActivityService.log_activity(
        actor,
        ACTIVITY_ATTENDANCE_MARKED,
        session,
        message=f"Attendance updated for session: {session.title}",
        metadata={"rows": updated},
    )
    logger.info(f"Attendance marked: session={session.id}, rows={updated}, actor={actor.id}")
    return ActionResult.success("Attendance updated successfully.", updated=updated)


def eligible_users():
    return User.objects.filter(is_active=True, role__in=PROGRAM_MEMBER_ROLES)


def bulk_register(session, user_ids: Iterable[int], actor) -> ActionResult:
    """
    Insert ``registered`` rows for users not yet on the session.
    Re-submitting the same ids is a no-op for those already present.
    """
    ids = set(user_ids)
    already = set(
        SessionAttendance.objects.filter(session=session, user_id__in=ids).values_list("user_id", flat=True)
    )
    valid = set(eligible_users().filter(pk__in=ids - already).values_list("pk", flat=True))

    with transaction.atomic():
        SessionAttendance.objects.bulk_create(
            [
                SessionAttendance(session=session, user_id=user_id, status=SessionAttendance.STATUS_REGISTERED)
                for user_id in sorted(valid)
            ],
            ignore_conflicts=True,
        )

    if valid:
        ActivityService.log_activity(
            actor,
            ACTIVITY_SESSION_REGISTERED,
            session,
            message=f"Bulk registered {len(valid)} participants for: {session.title}",
            metadata={"user_ids": sorted(valid)},
        )
    return ActionResult.success(f"Successfully registered {len(valid)} participants.", registered=len(valid))


def add_participant(session, user_id, actor) -> ActionResult:
    user = eligible_users().filter(pk=to_int(user_id, 0)).first()
    if user is None:
        return ActionResult.error("Selected user not found or inactive.")
    if SessionAttendance.objects.filter(session=session, user=user).exists():
        return ActionResult.warning("Participant is already registered for this session.")

    SessionAttendance.objects.create(session=session, user=user, status=SessionAttendance.STATUS_REGISTERED)
    ActivityService.log_activity(
        actor,
        ACTIVITY_SESSION_REGISTERED,
        session,
        message=f"Added {user.username} to session: {session.title}",
        metadata={"user_id": user.pk},
    )
    return ActionResult.success("Participant added successfully.")


def attendance_stats(session) -> dict:
    counts = session.attendance.aggregate(
        total_registered=Count("id"),
        attended=Count("id", filter=Q(status=SessionAttendance.STATUS_ATTENDED)),
        missed=Count("id", filter=Q(status=SessionAttendance.STATUS_MISSED)),
        cancelled=Count("id", filter=Q(status=SessionAttendance.STATUS_CANCELLED)),
    )
    total = counts["total_registered"]
    counts["attendance_rate"] = round(counts["attended"] / total * 100, 1) if total else 0.0
    return counts


def available_users(session):
    registered = session.attendance.values_list("user_id", flat=True)
    return eligible_users().exclude(pk__in=registered).order_by("first_name", "last_name", "username")


# -----------------------------------------
# Calendar
# -----------------------------------------
def calendar_month(user, year, month) -> dict:
    """
    Month grid (Mon–Sun weeks) with the sessions of every displayed day,
    fetched in one query and bucketed by date.
    """
    current = datetime_utils.now()
    year, month = datetime_utils.clamp_year_month(year, month, current.date())
    grid_start, grid_end = datetime_utils.month_grid_bounds(year, month)
    month_first, month_last = datetime_utils.month_bounds(year, month)

    sessions = list(
        with_counts(
            TrainingSession.objects.select_related("instructor").filter(
                session_date__gte=datetime_utils.start_of_day(grid_start),
                session_date__lt=datetime_utils.start_of_day(grid_end + timedelta(days=1)),
            )
        ).order_by("session_date", "id")
    )
    my_ids = set(
        SessionAttendance.objects.filter(user=user, session__in=[s.pk for s in sessions])
        .values_list("session_id", flat=True)
    )

    by_date = defaultdict(list)
    for session in sessions:
        by_date[session.session_date.date()].append(session)

    in_month = [s for s in sessions if month_first <= s.session_date.date() <= month_last]
    today = current.date()

    return {
        "year": year,
        "month": month,
        "grid_start": grid_start,
        "grid_end": grid_end,
        "weeks": datetime_utils.month_grid(year, month, today),
        "sessions_by_date": by_date,
        "my_session_ids": my_ids,
        "navigation": datetime_utils.adjacent_months(year, month),
        "stats": {
            "total_sessions_month": len(in_month),
            "my_sessions_month": sum(1 for s in in_month if s.pk in my_ids),
            "upcoming_sessions": TrainingSession.objects.filter(
                session_date__gte=current, status=TrainingSession.STATUS_SCHEDULED
            ).count(),
            "today_sessions": TrainingSession.objects.filter(
                session_date__gte=datetime_utils.start_of_day(today),
                session_date__lt=datetime_utils.start_of_day(today + timedelta(days=1)),
            ).count(),
        },
    }
