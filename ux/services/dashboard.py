# ux/services/dashboard.py

from django.db.models import Q
from django.utils import timezone

from assignments.models import Assignment
from core.models import ActivityLog
from notifications.models import Notification
from projects.models import Project, ProjectParticipant
from training.models import SessionAttendance, TrainingSession
from users.models import User
from users.roles import ROLE_ADMIN, ROLE_MENTOR


def _admin_stats(user, now):
    return {
        "total_users": User.objects.filter(is_active=True).count(),
        "active_projects": Project.objects.filter(status=Project.STATUS_ACTIVE).count(),
        "pending_assignments": Assignment.objects.filter(
            status__in=[Assignment.STATUS_ASSIGNED, Assignment.STATUS_IN_PROGRESS]
        ).count(),
        "total_sessions": TrainingSession.objects.filter(status=TrainingSession.STATUS_SCHEDULED).count(),
    }


def _mentor_stats(user, now):
    return {
        "assignments_to_review": Assignment.objects.filter(
            assigned_by=user, status=Assignment.STATUS_SUBMITTED
        ).count(),
        "my_projects": ProjectParticipant.objects.filter(user=user).count(),
        "upcoming_sessions": TrainingSession.objects.filter(
            Q(instructor=user) | Q(attendance__user=user),
            session_date__gt=now,
        ).distinct().count(),
    }


def _member_stats(user, now):
    mine = Assignment.objects.filter(assigned_to=user)
    return {
        "my_assignments": mine.exclude(status=Assignment.STATUS_COMPLETED).count(),
        "completed_assignments": mine.filter(status=Assignment.STATUS_COMPLETED).count(),
        "my_projects": ProjectParticipant.objects.filter(user=user).count(),
        "upcoming_sessions": SessionAttendance.objects.filter(
            user=user,
            status=SessionAttendance.STATUS_REGISTERED,
            session__session_date__gt=now,
        ).count(),
    }


def get_dashboard_summary(user):
    now = timezone.now()

    if user.role == ROLE_ADMIN:
        stats = _admin_stats(user, now)
    elif user.role == ROLE_MENTOR:
        stats = _mentor_stats(user, now)
    else:
        stats = _member_stats(user, now)

    notifications = Notification.objects.filter(user=user)
    recent_notifications = [
        {
            "id": n.id,
            "type": n.type,
            "title": n.title,
            "message": n.message,
            "action_url": n.action_url,
            "is_read": n.is_read,
            "created_at": n.created_at,
        }
        for n in notifications.order_by("-created_at")[:5]
    ]

    recent_activity = [
        {"verb": a.verb, "message": a.message, "created_at": a.created_at}
        for a in ActivityLog.objects.filter(actor=user).order_by("-created_at")[:5]
    ]

    return {
        "role": user.role,
        "stats": stats,
        "unread_notifications": notifications.filter(is_read=False).count(),
        "recent_notifications": recent_notifications,
        "recent_activity": recent_activity,
    }
