from django.conf import settings
from django.db import models


class TrainingSession(models.Model):
    STATUS_SCHEDULED = "scheduled"
    STATUS_ONGOING = "ongoing"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_SCHEDULED, "Scheduled"),
        (STATUS_ONGOING, "Ongoing"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    session_date = models.DateTimeField(db_index=True)
    duration_minutes = models.PositiveIntegerField(default=60)
    location = models.CharField(max_length=255, blank=True, default="")

    instructor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="instructed_sessions",
    )
    max_participants = models.PositiveIntegerField(null=True, blank=True)

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_SCHEDULED,
        db_index=True,
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="created_sessions",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "training_sessions"
        ordering = ["session_date"]

    def __str__(self):
        return f"{self.title} ({self.session_date:%Y-%m-%d})"


class SessionAttendance(models.Model):
    """
    One row per (session, user). ``attendance_date`` is stamped the first
    time the user is marked attended and is never cleared afterwards.
    """
    STATUS_REGISTERED = "registered"
    STATUS_ATTENDED = "attended"
    STATUS_MISSED = "missed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_REGISTERED, "Registered"),
        (STATUS_ATTENDED, "Attended"),
        (STATUS_MISSED, "Missed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    # Statuses that occupy a seat
    SEAT_STATUSES = (STATUS_REGISTERED, STATUS_ATTENDED)

    session = models.ForeignKey(
        TrainingSession,
        on_delete=models.CASCADE,
        related_name="attendance",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="session_attendance",
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_REGISTERED)
    notes = models.TextField(blank=True, default="")
    registration_date = models.DateTimeField(auto_now_add=True)
    attendance_date = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "session_attendance"
        unique_together = ("session", "user")
        indexes = [
            models.Index(fields=["session", "status"], name="attendance_session_status_idx"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.session_id}: {self.status}"
