from django.db import models
from django.conf import settings


class Project(models.Model):
    """
    A program initiative that users join as leader / member / observer.
    Status moves only through the workflow in ``projects.state_machine``.
    """
    STATUS_PLANNING = "planning"
    STATUS_ACTIVE = "active"
    STATUS_COMPLETED = "completed"
    STATUS_ON_HOLD = "on_hold"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_PLANNING, "Planning"),
        (STATUS_ACTIVE, "Active"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_ON_HOLD, "On Hold"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    # Statuses in which new members may join
    JOINABLE_STATUSES = (STATUS_PLANNING, STATUS_ACTIVE)

    PRIORITY_LOW = "low"
    PRIORITY_MEDIUM = "medium"
    PRIORITY_HIGH = "high"
    PRIORITY_URGENT = "urgent"

    PRIORITY_CHOICES = [
        (PRIORITY_LOW, "Low"),
        (PRIORITY_MEDIUM, "Medium"),
        (PRIORITY_HIGH, "High"),
        (PRIORITY_URGENT, "Urgent"),
    ]

    title = models.CharField(max_length=200)
    description = models.TextField()

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PLANNING,
        db_index=True,
    )
    priority = models.CharField(
        max_length=20,
        choices=PRIORITY_CHOICES,
        default=PRIORITY_MEDIUM,
    )

    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="created_projects",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "projects"
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(start_date__isnull=True)
                    | models.Q(end_date__isnull=True)
                    | models.Q(end_date__gt=models.F("start_date"))
                ),
                name="project_end_after_start",
            ),
        ]

    @property
    def is_joinable(self):
        return self.status in self.JOINABLE_STATUSES

    def __str__(self):
        return self.title


class ProjectParticipant(models.Model):
    ROLE_LEADER = "leader"
    ROLE_MEMBER = "member"
    ROLE_OBSERVER = "observer"

    ROLE_CHOICES = [
        (ROLE_LEADER, "Leader"),
        (ROLE_MEMBER, "Member"),
        (ROLE_OBSERVER, "Observer"),
    ]

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name="participants",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="project_memberships",
    )
    role_in_project = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default=ROLE_MEMBER,
    )
    joined_date = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "project_participants"
        ordering = ["joined_date"]
        unique_together = ("project", "user")

    def __str__(self):
        return f"{self.user} in {self.project} ({self.role_in_project})"
