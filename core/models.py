from django.conf import settings
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models


class ActivityLog(models.Model):
    """
    Immutable ledger of business-significant actions in the program.
    Written by ActivityService; never edited after creation.
    """
    # Who did it? (null for system actions)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="activities",
    )

    # What happened? (e.g., 'project.created')
    verb = models.CharField(max_length=64, db_index=True)
    message = models.CharField(max_length=255, blank=True)

    # To what? (Generic Foreign Key, optional)
    content_type = models.ForeignKey(
        ContentType,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    object_id = models.PositiveIntegerField(null=True, blank=True)
    target = GenericForeignKey("content_type", "object_id")

    # Snapshot data, e.g. the title at time of logging
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "activity_log"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["actor", "-created_at"], name="activity_actor_idx"),
        ]

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValueError("Activity log entries are immutable.")
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.actor_id} {self.verb} {self.message}"
