from django.db.models.signals import post_save
from django.dispatch import receiver
from core.services import ActivityService
from core.constants import ACTIVITY_PROJECT_CREATED
from .models import Project


@receiver(post_save, sender=Project)
def log_project_created(sender, instance, created, **kwargs):
    if created:
        ActivityService.log_activity(
            actor=instance.created_by,
            verb=ACTIVITY_PROJECT_CREATED,
            target=instance,
            message=f"Created project: {instance.title}",
            metadata={'title': instance.title, 'status': instance.status},
        )
