# users/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models

from .roles import (
    ROLE_ADMIN,
    ROLE_CHOICES,
    ROLE_MENTOR,
    ROLE_PARTICIPANT,
    ROLE_VOLUNTEER,
    has_permission,
)


class User(AbstractUser):
    """
    Program account. The role decides the permission set; accounts are
    deactivated (``is_active=False``) rather than deleted.
    """
    ROLE_ADMIN = ROLE_ADMIN
    ROLE_MENTOR = ROLE_MENTOR
    ROLE_PARTICIPANT = ROLE_PARTICIPANT
    ROLE_VOLUNTEER = ROLE_VOLUNTEER
    ROLE_CHOICES = ROLE_CHOICES

    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default=ROLE_PARTICIPANT,
        db_index=True,
    )

    phone = models.CharField(max_length=20, blank=True, default="")
    bio = models.TextField(blank=True, default="")

    class Meta:
        db_table = "users"
        ordering = ["-date_joined"]

    @property
    def full_name(self):
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.username

    def has_program_permission(self, permission: str) -> bool:
        return has_permission(self, permission)

    def __str__(self):
        return self.username
