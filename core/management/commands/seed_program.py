from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from projects.models import Project
from projects.services import create_project
from training.models import SessionAttendance, TrainingSession
from users.roles import ROLE_ADMIN, ROLE_MENTOR, ROLE_PARTICIPANT, ROLE_VOLUNTEER

User = get_user_model()

SEED_USERS = [
    # username, role, first name, last name
    ("admin", ROLE_ADMIN, "Program", "Admin"),
    ("mentor", ROLE_MENTOR, "Maya", "Mentor"),
    ("participant", ROLE_PARTICIPANT, "Pria", "Participant"),
    ("volunteer", ROLE_VOLUNTEER, "Vera", "Volunteer"),
]


class Command(BaseCommand):
    help = "Seeds one account per role plus a sample project and training session (local development only)"

    def add_arguments(self, parser):
        parser.add_argument("--password", default="Program@123", help="Password for every seeded account")
        parser.add_argument("--no-samples", action="store_true", help="Only create the accounts")

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("🌱 Seeding program data...")

        users = {}
        for username, role, first_name, last_name in SEED_USERS:
            user, created = User.objects.get_or_create(
                username=username,
                defaults={
                    "email": f"{username}@example.com",
                    "role": role,
                    "first_name": first_name,
                    "last_name": last_name,
                    "is_staff": role == ROLE_ADMIN,
                    "is_superuser": role == ROLE_ADMIN,
                },
            )
            if created:
                user.set_password(options["password"])
                user.save()
            users[role] = user
            self.stdout.write(f"{'Created' if created else 'Kept'} {role}: {username}")

        if options["no_samples"]:
            self.stdout.write(self.style.SUCCESS("✅ Accounts ready."))
            return

        if not Project.objects.filter(title="Mentorship Drive").exists():
            project = create_project(
                users[ROLE_ADMIN],
                {
                    "title": "Mentorship Drive",
                    "description": "Pair every new participant with a mentor for the spring cohort.",
                    "status": Project.STATUS_ACTIVE,
                    "priority": Project.PRIORITY_HIGH,
                    "start_date": timezone.now().date(),
                    "end_date": timezone.now().date() + timedelta(days=90),
                },
            )
            self.stdout.write(f"Created project: {project.title}")

        session, created = TrainingSession.objects.get_or_create(
            title="Public Speaking Basics",
            defaults={
                "description": "Voice, posture and structure for a five-minute talk.",
                "session_date": timezone.now() + timedelta(days=7),
                "duration_minutes": 90,
                "location": "Community Hall",
                "instructor": users[ROLE_MENTOR],
                "max_participants": 20,
                "created_by": users[ROLE_ADMIN],
            },
        )
        if created:
            SessionAttendance.objects.get_or_create(session=session, user=users[ROLE_PARTICIPANT])
            self.stdout.write(f"Created session: {session.title}")

        self.stdout.write(self.style.SUCCESS("✅ Seeding complete."))
