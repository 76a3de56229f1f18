from datetime import timedelta

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from assignments.models import Assignment
from notifications.models import Notification
from projects.models import Project
from projects.services import create_project
from training.models import SessionAttendance, TrainingSession
from users.models import User


class DashboardSummaryTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(username="admin", password="pass", role="admin")
        self.mentor = User.objects.create_user(username="mentor", password="pass", role="mentor")
        self.pat = User.objects.create_user(
            username="pat", password="pass", role="participant", first_name="Pat", last_name="Lee"
        )
        User.objects.create_user(username="gone", password="pass", is_active=False)

        project = create_project(self.admin, {"title": "Robotics", "description": "Build a small robot."})
        project.status = Project.STATUS_ACTIVE
        project.save()

        Assignment.objects.create(title="Open", description="Still to do.", assigned_to=self.pat, assigned_by=self.mentor)
        Assignment.objects.create(
            title="Handed in",
            description="Waiting for review.",
            assigned_to=self.pat,
            assigned_by=self.mentor,
            status=Assignment.STATUS_SUBMITTED,
        )
        Assignment.objects.create(
            title="Done",
            description="All finished.",
            assigned_to=self.pat,
            assigned_by=self.mentor,
            status=Assignment.STATUS_COMPLETED,
        )

        upcoming = TrainingSession.objects.create(
            title="Upcoming", session_date=timezone.now() + timedelta(days=2), instructor=self.mentor
        )
        SessionAttendance.objects.create(session=upcoming, user=self.pat)
        Notification.objects.create(user=self.pat, title="Hi", message="Unread note")

        self.url = reverse("ux-dashboard-summary")

    def test_admin_stats(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.get(self.url)
        self.assertEqual(resp.status_code, 200)
        stats = resp.json()["data"]["stats"]
        self.assertEqual(stats["total_users"], 3)
        self.assertEqual(stats["active_projects"], 1)
        self.assertEqual(stats["pending_assignments"], 1)
        self.assertEqual(stats["total_sessions"], 1)

    def test_mentor_stats(self):
        self.client.force_authenticate(self.mentor)
        stats = self.client.get(self.url).json()["data"]["stats"]
        self.assertEqual(stats["assignments_to_review"], 1)
        self.assertEqual(stats["my_projects"], 0)
        self.assertEqual(stats["upcoming_sessions"], 1)

    def test_participant_stats_and_notifications(self):
        self.client.force_authenticate(self.pat)
        data = self.client.get(self.url).json()["data"]
        self.assertEqual(data["user"]["name"], "Pat Lee")
        self.assertEqual(data["role"], "participant")
        self.assertEqual(data["stats"]["my_assignments"], 2)
        self.assertEqual(data["stats"]["completed_assignments"], 1)
        self.assertEqual(data["stats"]["upcoming_sessions"], 1)
        self.assertEqual(data["unread_notifications"], 1)
        self.assertEqual(data["recent_notifications"][0]["title"], "Hi")

    def test_requires_login(self):
        self.assertEqual(APIClient().get(self.url).status_code, 401)
