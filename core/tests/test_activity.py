from django.test import TestCase
from rest_framework.test import APIClient

from core.models import ActivityLog
from core.services import ActivityService
from projects.models import Project
from projects.state_machine import workflow
from users.models import User


class ActivityLogTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="logger", password="pass", role="admin")
        self.project = Project.objects.create(title="Ledger", description="Ledger project", created_by=self.user)

    def test_log_activity_records_target(self):
        entry = ActivityService.log_activity(
            self.user, "project.updated", self.project, message="Updated", metadata={"k": 1}
        )
        self.assertIsNotNone(entry)
        self.assertEqual(entry.target, self.project)
        self.assertEqual(entry.metadata, {"k": 1})

    def test_entries_are_immutable(self):
        entry = ActivityService.log_activity(self.user, "project.updated", self.project)
        entry.message = "changed"
        with self.assertRaises(ValueError):
            entry.save()

    def test_anonymous_actor_is_stored_as_null(self):
        entry = ActivityService.log_activity(None, "system.tick")
        self.assertIsNone(entry.actor)


class StatusWorkflowTest(TestCase):
    def setUp(self):
        self.project = Project.objects.create(title="Flow", description="Workflow project")

    def test_allowed_transition_saves(self):
        ok, _ = workflow.transition(self.project, Project.STATUS_ACTIVE)
        self.assertTrue(ok)
        self.project.refresh_from_db()
        self.assertEqual(self.project.status, Project.STATUS_ACTIVE)

    def test_completed_project_can_be_reopened(self):
        self.project.status = Project.STATUS_COMPLETED
        self.project.save()
        ok, _ = workflow.transition(self.project, Project.STATUS_PLANNING)
        self.assertTrue(ok)
        self.project.refresh_from_db()
        self.assertEqual(self.project.status, Project.STATUS_PLANNING)
        self.assertFalse(workflow.is_terminal(Project.STATUS_COMPLETED))

    def test_unknown_status(self):
        ok, reason = workflow.transition(self.project, "archived")
        self.assertFalse(ok)
        self.assertEqual(reason, "Invalid project status.")


class HealthCheckTest(TestCase):
    def test_health_is_public(self):
        resp = APIClient().get("/api/health/")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["db"])
