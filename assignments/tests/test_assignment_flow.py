from datetime import timedelta

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from assignments.models import Assignment, AssignmentSubmission
from notifications.models import Notification
from users.models import User


class AssignmentCreateTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(username="admin", password="pass", role="admin")
        self.pat = User.objects.create_user(username="pat", password="pass", role="participant")

    def test_create_assignment_notifies_assignee(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post(
            reverse("assignment-list"),
            {
                "title": "Leadership essay",
                "description": "Write about a leader you admire.",
                "assigned_to": self.pat.pk,
                "due_date": (timezone.now() + timedelta(days=7)).strftime("%Y-%m-%dT%H:%M"),
                "points": 50,
            },
            format="json",
        )
        self.assertEqual(resp.status_code, 201, msg=resp.content)
        assignment = Assignment.objects.get(title="Leadership essay")
        self.assertEqual(assignment.status, Assignment.STATUS_ASSIGNED)
        self.assertEqual(assignment.assigned_by, self.admin)
        self.assertTrue(Notification.objects.filter(user=self.pat, title="New Assignment").exists())

    def test_cannot_assign_to_admin_or_past_due(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post(
            reverse("assignment-list"),
            {
                "title": "Bad assignment",
                "description": "Everything about this is wrong.",
                "assigned_to": self.admin.pk,
                "due_date": "2001-01-01T09:00",
            },
            format="json",
        )
        self.assertEqual(resp.status_code, 400)
        errors = resp.json()["errors"]
        self.assertIn("Assignments can only be assigned to participants, mentors, or volunteers.", errors)
        self.assertIn("Due date must be in the future.", errors)
        self.assertFalse(Assignment.objects.exists())

    def test_participant_sees_only_own(self):
        other = User.objects.create_user(username="other", password="pass", role="participant")
        Assignment.objects.create(title="Mine", description="Mine to do.", assigned_to=self.pat, assigned_by=self.admin)
        Assignment.objects.create(title="Theirs", description="Not mine.", assigned_to=other, assigned_by=self.admin)

        self.client.force_authenticate(self.pat)
        resp = self.client.get(reverse("assignment-list"))
        self.assertEqual([row["title"] for row in resp.json()["results"]], ["Mine"])
        self.assertEqual(resp.json()["stats"]["total"], 1)


class AssignmentSubmitReviewTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.mentor = User.objects.create_user(username="mentor", password="pass", role="mentor")
        self.admin = User.objects.create_user(username="admin", password="pass", role="admin")
        self.pat = User.objects.create_user(username="pat", password="pass", role="participant", first_name="Pat")
        self.assignment = Assignment.objects.create(
            title="Reflection",
            description="Reflect on the first month.",
            assigned_to=self.pat,
            assigned_by=self.admin,
            points=20,
        )

    def submit(self, user, text="Here is my reflection on the month."):
        self.client.force_authenticate(user)
        return self.client.post(
            reverse("assignment-submit", args=[self.assignment.pk]), {"submission_text": text}, format="json"
        )

    def test_submit_moves_to_submitted(self):
        resp = self.submit(self.pat)
        self.assertEqual(resp.status_code, 200, msg=resp.content)
        self.assertEqual(resp.json()["message"], "Assignment submitted successfully!")
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.status, Assignment.STATUS_SUBMITTED)
        self.assertTrue(Notification.objects.filter(user=self.admin, title="Assignment Submitted").exists())

    def test_short_submission(self):
        resp = self.submit(self.pat, "too short")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["errors"], ["Text submission must be at least 10 characters long."])

    def test_only_assignee_submits(self):
        resp = self.submit(self.mentor)
        self.assertEqual(resp.status_code, 403)
        self.assertFalse(AssignmentSubmission.objects.exists())

    def test_no_resubmission_once_submitted(self):
        self.submit(self.pat)
        resp = self.submit(self.pat, "A second attempt at this.")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "This assignment is no longer accepting submissions.")

    def test_review_requires_submission(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post(
            reverse("assignment-review", args=[self.assignment.pk]),
            {"grade": 10, "feedback": "Looks good overall."},
            format="json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "There is no submission to review yet.")

    def test_review_grades_submission(self):
        self.submit(self.pat)
        self.client.force_authenticate(self.admin)
        resp = self.client.post(
            reverse("assignment-review", args=[self.assignment.pk]),
            {"grade": 18, "feedback": "Thoughtful and honest work."},
            format="json",
        )
        self.assertEqual(resp.status_code, 200, msg=resp.content)
        self.assertEqual(resp.json()["message"], "Review saved successfully.")

        submission = AssignmentSubmission.objects.get(assignment=self.assignment)
        self.assertEqual(submission.grade, 18)
        self.assertEqual(submission.reviewed_by, self.admin)
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.status, Assignment.STATUS_REVIEWED)

        note = Notification.objects.get(user=self.pat, title="Assignment Reviewed")
        self.assertEqual(note.type, Notification.TYPE_SUCCESS)
        self.assertIn("Grade: 18/20", note.message)

    def test_grade_above_points_rejected(self):
        self.submit(self.pat)
        self.client.force_authenticate(self.admin)
        resp = self.client.post(
            reverse("assignment-review", args=[self.assignment.pk]),
            {"grade": 25, "feedback": "Generous grade here."},
            format="json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("Grade must be between 0 and 20 points.", resp.json()["errors"])

    def test_mentor_cannot_review_others_assignment(self):
        self.submit(self.pat)
        self.client.force_authenticate(self.mentor)
        resp = self.client.post(
            reverse("assignment-review", args=[self.assignment.pk]),
            {"grade": 10, "feedback": "Should not be allowed."},
            format="json",
        )
        self.assertEqual(resp.status_code, 403)

    def test_list_actions_follow_workflow(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post(
            reverse("assignment-actions"),
            {"action": "mark_reviewed", "assignment_id": self.assignment.pk},
            format="json",
        )
        self.assertEqual(resp.status_code, 400)

        resp = self.client.post(
            reverse("assignment-actions"),
            {"action": "mark_completed", "assignment_id": self.assignment.pk},
            format="json",
        )
        self.assertEqual(resp.status_code, 200)
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.status, Assignment.STATUS_COMPLETED)

    def test_detail_visibility(self):
        other = User.objects.create_user(username="other", password="pass", role="participant")
        self.client.force_authenticate(other)
        resp = self.client.get(reverse("assignment-detail", args=[self.assignment.pk]))
        self.assertEqual(resp.status_code, 403)

        self.client.force_authenticate(self.pat)
        resp = self.client.get(reverse("assignment-detail", args=[self.assignment.pk]))
        self.assertTrue(resp.json()["can_submit"])
