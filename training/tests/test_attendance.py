from datetime import timedelta

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from notifications.models import Notification
from training.models import SessionAttendance, TrainingSession
from training.services import bulk_register, mark_attendance
from users.models import User


class TrainingSessionAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(username="admin", password="pass", role="admin")
        self.mentor = User.objects.create_user(username="mentor", password="pass", role="mentor")
        self.pat = User.objects.create_user(username="pat", password="pass", role="participant")
        self.session = TrainingSession.objects.create(
            title="Public Speaking Basics",
            session_date=timezone.now() + timedelta(days=3),
            max_participants=1,
            created_by=self.admin,
        )
        self.url = reverse("training-session-detail", args=[self.session.pk])

    def test_create_session_notifies_members(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post(
            reverse("training-session-list"),
            {
                "title": "Negotiation Skills",
                "session_date": (timezone.now() + timedelta(days=10)).strftime("%Y-%m-%dT%H:%M"),
                "duration_minutes": 90,
                "instructor": self.mentor.pk,
            },
            format="json",
        )
        self.assertEqual(resp.status_code, 201, msg=resp.content)
        session = TrainingSession.objects.get(title="Negotiation Skills")
        self.assertEqual(session.status, TrainingSession.STATUS_SCHEDULED)
        self.assertTrue(Notification.objects.filter(user=self.pat, title="New Training Session").exists())
        self.assertFalse(Notification.objects.filter(user=self.admin, title="New Training Session").exists())

    def test_duration_bounds(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post(
            reverse("training-session-list"),
            {"title": "Too short", "session_date": "2026-05-01T10:00", "duration_minutes": 5},
            format="json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("Duration must be between 15 and 480 minutes.", resp.json()["errors"])

    def test_participant_cannot_create(self):
        self.client.force_authenticate(self.pat)
        resp = self.client.post(
            reverse("training-session-list"),
            {"title": "Mine", "session_date": "2026-05-01T10:00"},
            format="json",
        )
        self.assertEqual(resp.status_code, 403)

    def test_register_and_full_session(self):
        self.client.force_authenticate(self.pat)
        resp = self.client.post(self.url, {"action": "register_attendance"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["message"], "Successfully registered for the training session!")
        self.assertTrue(
            Notification.objects.filter(user=self.pat, title="Training Registration Confirmed").exists()
        )

        resp = self.client.post(self.url, {"action": "register_attendance"}, format="json")
        self.assertEqual(resp.json()["message"], "You are already registered for this session.")

        self.client.force_authenticate(self.mentor)
        resp = self.client.post(self.url, {"action": "register_attendance"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "This session is full.")
        self.assertEqual(self.session.attendance.count(), 1)

    def test_registration_closed_after_start(self):
        self.session.status = TrainingSession.STATUS_ONGOING
        self.session.save()
        self.client.force_authenticate(self.pat)
        resp = self.client.post(self.url, {"action": "register_attendance"}, format="json")
        self.assertEqual(resp.json()["message"], "Registration is only open for scheduled sessions.")

    def test_unregister(self):
        SessionAttendance.objects.create(session=self.session, user=self.pat)
        self.client.force_authenticate(self.pat)
        resp = self.client.post(self.url, {"action": "unregister_attendance"}, format="json")
        self.assertEqual(resp.json()["message"], "Successfully unregistered from the training session.")
        self.assertFalse(SessionAttendance.objects.exists())

    def test_session_lifecycle(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post(self.url, {"action": "start_session"}, format="json")
        self.assertEqual(resp.json()["message"], "Training session started successfully.")
        resp = self.client.post(self.url, {"action": "complete_session"}, format="json")
        self.assertEqual(resp.json()["message"], "Training session marked as completed.")
        resp = self.client.post(self.url, {"action": "cancel_session"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.session.refresh_from_db()
        self.assertEqual(self.session.status, TrainingSession.STATUS_COMPLETED)

    def test_participant_cannot_start(self):
        self.client.force_authenticate(self.pat)
        resp = self.client.post(self.url, {"action": "start_session"}, format="json")
        self.assertEqual(resp.status_code, 403)

    def test_participant_list_shows_own_sessions_with_full_counts(self):
        other = TrainingSession.objects.create(title="Other", session_date=timezone.now() + timedelta(days=5))
        SessionAttendance.objects.create(session=other, user=self.pat)
        SessionAttendance.objects.create(session=other, user=self.mentor)

        self.client.force_authenticate(self.pat)
        results = self.client.get(reverse("training-session-list")).json()["results"]
        self.assertEqual([row["title"] for row in results], ["Other"])
        self.assertEqual(results[0]["registered_count"], 2)


class AttendanceTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(username="admin", password="pass", role="admin")
        self.amy = User.objects.create_user(username="amy", password="pass", role="participant")
        self.bea = User.objects.create_user(username="bea", password="pass", role="volunteer")
        self.session = TrainingSession.objects.create(title="Leadership 101", session_date=timezone.now())
        self.url = reverse("training-attendance", args=[self.session.pk])

    def test_bulk_register_is_idempotent(self):
        first = bulk_register(self.session, [self.amy.pk, self.bea.pk], self.admin)
        self.assertEqual(first.data["registered"], 2)
        second = bulk_register(self.session, [self.amy.pk, self.bea.pk], self.admin)
        self.assertEqual(second.data["registered"], 0)
        self.assertEqual(self.session.attendance.count(), 2)

    def test_bulk_register_skips_admins_and_inactive(self):
        self.bea.is_active = False
        self.bea.save()
        result = bulk_register(self.session, [self.admin.pk, self.bea.pk, self.amy.pk], self.admin)
        self.assertEqual(result.message, "Successfully registered 1 participants.")
        self.assertEqual(list(self.session.attendance.values_list("user_id", flat=True)), [self.amy.pk])

    def test_bulk_register_needs_selection(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post(self.url, {"action": "bulk_register", "selected_users": []}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "Please select at least one participant.")

    def test_attended_stamps_date_once(self):
        mark_attendance(self.session, {str(self.amy.pk): "attended"}, {}, self.admin)
        row = SessionAttendance.objects.get(session=self.session, user=self.amy)
        stamped = row.attendance_date
        self.assertIsNotNone(stamped)

        mark_attendance(self.session, {str(self.amy.pk): "missed"}, {}, self.admin)
        mark_attendance(self.session, {str(self.amy.pk): "attended"}, {}, self.admin)
        row.refresh_from_db()
        self.assertEqual(row.status, "attended")
        self.assertEqual(row.attendance_date, stamped)

    def test_mark_attendance_skips_inactive_accounts(self):
        self.bea.is_active = False
        self.bea.save()
        result = mark_attendance(
            self.session, {str(self.amy.pk): "attended", str(self.bea.pk): "attended"}, {}, self.admin
        )
        self.assertEqual(result.data["updated"], 1)
        self.assertEqual(list(self.session.attendance.values_list("user_id", flat=True)), [self.amy.pk])

    def test_mark_attendance_form_post(self):
        SessionAttendance.objects.create(session=self.session, user=self.amy)
        self.client.force_authenticate(self.admin)
        resp = self.client.post(
            self.url,
            {
                "action": "mark_attendance",
                f"attendance[{self.amy.pk}]": "attended",
                f"notes[{self.amy.pk}]": " On time ",
                f"attendance[{self.bea.pk}]": "teleported",
            },
        )
        self.assertEqual(resp.status_code, 200, msg=resp.content)
        self.assertEqual(resp.json()["updated"], 1)
        self.assertEqual(resp.json()["stats"]["attendance_rate"], 100.0)
        row = SessionAttendance.objects.get(session=self.session, user=self.amy)
        self.assertEqual(row.notes, "On time")
        self.assertFalse(SessionAttendance.objects.filter(user=self.bea).exists())

    def test_add_participant(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post(self.url, {"action": "add_participant", "user_id": self.amy.pk}, format="json")
        self.assertEqual(resp.json()["message"], "Participant added successfully.")
        resp = self.client.post(self.url, {"action": "add_participant", "user_id": self.amy.pk}, format="json")
        self.assertEqual(resp.json()["message"], "Participant is already registered for this session.")
        resp = self.client.post(self.url, {"action": "add_participant", "user_id": 9999}, format="json")
        self.assertEqual(resp.json()["message"], "Selected user not found or inactive.")

    def test_attendance_page_lists_available_users(self):
        SessionAttendance.objects.create(session=self.session, user=self.amy)
        self.client.force_authenticate(self.admin)
        resp = self.client.get(self.url)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([u["username"] for u in resp.json()["available_users"]], ["bea"])
        self.assertEqual(resp.json()["stats"]["total_registered"], 1)

    def test_mentor_cannot_manage_attendance(self):
        mentor = User.objects.create_user(username="mentor", password="pass", role="mentor")
        self.client.force_authenticate(mentor)
        self.assertEqual(self.client.get(self.url).status_code, 403)
