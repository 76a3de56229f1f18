from django.conf import settings
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from notifications import services as notifier
from notifications.models import Notification
from users.models import User


class NotificationServiceTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="amy", password="pass", role="participant")

    def test_unknown_type_falls_back_to_info(self):
        self.assertTrue(notifier.create_notification(self.user, "Hello", "World", type="shouting"))
        self.assertEqual(Notification.objects.get(user=self.user).type, Notification.TYPE_INFO)

    def test_missing_fields_create_nothing(self):
        self.assertFalse(notifier.create_notification(self.user, "  ", "World"))
        self.assertFalse(notifier.create_notification(None, "Hello", "World"))
        self.assertFalse(Notification.objects.exists())

    def test_notify_users_skips_duplicates_and_excluded(self):
        other = User.objects.create_user(username="bea", password="pass")
        sent = notifier.notify_users([self.user, other, self.user], "Heads up", "Something happened", exclude=[other])
        self.assertEqual(sent, 1)
        self.assertEqual(Notification.objects.get().user, self.user)


class NotificationCenterTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="amy", password="pass", role="participant")
        self.other = User.objects.create_user(username="bea", password="pass", role="participant")
        self.first = Notification.objects.create(user=self.user, title="One", message="First")
        self.second = Notification.objects.create(
            user=self.user, title="Two", message="Second", type=Notification.TYPE_WARNING
        )
        self.foreign = Notification.objects.create(user=self.other, title="Theirs", message="Not yours")
        self.client.force_authenticate(self.user)
        self.url = reverse("notification-list")

    def test_list_and_counts(self):
        resp = self.client.get(self.url)
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["counts"]["all"], 2)
        self.assertEqual(data["counts"]["unread"], 2)
        self.assertEqual(data["counts"]["warning"], 1)
        self.assertEqual({row["title"] for row in data["results"]}, {"One", "Two"})

    def test_page_size_follows_program_settings(self):
        Notification.objects.bulk_create(
            Notification(user=self.user, title=f"Note {i}", message="Bulk") for i in range(25)
        )
        resp = self.client.get(self.url)
        per_page = settings.PROGRAM_SETTINGS["ITEMS_PER_PAGE"]
        self.assertEqual(len(resp.json()["results"]), per_page)
        self.assertEqual(resp.json()["pagination"]["per_page"], per_page)
        self.assertEqual(resp.json()["pagination"]["total"], 27)

    def test_filter_by_type(self):
        resp = self.client.get(self.url, {"filter": "warning"})
        self.assertEqual([row["title"] for row in resp.json()["results"]], ["Two"])

    def test_mark_read_ignores_other_users(self):
        resp = self.client.post(
            self.url, {"action": "mark_read", "ids": [self.first.pk, self.foreign.pk]}, format="json"
        )
        self.assertEqual(resp.json()["updated"], 1)
        self.first.refresh_from_db()
        self.foreign.refresh_from_db()
        self.assertTrue(self.first.is_read)
        self.assertIsNotNone(self.first.read_at)
        self.assertFalse(self.foreign.is_read)

    def test_mark_all_read_then_delete_read(self):
        resp = self.client.post(self.url, {"action": "mark_all_read"}, format="json")
        self.assertEqual(resp.json()["message"], "2 notifications marked as read.")
        resp = self.client.post(self.url, {"action": "delete_read"}, format="json")
        self.assertEqual(resp.json()["deleted"], 2)
        self.assertTrue(Notification.objects.filter(pk=self.foreign.pk).exists())

    def test_delete_someone_elses_notification(self):
        resp = self.client.post(
            self.url, {"action": "delete_notification", "notification_id": self.foreign.pk}, format="json"
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "Notification not found.")
        self.assertTrue(Notification.objects.filter(pk=self.foreign.pk).exists())

    def test_unknown_action(self):
        resp = self.client.post(self.url, {"action": "explode"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "Invalid action.")
