from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from core.models import ActivityLog
from notifications.models import Notification
from projects.models import Project
from users.models import User


class LoginTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            username="jane",
            email="jane@example.com",
            password="Secret#123",
            first_name="Jane",
            last_name="Doe",
            role="mentor",
        )

    def test_login_starts_session(self):
        resp = self.client.post(reverse("auth-login"), {"username": "jane", "password": "Secret#123"}, format="json")
        self.assertEqual(resp.status_code, 200, msg=resp.content)
        body = resp.json()
        self.assertEqual(body["message"], "Welcome back, Jane Doe!")
        self.assertIn("assignment_review", body["permissions"])
        self.assertTrue(body["csrf_token"])
        self.assertTrue(ActivityLog.objects.filter(actor=self.user, verb="user.login").exists())

        me = self.client.get(reverse("auth-me"))
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["username"], "jane")

    def test_login_by_email(self):
        resp = self.client.post(
            reverse("auth-login"), {"username": "JANE@example.com", "password": "Secret#123"}, format="json"
        )
        self.assertEqual(resp.status_code, 200)

    def test_wrong_password_is_generic(self):
        resp = self.client.post(reverse("auth-login"), {"username": "jane", "password": "nope"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["errors"], ["Invalid username or password"])
        self.assertNotIn("password", resp.json()["values"])

    def test_unknown_user_is_generic(self):
        resp = self.client.post(reverse("auth-login"), {"username": "ghost", "password": "x"}, format="json")
        self.assertEqual(resp.json()["errors"], ["Invalid username or password"])

    def test_inactive_account(self):
        self.user.is_active = False
        self.user.save()
        resp = self.client.post(reverse("auth-login"), {"username": "jane", "password": "Secret#123"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["errors"], ["Account is inactive. Contact administrator."])

    def test_logout(self):
        self.client.post(reverse("auth-login"), {"username": "jane", "password": "Secret#123"}, format="json")
        resp = self.client.post(reverse("auth-logout"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["message"], "You have been logged out successfully.")
        self.assertEqual(self.client.get(reverse("auth-me")).status_code, 401)


class CsrfTest(TestCase):
    def setUp(self):
        self.client = APIClient(enforce_csrf_checks=True)
        User.objects.create_user(username="jane", password="Secret#123")

    def test_login_without_token_is_rejected(self):
        resp = self.client.post(reverse("auth-login"), {"username": "jane", "password": "Secret#123"}, format="json")
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["errors"]["detail"], "Security token mismatch. Please try again.")

    def test_login_with_session_token(self):
        token = self.client.get(reverse("auth-csrf")).json()["csrf_token"]
        resp = self.client.post(
            reverse("auth-login"),
            {"username": "jane", "password": "Secret#123", "csrf_token": token},
            format="json",
        )
        self.assertEqual(resp.status_code, 200, msg=resp.content)

    def test_register_without_token_creates_nothing(self):
        resp = self.client.post(reverse("auth-register"), {"username": "sneaky"}, format="json")
        self.assertEqual(resp.status_code, 403)
        self.assertFalse(User.objects.filter(username="sneaky").exists())


class SessionCsrfTest(TestCase):
    def setUp(self):
        self.client = APIClient(enforce_csrf_checks=True)
        User.objects.create_user(username="boss", password="Secret#123", role="admin")
        token = self.client.get(reverse("auth-csrf")).json()["csrf_token"]
        resp = self.client.post(
            reverse("auth-login"),
            {"username": "boss", "password": "Secret#123", "csrf_token": token},
            format="json",
        )
        self.assertEqual(resp.status_code, 200, msg=resp.content)
        self.token = resp.json()["csrf_token"]
        self.payload = {"title": "Mentorship Drive", "description": "Pair every newcomer with a mentor."}

    def test_logged_in_post_without_token_is_rejected(self):
        resp = self.client.post(reverse("project-list"), self.payload, format="json")
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["errors"]["detail"], "Security token mismatch. Please try again.")
        self.assertFalse(Project.objects.exists())

    def test_logged_in_post_with_wrong_token_is_rejected(self):
        resp = self.client.post(
            reverse("project-list"), {**self.payload, "csrf_token": "x" * 64}, format="json"
        )
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["errors"]["detail"], "Security token mismatch. Please try again.")
        self.assertFalse(Project.objects.exists())

    def test_logged_in_post_with_session_token(self):
        resp = self.client.post(reverse("project-list"), {**self.payload, "csrf_token": self.token})
        self.assertEqual(resp.status_code, 201, msg=resp.content)
        self.assertTrue(Project.objects.filter(title="Mentorship Drive").exists())


class LoginRequiredTest(TestCase):
    def test_protected_endpoint_requires_login(self):
        resp = APIClient().get(reverse("project-list"))
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["errors"]["detail"], "Please log in to access this page.")


class RegisterTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.payload = {
            "username": "newgirl",
            "email": "NewGirl@Example.com",
            "first_name": "New",
            "last_name": "Girl",
            "password": "Strong#Pass1",
            "confirm_password": "Strong#Pass1",
            "terms": True,
        }

    def test_register_creates_participant(self):
        resp = self.client.post(reverse("auth-register"), self.payload, format="json")
        self.assertEqual(resp.status_code, 201, msg=resp.content)
        user = User.objects.get(username="newgirl")
        self.assertEqual(user.role, "participant")
        self.assertEqual(user.email, "newgirl@example.com")
        self.assertTrue(Notification.objects.filter(user=user).exists())

    def test_weak_password_lists_every_rule(self):
        payload = {**self.payload, "password": "weak", "confirm_password": "weak"}
        resp = self.client.post(reverse("auth-register"), payload, format="json")
        self.assertEqual(resp.status_code, 400)
        message = resp.json()["errors"][0]
        for rule in ("at least 8 characters", "uppercase letter", "one number", "special character"):
            self.assertIn(rule, message)
        self.assertFalse(User.objects.filter(username="newgirl").exists())

    def test_terms_must_be_accepted(self):
        payload = {**self.payload, "terms": False}
        resp = self.client.post(reverse("auth-register"), payload, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["errors"], ["Please accept the terms and conditions."])

    def test_admin_role_is_not_self_service(self):
        payload = {**self.payload, "role": "admin"}
        resp = self.client.post(reverse("auth-register"), payload, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("Invalid user role", resp.json()["errors"])

    def test_duplicate_username_and_email(self):
        User.objects.create_user(username="NewGirl", email="newgirl@example.com", password="x")
        resp = self.client.post(reverse("auth-register"), self.payload, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("Username already exists", resp.json()["errors"])
        self.assertIn("Email already registered", resp.json()["errors"])

    def test_password_mismatch(self):
        payload = {**self.payload, "confirm_password": "Other#Pass1"}
        resp = self.client.post(reverse("auth-register"), payload, format="json")
        self.assertEqual(resp.json()["errors"], ["Passwords do not match."])
